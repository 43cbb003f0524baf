"""Custom exceptions for audio capture and playback."""


class AudioServiceError(Exception):
    """Base exception for audio errors."""

    pass


class MicrophonePermissionError(AudioServiceError):
    """Raised when the microphone cannot be opened (denied or missing)."""

    pass


class AudioDeviceError(AudioServiceError):
    """Raised when an input or output stream fails."""

    def __init__(self, message: str, device: int | None = None) -> None:
        super().__init__(message)
        self.device = device


class AudioResamplingError(AudioServiceError):
    """Raised when audio resampling fails."""

    pass
