"""Custom exceptions for the live session service."""


class LiveServiceError(Exception):
    """Base exception for live session errors."""

    pass


class LiveConnectionError(LiveServiceError):
    """Raised when the live connection fails or drops."""

    pass


class LiveTimeoutError(LiveServiceError):
    """Raised when a connection is not ready within the allowed time."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Connection not ready after {timeout_seconds:.1f}s")
        self.timeout_seconds = timeout_seconds
