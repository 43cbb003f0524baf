"""Audio capture and playback services (sounddevice)."""

from liveassist.services.audio.codec import (
    compute_level,
    encode_chunk,
    float_to_pcm16,
    pcm16_to_float,
    pcm_duration_ms,
)
from liveassist.services.audio.exceptions import (
    AudioDeviceError,
    AudioResamplingError,
    AudioServiceError,
    MicrophonePermissionError,
)
from liveassist.services.audio.pipeline import AudioPipeline
from liveassist.services.audio.protocol import AudioConfig, PermissionState
from liveassist.services.audio.resampler import StreamResampler

__all__ = [
    # Types
    "AudioConfig",
    "PermissionState",
    # Implementation
    "AudioPipeline",
    "StreamResampler",
    # Codec
    "compute_level",
    "encode_chunk",
    "float_to_pcm16",
    "pcm16_to_float",
    "pcm_duration_ms",
    # Exceptions
    "AudioServiceError",
    "MicrophonePermissionError",
    "AudioDeviceError",
    "AudioResamplingError",
]
