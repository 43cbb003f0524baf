"""Types shared by audio capture and playback."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from liveassist.config import Settings, get_settings
from liveassist.services.live.protocol import AudioChunk


class PermissionState(str, Enum):
    """Microphone permission as last observed."""

    PENDING = "pending"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass
class AudioConfig:
    """Configuration for capture and playback."""

    input_sample_rate: int = 16000
    output_sample_rate: int = 24000
    channels: int = 1
    chunk_size: int = 1024
    vad_threshold: float = 30.0
    input_device: int | None = None
    output_device: int | None = None
    device_sample_rate: int | None = None  # Native capture rate, if not the target

    @property
    def capture_rate(self) -> int:
        return self.device_sample_rate or self.input_sample_rate

    @property
    def capture_blocksize(self) -> int:
        """Frames per callback at the capture rate, same duration as chunk_size."""
        return max(1, self.chunk_size * self.capture_rate // self.input_sample_rate)

    @property
    def mime_type(self) -> str:
        return f"audio/pcm;rate={self.input_sample_rate}"

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> AudioConfig:
        """Create config from application settings."""
        s = settings or get_settings()
        return cls(
            input_sample_rate=s.audio_input_sample_rate,
            output_sample_rate=s.audio_output_sample_rate,
            chunk_size=s.audio_chunk_size,
            vad_threshold=s.audio_vad_threshold,
            input_device=s.audio_input_device,
            output_device=s.audio_output_device,
            device_sample_rate=s.audio_device_sample_rate,
        )


class AudioStream(Protocol):
    """The part of a sounddevice stream used here."""

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def close(self) -> None:
        ...


StreamFactory = Callable[..., AudioStream]

AudioChunkCallback = Callable[[AudioChunk], Any]
AudioLevelCallback = Callable[[float], Any]
AudioErrorCallback = Callable[[Exception], Any]
PlaybackCompleteCallback = Callable[[], Any]
