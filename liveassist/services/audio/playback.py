"""Streaming PCM playback using sounddevice."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import numpy as np

from liveassist.logging_config import get_logger
from liveassist.services.audio.codec import BYTES_PER_SAMPLE
from liveassist.services.audio.exceptions import AudioDeviceError
from liveassist.services.audio.protocol import AudioStream, StreamFactory

logger: Any = get_logger(__name__)


def default_output_stream(**kwargs: Any) -> AudioStream:
    """Open a sounddevice OutputStream (PortAudio is loaded on first use)."""
    import sounddevice as sd

    return sd.OutputStream(**kwargs)


class StreamingPlayer:
    """Plays 16-bit PCM as it arrives through one reused output stream.

    Chunks are appended to a byte buffer shared with the PortAudio callback.
    Playback starts with the first chunk; `on_drained` runs on the audio
    thread each time the buffer empties.
    """

    def __init__(
        self,
        sample_rate: int = 24000,
        device: int | None = None,
        stream_factory: StreamFactory | None = None,
        on_drained: Callable[[], None] | None = None,
    ) -> None:
        self._sample_rate = sample_rate
        self._device = device
        self._stream_factory = stream_factory or default_output_stream
        self.on_drained = on_drained

        self._buffer = bytearray()
        self._lock = threading.Lock()
        self._active = False
        self._stream: AudioStream | None = None

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return self._active

    @property
    def buffered_bytes(self) -> int:
        with self._lock:
            return len(self._buffer)

    def feed(self, pcm: bytes) -> None:
        """Queue PCM for playback, opening the output stream if needed.

        Raises:
            AudioDeviceError: If the output stream cannot be opened
        """
        if len(pcm) % BYTES_PER_SAMPLE:
            logger.warning(f"Dropping trailing byte of odd-length PCM chunk ({len(pcm)} bytes)")
            pcm = pcm[:-1]
        if not pcm:
            return

        with self._lock:
            self._buffer.extend(pcm)
            self._active = True

        if self._stream is None:
            self._open()

    def clear(self) -> None:
        """Drop buffered audio immediately (barge-in)."""
        with self._lock:
            self._buffer.clear()
            self._active = False

    def close(self) -> None:
        """Clear the buffer and close the output stream. Idempotent."""
        self.clear()
        stream = self._stream
        if stream is None:
            return
        self._stream = None
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.warning(f"Error closing output stream: {e}")

    def _open(self) -> None:
        try:
            stream = self._stream_factory(
                samplerate=self._sample_rate,
                channels=1,
                dtype="int16",
                device=self._device,
                callback=self._callback,
            )
            stream.start()
        except Exception as e:
            self.clear()
            raise AudioDeviceError(f"Failed to open output stream: {e}", device=self._device) from e
        self._stream = stream
        logger.debug(f"Playback stream opened at {self._sample_rate}Hz")

    def _callback(self, outdata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.debug(f"Output stream status: {status}")

        needed = frames * BYTES_PER_SAMPLE
        with self._lock:
            chunk = bytes(self._buffer[:needed])
            del self._buffer[:needed]
            drained = self._active and not self._buffer
            if drained:
                self._active = False

        if len(chunk) < needed:
            chunk += b"\x00" * (needed - len(chunk))
        outdata[:, 0] = np.frombuffer(chunk, dtype="<i2")

        if drained and self.on_drained is not None:
            self.on_drained()
