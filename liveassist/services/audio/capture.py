"""Microphone capture using sounddevice."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import numpy as np

from liveassist.logging_config import get_logger
from liveassist.services.audio.exceptions import AudioDeviceError, MicrophonePermissionError
from liveassist.services.audio.protocol import AudioConfig, AudioStream, StreamFactory
from liveassist.services.audio.resampler import StreamResampler

logger: Any = get_logger(__name__)

FramesCallback = Callable[[np.ndarray], None]


def default_input_stream(**kwargs: Any) -> AudioStream:
    """Open a sounddevice InputStream (PortAudio is loaded on first use)."""
    import sounddevice as sd

    return sd.InputStream(**kwargs)


class MicrophoneCapture:
    """Single-stream microphone capture.

    Delivers mono float32 blocks at the target rate to a callback running on
    the PortAudio thread.
    """

    def __init__(
        self,
        config: AudioConfig,
        stream_factory: StreamFactory | None = None,
    ) -> None:
        self._config = config
        self._stream_factory = stream_factory or default_input_stream
        self._stream: AudioStream | None = None
        self._resampler = StreamResampler(config.capture_rate, config.input_sample_rate)

    @property
    def is_active(self) -> bool:
        return self._stream is not None

    def probe(self) -> None:
        """Open and close the input device to check it can be used.

        Raises:
            MicrophonePermissionError: If the device cannot be opened
        """
        try:
            stream = self._stream_factory(
                samplerate=self._config.capture_rate,
                channels=self._config.channels,
                dtype=np.float32,
                device=self._config.input_device,
            )
            stream.close()
        except Exception as e:
            raise MicrophonePermissionError(f"Microphone unavailable: {e}") from e

    def start(
        self,
        on_frames: FramesCallback,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        """Open the input stream and start delivering frames.

        Errors raised while processing a block go to on_error; PortAudio
        would otherwise abort the stream.

        Raises:
            AudioDeviceError: If the stream cannot be opened
        """
        if self._stream is not None:
            logger.warning("Capture already running")
            return

        self._resampler.reset()

        def callback(indata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
            if status:
                logger.debug(f"Input stream status: {status}")
            try:
                samples = indata[:, 0].copy() if indata.ndim > 1 else indata.copy()
                samples = self._resampler.process(samples)
                if samples.size:
                    on_frames(samples)
            except Exception as e:
                if on_error is None:
                    raise
                on_error(e)

        try:
            stream = self._stream_factory(
                samplerate=self._config.capture_rate,
                channels=self._config.channels,
                dtype=np.float32,
                blocksize=self._config.capture_blocksize,
                device=self._config.input_device,
                callback=callback,
            )
            stream.start()
        except Exception as e:
            raise AudioDeviceError(
                f"Failed to open input stream: {e}", device=self._config.input_device
            ) from e

        self._stream = stream
        logger.info(
            f"Capture started ({self._config.capture_rate}Hz → {self._config.input_sample_rate}Hz, "
            f"{self._config.capture_blocksize} frames/block)"
        )

    def stop(self) -> None:
        """Stop and close the input stream. Idempotent."""
        stream = self._stream
        if stream is None:
            return
        self._stream = None
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.warning(f"Error closing input stream: {e}")
        logger.info("Capture stopped")
