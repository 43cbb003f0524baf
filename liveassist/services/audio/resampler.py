"""Streaming audio resampling using soxr."""

from __future__ import annotations

from typing import Any

import numpy as np
import soxr

from liveassist.logging_config import get_logger
from liveassist.services.audio.exceptions import AudioResamplingError

logger: Any = get_logger(__name__)


class StreamResampler:
    """High-quality streaming resampler for captured audio.

    Converts device-native capture rates to the rate the model expects:
    - 44100Hz / 48000Hz microphones → 16000Hz

    Keeps filter state between chunks so consecutive blocks join without
    clicks.
    """

    def __init__(
        self,
        source_rate: int,
        target_rate: int,
        quality: str = "HQ",  # VHQ, HQ, MQ, LQ, QQ
    ) -> None:
        self._source_rate = source_rate
        self._target_rate = target_rate
        self._quality = quality
        self._stream: soxr.ResampleStream | None = None

    @property
    def ratio(self) -> float:
        """Resampling ratio (target/source)."""
        return self._target_rate / self._source_rate

    @property
    def needs_resampling(self) -> bool:
        """Check if resampling is actually needed."""
        return self._source_rate != self._target_rate

    def process(self, samples: np.ndarray) -> np.ndarray:
        """Resample one block of float32 mono samples.

        Called from the audio thread, so it stays synchronous.
        """
        if not self.needs_resampling or samples.size == 0:
            return samples

        if self._stream is None:
            self._stream = soxr.ResampleStream(
                self._source_rate,
                self._target_rate,
                1,
                dtype="float32",
                quality=self._quality,
            )

        try:
            return self._stream.resample_chunk(samples.astype(np.float32, copy=False))
        except Exception as e:
            logger.error(f"Resampling failed: {e}")
            raise AudioResamplingError(f"Failed to resample audio: {e}") from e

    def reset(self) -> None:
        """Drop filter state before a new recording."""
        self._stream = None
