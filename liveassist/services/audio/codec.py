"""PCM conversion helpers for the live audio format.

Capture produces float32 samples in [-1, 1]; the model expects signed 16-bit
little-endian mono PCM, base64 encoded.
"""

from __future__ import annotations

import base64

import numpy as np

from liveassist.services.live.protocol import AudioChunk

PCM16_MAX = 32767
BYTES_PER_SAMPLE = 2

# Levels are reported on a 0-100 scale covering this many dB below full scale
LEVEL_FLOOR_DB = -60.0


def float_to_pcm16(samples: np.ndarray) -> bytes:
    """Clamp float samples to [-1, 1] and convert to 16-bit little-endian PCM."""
    clipped = np.clip(samples.astype(np.float32, copy=False), -1.0, 1.0)
    return (clipped * PCM16_MAX).astype("<i2").tobytes()


def pcm16_to_float(data: bytes) -> np.ndarray:
    """Convert 16-bit little-endian PCM to float32 samples."""
    return np.frombuffer(data, dtype="<i2").astype(np.float32) / PCM16_MAX


def encode_chunk(pcm: bytes, sample_rate: int) -> AudioChunk:
    return AudioChunk(
        mime_type=f"audio/pcm;rate={sample_rate}",
        data=base64.b64encode(pcm).decode("ascii"),
    )


def compute_level(samples: np.ndarray) -> float:
    """Input level 0-100 from the RMS of float samples.

    0 is at or below -60 dBFS, 100 is full scale.
    """
    if samples.size == 0:
        return 0.0
    rms = float(np.sqrt(np.mean(np.square(samples.astype(np.float64)))))
    if rms <= 0.0:
        return 0.0
    db = 20.0 * np.log10(rms)
    level = (db - LEVEL_FLOOR_DB) / -LEVEL_FLOOR_DB * 100.0
    return float(min(100.0, max(0.0, level)))


def pcm_duration_ms(num_bytes: int, sample_rate: int) -> float:
    """Duration of mono 16-bit PCM in milliseconds."""
    if sample_rate <= 0:
        return 0.0
    return num_bytes / BYTES_PER_SAMPLE / sample_rate * 1000.0
