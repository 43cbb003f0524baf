"""Tests for audio codec, resampling, capture and playback."""

from __future__ import annotations

import asyncio
import base64

import numpy as np
import pytest
from conftest import FakeStreamFactory

from liveassist.services.audio import (
    AudioConfig,
    AudioPipeline,
    MicrophonePermissionError,
    PermissionState,
    StreamResampler,
    compute_level,
    encode_chunk,
    float_to_pcm16,
    pcm16_to_float,
    pcm_duration_ms,
)


def tone(num_samples: int, amplitude: float = 0.5, rate: int = 16000) -> np.ndarray:
    t = np.arange(num_samples) / rate
    return (amplitude * np.sin(2 * np.pi * 440 * t)).astype(np.float32)


class TestCodec:
    """Tests for PCM conversion helpers."""

    def test_float_to_pcm16_clips(self) -> None:
        """Test samples outside [-1, 1] are clamped."""
        pcm = float_to_pcm16(np.array([2.0, -2.0, 0.0], dtype=np.float32))
        values = np.frombuffer(pcm, dtype="<i2")

        assert values.tolist() == [32767, -32767, 0]

    def test_pcm16_is_little_endian_mono(self) -> None:
        """Test two bytes per sample, little endian."""
        pcm = float_to_pcm16(np.array([1.0], dtype=np.float32))

        assert pcm == b"\xff\x7f"

    def test_pcm16_to_float_inverse(self) -> None:
        """Test conversion back to float stays within one step."""
        samples = np.array([0.5, -0.25], dtype=np.float32)

        restored = pcm16_to_float(float_to_pcm16(samples))

        assert np.allclose(restored, samples, atol=1 / 32767)

    def test_encode_chunk(self) -> None:
        """Test chunks carry the rate in the mime type and base64 data."""
        chunk = encode_chunk(b"\x01\x02", 16000)

        assert chunk.mime_type == "audio/pcm;rate=16000"
        assert base64.b64decode(chunk.data) == b"\x01\x02"

    def test_compute_level_silence(self) -> None:
        """Test silence reports level 0."""
        assert compute_level(np.zeros(512, dtype=np.float32)) == 0.0
        assert compute_level(np.array([], dtype=np.float32)) == 0.0

    def test_compute_level_scale(self) -> None:
        """Test louder input reports a higher level within 0-100."""
        quiet = compute_level(tone(1024, amplitude=0.01))
        loud = compute_level(tone(1024, amplitude=0.9))

        assert 0.0 < quiet < loud <= 100.0

    def test_pcm_duration_ms(self) -> None:
        """Test one second of 16 kHz mono 16-bit audio."""
        assert pcm_duration_ms(32000, 16000) == 1000.0
        assert pcm_duration_ms(48000, 24000) == 1000.0
        assert pcm_duration_ms(100, 0) == 0.0


class TestStreamResampler:
    """Tests for soxr streaming resampling."""

    def test_same_rate_passthrough(self) -> None:
        """Test no resampling when rates match."""
        resampler = StreamResampler(16000, 16000)
        samples = tone(256)

        assert not resampler.needs_resampling
        assert resampler.process(samples) is samples

    def test_downsample_48k_to_16k(self) -> None:
        """Test output length follows the rate ratio across blocks."""
        resampler = StreamResampler(48000, 16000)
        total = 0
        for _ in range(10):
            total += len(resampler.process(tone(4800, rate=48000)))

        assert resampler.ratio == pytest.approx(1 / 3)
        assert 14000 < total <= 16100


class TestAudioPipelineCapture:
    """Tests for microphone capture through AudioPipeline."""

    @pytest.mark.asyncio
    async def test_start_recording_streams_chunks(self) -> None:
        """Test captured blocks become encoded chunks with levels."""
        inputs = FakeStreamFactory()
        chunks: list = []
        levels: list[float] = []
        pipeline = AudioPipeline(
            AudioConfig(),
            on_audio_chunk=chunks.append,
            on_audio_level=levels.append,
            input_stream_factory=inputs,
            output_stream_factory=FakeStreamFactory(),
        )

        assert await pipeline.start_recording() is True
        assert pipeline.permission == PermissionState.GRANTED
        stream = inputs.active
        assert stream.started
        assert stream.kwargs["samplerate"] == 16000
        assert stream.kwargs["blocksize"] == 1024
        assert stream.kwargs["channels"] == 1

        stream.feed_input(tone(1024, amplitude=0.8))
        await asyncio.sleep(0)

        assert len(chunks) == 1
        assert chunks[0].mime_type == "audio/pcm;rate=16000"
        assert len(base64.b64decode(chunks[0].data)) == 2048
        assert levels[-1] > 0
        assert pipeline.detect_voice_activity()

    @pytest.mark.asyncio
    async def test_device_rate_is_resampled(self) -> None:
        """Test a 48 kHz device is opened natively and resampled to 16 kHz."""
        inputs = FakeStreamFactory()
        chunks: list = []
        pipeline = AudioPipeline(
            AudioConfig(device_sample_rate=48000),
            on_audio_chunk=chunks.append,
            input_stream_factory=inputs,
        )

        await pipeline.start_recording()
        stream = inputs.active
        assert stream.kwargs["samplerate"] == 48000
        assert stream.kwargs["blocksize"] == 3072

        for _ in range(5):
            stream.feed_input(tone(3072, rate=48000))
        await asyncio.sleep(0)

        sent = sum(len(base64.b64decode(c.data)) // 2 for c in chunks)
        assert 0 < sent <= 5 * 1024 + 100

    @pytest.mark.asyncio
    async def test_permission_denied_is_terminal(self) -> None:
        """Test a denied microphone is reported and not probed again."""
        inputs = FakeStreamFactory(fail=OSError("access denied"))
        errors: list[Exception] = []
        pipeline = AudioPipeline(AudioConfig(), on_error=errors.append, input_stream_factory=inputs)

        assert await pipeline.start_recording() is False
        assert pipeline.permission == PermissionState.DENIED
        assert await pipeline.start_recording() is False

        assert inputs.calls == 1
        assert len(errors) == 2
        assert all(isinstance(e, MicrophonePermissionError) for e in errors)
        assert not pipeline.is_recording

    @pytest.mark.asyncio
    async def test_stop_recording_releases_stream(self) -> None:
        """Test stop closes the input stream, resets the level and is idempotent."""
        inputs = FakeStreamFactory()
        levels: list[float] = []
        pipeline = AudioPipeline(AudioConfig(), on_audio_level=levels.append, input_stream_factory=inputs)
        await pipeline.start_recording()
        stream = inputs.active

        pipeline.stop_recording()
        pipeline.stop_recording()

        assert stream.closed
        assert not pipeline.is_recording
        assert pipeline.current_audio_level() == 0.0
        assert levels == [0.0]

    @pytest.mark.asyncio
    async def test_chunks_after_stop_are_dropped(self) -> None:
        """Test blocks queued before stop are not delivered after it."""
        inputs = FakeStreamFactory()
        chunks: list = []
        pipeline = AudioPipeline(AudioConfig(), on_audio_chunk=chunks.append, input_stream_factory=inputs)
        await pipeline.start_recording()

        inputs.active.feed_input(tone(1024))
        pipeline.stop_recording()
        await asyncio.sleep(0)

        assert chunks == []

    @pytest.mark.asyncio
    async def test_dispose_is_idempotent(self) -> None:
        """Test dispose releases resources and blocks further recording."""
        inputs = FakeStreamFactory()
        pipeline = AudioPipeline(AudioConfig(), input_stream_factory=inputs)
        await pipeline.start_recording()

        pipeline.dispose()
        pipeline.dispose()

        assert inputs.active.closed
        assert await pipeline.start_recording() is False


class TestAudioPipelinePlayback:
    """Tests for streamed playback through AudioPipeline."""

    @pytest.mark.asyncio
    async def test_playback_streams_and_reports_drain(self) -> None:
        """Test playback starts with the first chunk and completes when drained."""
        outputs = FakeStreamFactory()
        completed: list[bool] = []
        pipeline = AudioPipeline(
            AudioConfig(),
            on_playback_complete=lambda: completed.append(True),
            output_stream_factory=outputs,
        )
        first = np.array([100, 200], dtype="<i2").tobytes()
        second = np.array([300], dtype="<i2").tobytes()

        pipeline.play_audio(first)
        stream = outputs.active
        assert stream.kwargs["samplerate"] == 24000
        assert stream.kwargs["dtype"] == "int16"
        assert pipeline.is_playing

        pipeline.play_audio(second)
        block = stream.pull_output(4)
        await asyncio.sleep(0)

        assert block.tolist() == [100, 200, 300, 0]
        assert not pipeline.is_playing
        assert completed == [True]
        assert len(outputs.streams) == 1

    @pytest.mark.asyncio
    async def test_stop_audio_discards_buffer(self) -> None:
        """Test stop_audio drops pending audio without a completion callback."""
        outputs = FakeStreamFactory()
        completed: list[bool] = []
        pipeline = AudioPipeline(
            AudioConfig(),
            on_playback_complete=lambda: completed.append(True),
            output_stream_factory=outputs,
        )
        pipeline.play_audio(b"\x01\x00" * 100)

        pipeline.stop_audio()
        block = outputs.active.pull_output(10)
        await asyncio.sleep(0)

        assert not block.any()
        assert completed == []

    @pytest.mark.asyncio
    async def test_odd_length_chunk_trimmed(self) -> None:
        """Test a trailing half sample is dropped."""
        outputs = FakeStreamFactory()
        pipeline = AudioPipeline(AudioConfig(), output_stream_factory=outputs)

        pipeline.play_audio(b"\x01\x00\x02")

        assert outputs.active.pull_output(2).tolist() == [1, 0]

    @pytest.mark.asyncio
    async def test_output_device_error_reported(self) -> None:
        """Test an output device failure goes to on_error instead of raising."""
        errors: list[Exception] = []
        pipeline = AudioPipeline(
            AudioConfig(),
            on_error=errors.append,
            output_stream_factory=FakeStreamFactory(fail=OSError("no device")),
        )

        pipeline.play_audio(b"\x01\x00")

        assert len(errors) == 1
        assert not pipeline.is_playing
