"""Audio pipeline: microphone capture, encoding, level metering and playback.

Capture and playback run on PortAudio threads. Everything the pipeline
reports (chunks, levels, errors, playback completion) is handed to the
event loop with call_soon_threadsafe, so callbacks always run on the loop.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any

import numpy as np

from liveassist.config import Settings
from liveassist.logging_config import get_logger
from liveassist.services.audio.capture import MicrophoneCapture
from liveassist.services.audio.codec import compute_level, encode_chunk, float_to_pcm16
from liveassist.services.audio.exceptions import AudioServiceError, MicrophonePermissionError
from liveassist.services.audio.playback import StreamingPlayer
from liveassist.services.audio.protocol import (
    AudioChunkCallback,
    AudioConfig,
    AudioErrorCallback,
    AudioLevelCallback,
    PermissionState,
    PlaybackCompleteCallback,
    StreamFactory,
)
from liveassist.services.live.protocol import AudioChunk

logger: Any = get_logger(__name__)


class AudioPipeline:
    """Microphone-to-model and model-to-speaker audio handling.

    Usage:
        audio = AudioPipeline(on_audio_chunk=client_send)
        if await audio.start_recording():
            ...
        audio.play_audio(pcm_bytes)
        audio.dispose()
    """

    def __init__(
        self,
        config: AudioConfig | None = None,
        *,
        settings: Settings | None = None,
        on_audio_chunk: AudioChunkCallback | None = None,
        on_audio_level: AudioLevelCallback | None = None,
        on_error: AudioErrorCallback | None = None,
        on_playback_complete: PlaybackCompleteCallback | None = None,
        input_stream_factory: StreamFactory | None = None,
        output_stream_factory: StreamFactory | None = None,
    ) -> None:
        self.config = config or AudioConfig.from_settings(settings)
        self._on_audio_chunk = on_audio_chunk
        self._on_audio_level = on_audio_level
        self._on_error = on_error
        self._on_playback_complete = on_playback_complete

        self._capture = MicrophoneCapture(self.config, stream_factory=input_stream_factory)
        self._player = StreamingPlayer(
            sample_rate=self.config.output_sample_rate,
            device=self.config.output_device,
            stream_factory=output_stream_factory,
            on_drained=self._on_drained,
        )

        self._permission = PermissionState.PENDING
        self._recording = False
        self._disposed = False
        self._level = 0.0
        self._loop: asyncio.AbstractEventLoop | None = None

    def attach(
        self,
        *,
        on_audio_chunk: AudioChunkCallback | None = None,
        on_audio_level: AudioLevelCallback | None = None,
        on_error: AudioErrorCallback | None = None,
        on_playback_complete: PlaybackCompleteCallback | None = None,
    ) -> None:
        """Set (or replace) the callbacks receiving pipeline output."""
        if on_audio_chunk is not None:
            self._on_audio_chunk = on_audio_chunk
        if on_audio_level is not None:
            self._on_audio_level = on_audio_level
        if on_error is not None:
            self._on_error = on_error
        if on_playback_complete is not None:
            self._on_playback_complete = on_playback_complete

    @property
    def permission(self) -> PermissionState:
        return self._permission

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def is_playing(self) -> bool:
        return self._player.is_playing

    # =========================================================================
    # Capture
    # =========================================================================

    async def request_microphone_permission(self) -> bool:
        """Check the microphone can be opened.

        A denial is remembered; nothing retries it automatically.
        """
        self._bind_loop()
        try:
            await asyncio.to_thread(self._capture.probe)
        except MicrophonePermissionError as e:
            self._permission = PermissionState.DENIED
            self._report_error(e)
            return False

        self._permission = PermissionState.GRANTED
        return True

    async def start_recording(self) -> bool:
        """Start streaming encoded microphone chunks to on_audio_chunk.

        Returns:
            True if capture is running.
        """
        if self._disposed:
            logger.warning("start_recording called on a disposed pipeline")
            return False
        if self._recording:
            return True

        if self._permission != PermissionState.GRANTED:
            if self._permission == PermissionState.DENIED:
                self._report_error(MicrophonePermissionError("Microphone permission denied"))
                return False
            if not await self.request_microphone_permission():
                return False

        self._bind_loop()
        try:
            self._capture.start(self._on_frames, on_error=self._on_capture_error)
        except AudioServiceError as e:
            self._report_error(e)
            return False

        self._recording = True
        return True

    def stop_recording(self) -> None:
        """Stop capture. Idempotent."""
        if not self._recording:
            return
        self._recording = False
        self._capture.stop()
        self._level = 0.0
        if self._on_audio_level is not None:
            self._on_audio_level(0.0)

    def current_audio_level(self) -> float:
        """Most recent input level, 0-100."""
        return self._level

    def detect_voice_activity(self) -> bool:
        """True when the current input level exceeds the VAD threshold."""
        return self._level > self.config.vad_threshold

    def _on_frames(self, samples: np.ndarray) -> None:
        # PortAudio thread
        level = compute_level(samples)
        self._level = level
        chunk = encode_chunk(float_to_pcm16(samples), self.config.input_sample_rate)
        self._call_in_loop(self._deliver_chunk, chunk, level)

    def _on_capture_error(self, error: Exception) -> None:
        # PortAudio thread
        self._call_in_loop(self._report_error, error)

    def _deliver_chunk(self, chunk: AudioChunk, level: float) -> None:
        if not self._recording:
            return
        if self._on_audio_level is not None:
            self._on_audio_level(level)
        if self._on_audio_chunk is not None:
            self._on_audio_chunk(chunk)

    # =========================================================================
    # Playback
    # =========================================================================

    def play_audio(self, pcm: bytes) -> None:
        """Queue 16-bit PCM at the output rate for playback."""
        if self._disposed:
            return
        self._bind_loop()
        try:
            self._player.feed(pcm)
        except AudioServiceError as e:
            self._report_error(e)

    def stop_audio(self) -> None:
        """Stop playback and drop anything still buffered."""
        self._player.clear()

    def _on_drained(self) -> None:
        # PortAudio thread
        self._call_in_loop(self._notify_playback_complete)

    def _notify_playback_complete(self) -> None:
        if self._on_playback_complete is not None and not self._player.is_playing:
            self._on_playback_complete()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def dispose(self) -> None:
        """Release capture and playback resources. Idempotent."""
        if self._disposed:
            return
        self.stop_recording()
        self._player.close()
        self._disposed = True
        logger.debug("Audio pipeline disposed")

    def _bind_loop(self) -> None:
        # No running loop when called from synchronous code
        with contextlib.suppress(RuntimeError):
            self._loop = asyncio.get_running_loop()

    def _call_in_loop(self, callback: Any, *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(callback, *args)

    def _report_error(self, error: Exception) -> None:
        logger.error(f"Audio error: {error}")
        if self._on_error is not None:
            self._on_error(error)
