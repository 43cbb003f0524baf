"""Session orchestrator.

Single owner of the UI-facing SessionState. Sequences work across the live
client, the audio pipeline, the tool dispatcher and the audit logger:
- connect-then-act through one bounded ensure_connected helper
- voice capture and text turns
- voice/text mode switching under a transition lock
- staged connection settings, applied on the next connect
"""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Callable
from dataclasses import replace
from typing import Any
from uuid import uuid4

from liveassist.config import Settings, get_settings
from liveassist.core.session_config import (
    ResponseModality,
    SessionConfig,
    VoiceName,
    build_live_config,
    parse_voice_name,
)
from liveassist.core.state import (
    Message,
    MessageMetadata,
    Role,
    SessionState,
    UIMode,
    VoiceState,
)
from liveassist.logging_config import get_logger
from liveassist.observability.metrics import record_mode_switch
from liveassist.services.audio.codec import pcm_duration_ms
from liveassist.services.audio.exceptions import MicrophonePermissionError
from liveassist.services.audio.pipeline import AudioPipeline
from liveassist.services.audio.protocol import PermissionState
from liveassist.services.interaction_log.logger import InteractionAuditLogger
from liveassist.services.live.client import LiveSessionClient
from liveassist.services.live.exceptions import LiveTimeoutError
from liveassist.services.live.protocol import (
    AudioChunk,
    AudioEvent,
    CloseEvent,
    ConnectionStatus,
    ContentEvent,
    ErrorEvent,
    FunctionCall,
    InterruptedEvent,
    LiveEvent,
    OpenEvent,
    SetupCompleteEvent,
    ToolCallCancellationEvent,
    ToolCallEvent,
    ToolResponse,
    TurnCompleteEvent,
)
from liveassist.services.tools.dispatcher import ToolCallDispatcher, ToolHandler
from liveassist.services.tools.handlers import ReportService, UIBridge, build_default_handlers

logger: Any = get_logger(__name__)

StateListener = Callable[[SessionState], None]


class SessionOrchestrator:
    """Controller for one assistant session.

    Usage:
        async with SessionOrchestrator(interaction_logger=audit) as session:
            session.subscribe(render)
            await session.switch_to_text_mode()
            await session.send_text_message("Hello")

    Public operations never raise on connection or audio failures; those are
    reflected in state.connection_status and state.last_error.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: LiveSessionClient | None = None,
        audio: AudioPipeline | None = None,
        dispatcher: ToolCallDispatcher | None = None,
        tool_handlers: dict[str, ToolHandler] | None = None,
        ui_bridge: UIBridge | None = None,
        interaction_logger: InteractionAuditLogger | None = None,
        session_config: SessionConfig | None = None,
        user_id: str | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self.session_id = str(uuid4())
        self.user_id = user_id

        self._client = client or LiveSessionClient(self._settings)
        self._audio = audio or AudioPipeline(settings=self._settings)
        if dispatcher is None:
            handlers = tool_handlers
            if handlers is None:
                handlers = build_default_handlers(ReportService(user_id=user_id), ui_bridge)
            dispatcher = ToolCallDispatcher(
                self._client, handlers, timeout_seconds=self._settings.tool_timeout_seconds
            )
        self._dispatcher = dispatcher
        self._dispatcher.on_response = self._on_tool_response
        self._audit = interaction_logger

        self._config = session_config or SessionConfig.from_settings(self._settings)
        self._state = SessionState(
            session_id=self.session_id,
            ui_mode=UIMode(self._settings.default_ui_mode),
        )
        self._listeners: list[StateListener] = []

        self._connect_task: asyncio.Task[bool] | None = None
        self._transition_lock = asyncio.Lock()
        self._tool_tasks: set[asyncio.Task[list[ToolResponse]]] = set()
        self._captured_bytes = 0
        self._turn_audio = bytearray()
        self._closed = False

        self._event_handlers: dict[type, Callable[[Any], None]] = {
            OpenEvent: self._on_open,
            CloseEvent: self._on_close,
            ErrorEvent: self._on_error,
            SetupCompleteEvent: self._on_setup_complete,
            ContentEvent: self._on_content,
            AudioEvent: self._on_audio,
            TurnCompleteEvent: self._on_turn_complete,
            InterruptedEvent: self._on_interrupted,
            ToolCallEvent: self._on_tool_call,
            ToolCallCancellationEvent: self._on_tool_call_cancellation,
        }
        self._unsubscribe_client = self._client.subscribe(self._on_live_event)
        self._audio.attach(
            on_audio_chunk=self._on_audio_chunk,
            on_audio_level=self._on_audio_level,
            on_error=self._on_audio_error,
            on_playback_complete=self._on_playback_complete,
        )

        if self._audit is not None:
            self._audit.log_session_start(
                self.session_id,
                user_id=self.user_id,
                metadata={"ui_mode": self._state.ui_mode.value, "model": self._settings.live_model},
            )
        logger.info(f"Session {self.session_id} created (mode={self._state.ui_mode.value})")

    async def __aenter__(self) -> SessionOrchestrator:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session_config(self) -> SessionConfig:
        """Settings the next connection will be opened with."""
        return self._config

    @property
    def client(self) -> LiveSessionClient:
        return self._client

    @property
    def dispatcher(self) -> ToolCallDispatcher:
        return self._dispatcher

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"State listener failed: {e}")

    def _append_message(self, message: Message) -> None:
        self._update(messages=(*self._state.messages, message))

    def _idle_voice_state(self) -> VoiceState:
        return VoiceState.LISTENING if self._state.is_recording else VoiceState.IDLE

    # =========================================================================
    # Connection
    # =========================================================================

    async def connect(self, mode: UIMode | None = None) -> bool:
        """Open a connection configured for the given (or current) mode."""
        return await self._await_connect(self._connect_task_for(mode), None)

    async def disconnect(self) -> None:
        """Stop capture and close the connection."""
        self.stop_voice_recording()
        await self._drop_connection()

    async def ensure_connected(self, mode: UIMode | None = None, timeout: float | None = None) -> bool:
        """Connect if needed, waiting at most timeout seconds.

        Concurrent callers share one connection attempt. On timeout the attempt
        is cancelled and the session goes to the error state.

        Returns:
            True if a connection is open.
        """
        if self._client.is_connected():
            return True

        timeout = self._settings.connect_timeout_seconds if timeout is None else timeout
        return await self._await_connect(self._connect_task_for(mode), timeout)

    async def _await_connect(self, task: asyncio.Task[bool], timeout: float | None) -> bool:
        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout)
        except TimeoutError:
            task.cancel()
            error = LiveTimeoutError(timeout or 0.0)
            logger.error(str(error))
            self._update(connection_status=ConnectionStatus.ERROR, last_error=str(error))
            self._log_error(error)
            return False
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            # The attempt was abandoned by a disconnect or mode switch
            return False

    def _connect_task_for(self, mode: UIMode | None) -> asyncio.Task[bool]:
        task = self._connect_task
        if task is None or task.done():
            task = asyncio.create_task(self._open(mode or self._state.ui_mode))
            self._connect_task = task
        return task

    async def _open(self, mode: UIMode) -> bool:
        self._update(connection_status=ConnectionStatus.CONNECTING, last_error=None)
        logger.info(f"Connecting session {self.session_id} in {mode.value} mode")
        connected = await self._client.connect(
            self._settings.live_model, build_live_config(mode, self._config)
        )
        if (
            not connected
            and self._state.connection_status == ConnectionStatus.CONNECTING
            and self._client.status != ConnectionStatus.CONNECTING
        ):
            self._update(connection_status=self._client.status)
        return connected

    async def _drop_connection(self) -> None:
        """Close the connection and discard in-flight output."""
        task = self._connect_task
        if task is not None and not task.done():
            task.cancel()
        self._connect_task = None

        await self._client.disconnect()
        self._audio.stop_audio()
        self._turn_audio.clear()
        self._update(
            connection_status=ConnectionStatus.DISCONNECTED,
            is_streaming=False,
            current_response="",
            is_playing=False,
            voice_state=self._idle_voice_state(),
        )

    # =========================================================================
    # Voice
    # =========================================================================

    async def request_microphone_permission(self) -> bool:
        """Probe the microphone again, clearing an earlier denial if access is now granted."""
        granted = await self._audio.request_microphone_permission()
        self._update(microphone_permission=self._audio.permission)
        return granted

    async def start_voice_recording(self) -> bool:
        """Connect if needed, then stream microphone audio to the model.

        Returns:
            False if no connection opened within the bounded wait or the
            microphone could not be started.
        """
        if self._closed:
            return False
        if self._state.is_recording:
            return True
        if self._state.is_transitioning:
            logger.warning("Voice recording ignored: mode switch in progress")
            return False

        if not await self.ensure_connected(UIMode.VOICE):
            logger.warning("Voice recording aborted: connection not ready")
            return False

        started = await self._audio.start_recording()
        self._update(microphone_permission=self._audio.permission)
        if not started:
            return False

        self._captured_bytes = 0
        self._update(is_recording=True, voice_state=VoiceState.LISTENING)
        logger.info("Voice recording started")
        return True

    def stop_voice_recording(self) -> None:
        """Stop capture and record the captured segment. Idempotent."""
        if not self._state.is_recording and not self._audio.is_recording:
            return

        self._audio.stop_recording()
        captured = self._captured_bytes
        self._captured_bytes = 0
        self._update(
            is_recording=False,
            audio_level=0.0,
            voice_state=VoiceState.SPEAKING if self._state.is_playing else VoiceState.IDLE,
        )

        if captured and self._audit is not None:
            self._audit.log_audio_input(
                self.session_id,
                size_bytes=captured,
                duration_ms=pcm_duration_ms(captured, self._audio.config.input_sample_rate),
                user_id=self.user_id,
            )
        logger.info(f"Voice recording stopped ({captured} bytes captured)")

    def _on_audio_chunk(self, chunk: AudioChunk) -> None:
        if not self._client.is_connected():
            return
        if self._client.send_realtime_input([chunk]):
            self._captured_bytes += len(base64.b64decode(chunk.data))

    def _on_audio_level(self, level: float) -> None:
        self._update(audio_level=level)

    def _on_audio_error(self, error: Exception) -> None:
        permission = self._audio.permission
        if isinstance(error, MicrophonePermissionError):
            permission = PermissionState.DENIED

        recording = self._state.is_recording and self._audio.is_recording
        self._update(
            microphone_permission=permission,
            is_recording=recording,
            voice_state=self._state.voice_state if recording else VoiceState.IDLE,
            last_error=str(error),
        )
        self._log_error(error)

    def _on_playback_complete(self) -> None:
        self._update(is_playing=False, voice_state=self._idle_voice_state())

    # =========================================================================
    # Text
    # =========================================================================

    async def send_text_message(self, text: str) -> bool:
        """Send a user turn, connecting first if needed.

        Returns:
            False for empty text or when the message could not be sent.
        """
        text = text.strip()
        if not text or self._closed:
            return False

        if not await self.ensure_connected(self._state.ui_mode):
            logger.warning("Text message not sent: connection not ready")
            return False

        self._append_message(Message(role=Role.USER, text=text))
        if not self._client.send(text):
            self._update(last_error="Message could not be sent")
            return False

        self._update(is_streaming=True, current_response="")
        if self._audit is not None:
            self._audit.log_user_message(self.session_id, text, user_id=self.user_id)
        return True

    # =========================================================================
    # Mode switching
    # =========================================================================

    async def switch_mode(self, mode: UIMode) -> bool:
        """Switch between voice and text.

        Recording stops and the connection is closed before the mode changes.
        Text mode reconnects right away; voice mode waits for the user to start
        recording unless eager_voice_connect is set.

        Returns:
            False if already in that mode.
        """
        async with self._transition_lock:
            if self._closed or mode == self._state.ui_mode:
                return False

            previous = self._state.ui_mode
            self._update(is_transitioning=True)
            try:
                self.stop_voice_recording()
                self.close_sidebar()
                await self._drop_connection()
                self._update(ui_mode=mode)
                record_mode_switch(mode.value)
                logger.info(f"Switched {previous.value} -> {mode.value} mode")

                await asyncio.sleep(self._settings.mode_switch_settle_seconds)
                if mode == UIMode.TEXT or self._settings.eager_voice_connect:
                    await self.ensure_connected(mode)
            finally:
                self._update(is_transitioning=False)
        return True

    async def switch_to_voice_mode(self) -> bool:
        return await self.switch_mode(UIMode.VOICE)

    async def switch_to_text_mode(self) -> bool:
        return await self.switch_mode(UIMode.TEXT)

    # =========================================================================
    # Staged configuration
    # =========================================================================

    def set_voice_name(self, voice: str | VoiceName) -> VoiceName:
        """Stage the voice preset for the next connection.

        Raises:
            ValueError: If the name is not a known preset
        """
        voice_name = parse_voice_name(voice)
        self._config = self._config.with_changes(voice_name=voice_name)
        return voice_name

    def set_system_instructions(self, instructions: str) -> None:
        """Stage system instructions for the next connection.

        Raises:
            ValueError: If the text exceeds the configured maximum length
        """
        limit = self._settings.system_instructions_max_length
        if len(instructions) > limit:
            raise ValueError(f"System instructions exceed {limit} characters")
        self._config = self._config.with_changes(system_instructions=instructions)

    def set_tools_enabled(self, enabled: bool) -> None:
        self._config = self._config.with_changes(tools_enabled=enabled)

    def set_response_modality(self, modality: ResponseModality | str) -> None:
        self._config = self._config.with_changes(response_modality=ResponseModality(modality))

    # =========================================================================
    # UI helpers
    # =========================================================================

    def toggle_sidebar(self) -> bool:
        self._update(is_sidebar_open=not self._state.is_sidebar_open)
        return self._state.is_sidebar_open

    def close_sidebar(self) -> None:
        if self._state.is_sidebar_open:
            self._update(is_sidebar_open=False)

    def set_selected_filter(self, selected: str) -> None:
        self._update(selected_filter=selected)

    def clear_conversation(self) -> None:
        self._update(messages=(), current_response="", is_streaming=False)

    # =========================================================================
    # Live events
    # =========================================================================

    def _on_live_event(self, event: LiveEvent) -> None:
        handler = self._event_handlers.get(type(event))
        if handler is None:
            logger.warning(f"No handler for live event {type(event).__name__}")
            return
        handler(event)

    def _on_open(self, event: OpenEvent) -> None:
        self._update(connection_status=ConnectionStatus.CONNECTED, last_error=None)

    def _on_setup_complete(self, event: SetupCompleteEvent) -> None:
        logger.debug("Live session setup complete")

    def _on_close(self, event: CloseEvent) -> None:
        self.stop_voice_recording()
        self._audio.stop_audio()
        self._turn_audio.clear()
        status = self._state.connection_status
        if status != ConnectionStatus.CONNECTING:
            status = ConnectionStatus.DISCONNECTED
        self._update(
            connection_status=status,
            is_streaming=False,
            current_response="",
            is_playing=False,
            voice_state=VoiceState.IDLE,
        )

    def _on_error(self, event: ErrorEvent) -> None:
        self.stop_voice_recording()
        self._audio.stop_audio()
        self._turn_audio.clear()
        self._update(
            connection_status=ConnectionStatus.ERROR,
            is_streaming=False,
            current_response="",
            is_playing=False,
            voice_state=VoiceState.IDLE,
            last_error=event.message,
        )
        self._log_error(event.error)

    def _on_content(self, event: ContentEvent) -> None:
        text = event.text
        if text:
            self._update(current_response=self._state.current_response + text, is_streaming=True)

    def _on_audio(self, event: AudioEvent) -> None:
        self._turn_audio.extend(event.data)
        self._audio.play_audio(event.data)
        self._update(is_playing=True, voice_state=VoiceState.SPEAKING)

    def _on_turn_complete(self, event: TurnCompleteEvent) -> None:
        text = self._state.current_response
        audio = bytes(self._turn_audio)
        self._turn_audio.clear()

        if text or audio:
            self._append_message(
                Message(
                    role=Role.ASSISTANT,
                    text=text or None,
                    audio=audio or None,
                    metadata=MessageMetadata(finish_reason="turn_complete"),
                )
            )
        self._update(is_streaming=False, current_response="")

        if self._audit is None:
            return
        if text:
            self._audit.log_assistant_response(self.session_id, text, user_id=self.user_id)
        if audio:
            self._audit.log_audio_output(
                self.session_id,
                size_bytes=len(audio),
                duration_ms=pcm_duration_ms(len(audio), self._audio.config.output_sample_rate),
                user_id=self.user_id,
            )

    def _on_interrupted(self, event: InterruptedEvent) -> None:
        # Partial output is dropped, never turned into a message
        self._audio.stop_audio()
        self._turn_audio.clear()
        self._update(
            is_streaming=False,
            current_response="",
            is_playing=False,
            voice_state=self._idle_voice_state(),
        )

    def _on_tool_call(self, event: ToolCallEvent) -> None:
        if self._audit is not None:
            for call in event.function_calls:
                self._audit.log_tool_call(self.session_id, call, user_id=self.user_id)

        task = asyncio.create_task(self._dispatcher.dispatch(event))
        self._tool_tasks.add(task)
        task.add_done_callback(self._tool_task_done)

    def _tool_task_done(self, task: asyncio.Task[list[ToolResponse]]) -> None:
        self._tool_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Tool dispatch failed: {task.exception()}")

    def _on_tool_response(self, call: FunctionCall, response: ToolResponse) -> None:
        if self._audit is not None:
            self._audit.log_tool_response(self.session_id, response, user_id=self.user_id)

    def _on_tool_call_cancellation(self, event: ToolCallCancellationEvent) -> None:
        self._dispatcher.cancel(event.ids)

    def _log_error(self, error: BaseException | str) -> None:
        if self._audit is not None:
            self._audit.log_error(self.session_id, error, user_id=self.user_id)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        """Stop audio, disconnect, cancel tool calls and end the session. Idempotent."""
        if self._closed:
            return
        self._closed = True

        self.stop_voice_recording()
        await self._drop_connection()

        self._dispatcher.cancel_all()
        tasks = list(self._tool_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._audio.dispose()
        self._unsubscribe_client()

        if self._audit is not None:
            self._audit.log_session_end(
                self.session_id,
                user_id=self.user_id,
                metadata={"message_count": len(self._state.messages)},
            )
        logger.info(f"Session {self.session_id} closed")
