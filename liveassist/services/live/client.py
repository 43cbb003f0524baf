"""Gemini Live session client.

Owns the single duplex connection to the model:
- connect/disconnect state machine (disconnected → connecting → connected)
- ordered, non-blocking outbound sends (text turns, realtime audio, tool responses)
- receive loop translating server messages into typed events for observers
"""

from __future__ import annotations

import asyncio
import base64
import contextlib
import time
from collections.abc import Awaitable, Callable, Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any

from google import genai
from google.genai import types
from websockets.exceptions import ConnectionClosedOK

from liveassist.config import Settings, get_settings
from liveassist.logging_config import get_logger
from liveassist.observability.metrics import record_live_connect, record_live_disconnect
from liveassist.services.live.exceptions import LiveConnectionError
from liveassist.services.live.protocol import (
    PCM_MIME_PREFIX,
    AudioChunk,
    AudioEvent,
    CloseEvent,
    ConnectionStatus,
    ContentEvent,
    ContentPart,
    ErrorEvent,
    FunctionCall,
    InterruptedEvent,
    LiveConnector,
    LiveEvent,
    LiveEventObserver,
    LiveSession,
    OpenEvent,
    SetupCompleteEvent,
    ToolCallCancellationEvent,
    ToolCallEvent,
    ToolResponse,
    TurnCompleteEvent,
)

logger: Any = get_logger(__name__)

OutboundOp = Callable[[LiveSession], Awaitable[None]]


class GenAIConnector:
    """Opens live sessions through the google-genai SDK."""

    def __init__(self, api_key: str, api_version: str = "v1alpha") -> None:
        self._api_key = api_key
        self._api_version = api_version
        self._client: genai.Client | None = None

    @property
    def client(self) -> genai.Client:
        """Lazy-initialized genai client."""
        if self._client is None:
            self._client = genai.Client(
                api_key=self._api_key,
                http_options={"api_version": self._api_version},
            )
        return self._client

    def __call__(self, model: str, config: Any) -> AbstractAsyncContextManager[LiveSession]:
        return self.client.aio.live.connect(model=model, config=config)


def _decode_inline(data: bytes | str | None) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str):
        return base64.b64decode(data)
    return bytes(data)


def _normalize_parts(parts: str | dict[str, Any] | Sequence[str | dict[str, Any]]) -> list[dict[str, Any]]:
    if isinstance(parts, str):
        return [{"text": parts}]
    if isinstance(parts, dict):
        return [parts]
    return [{"text": part} if isinstance(part, str) else part for part in parts]


class LiveSessionClient:
    """Client for one persistent Gemini Live connection.

    Usage:
        client = LiveSessionClient()
        unsubscribe = client.subscribe(on_event)
        if await client.connect(config=build_live_config(...)):
            client.send("Hello")
        ...
        await client.disconnect()

    Sends never raise; when no connection is open they log a warning and do
    nothing. Failures surface as ErrorEvent to observers.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        connector: LiveConnector | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._connector = connector
        self._status = ConnectionStatus.DISCONNECTED
        self._model: str | None = None
        self._config: Any = None

        self._session: LiveSession | None = None
        self._session_cm: AbstractAsyncContextManager[LiveSession] | None = None
        self._outbound: asyncio.Queue[OutboundOp] | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._send_task: asyncio.Task[None] | None = None

        # Bumped whenever a connection attempt is superseded
        self._generation = 0
        self._observers: list[LiveEventObserver] = []

    @property
    def connector(self) -> LiveConnector:
        if self._connector is None:
            self._connector = GenAIConnector(
                api_key=self._settings.google_api_key.get_secret_value(),
                api_version=self._settings.live_api_version,
            )
        return self._connector

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def model(self) -> str | None:
        return self._model

    @property
    def config(self) -> Any:
        """Connect config of the current (or last) connection."""
        return self._config

    def is_connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED and self._session is not None

    # =========================================================================
    # Observers
    # =========================================================================

    def subscribe(self, observer: LiveEventObserver) -> Callable[[], None]:
        """Register an event observer. Returns a function that removes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _emit(self, event: LiveEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception as e:
                logger.error(f"Live event observer failed on {type(event).__name__}: {e}")

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self, model: str | None = None, config: Any = None) -> bool:
        """Open a connection, replacing any existing one.

        Returns:
            True once the handshake completed, False if an attempt was already
            in progress, the attempt failed, or it was superseded.
        """
        if self._status == ConnectionStatus.CONNECTING:
            logger.warning("Connect ignored: a connection attempt is already in progress")
            return False

        previous = self._status
        self._status = ConnectionStatus.CONNECTING
        self._generation += 1
        generation = self._generation
        self._model = model or self._settings.live_model
        self._config = config

        if previous == ConnectionStatus.CONNECTED and self._session is not None:
            logger.info("Closing existing live session before reconnecting")
            try:
                await self._teardown()
                self._emit(CloseEvent(reason="reconnecting"))
                await asyncio.sleep(self._settings.reconnect_delay_seconds)
            except asyncio.CancelledError:
                if generation == self._generation:
                    self._status = ConnectionStatus.DISCONNECTED
                raise
            if generation != self._generation:
                return False

        started = time.perf_counter()
        try:
            context = self.connector(self._model, config)
            session = await context.__aenter__()
        except asyncio.CancelledError:
            if generation == self._generation:
                self._status = ConnectionStatus.DISCONNECTED
            raise
        except Exception as e:
            if generation != self._generation:
                return False
            self._status = ConnectionStatus.DISCONNECTED
            record_live_connect("error")
            logger.error(f"Live connection failed: {e}")
            error = LiveConnectionError(f"Failed to connect: {e}")
            error.__cause__ = e
            self._emit(ErrorEvent(error=error))
            return False

        if generation != self._generation:
            logger.info("Discarding live session opened after disconnect")
            await self._close_context(context)
            return False

        self._session_cm = context
        self._session = session
        self._outbound = asyncio.Queue()
        self._status = ConnectionStatus.CONNECTED
        self._send_task = asyncio.create_task(self._send_loop(session, self._outbound, generation))
        self._receive_task = asyncio.create_task(self._receive_loop(session, generation))

        record_live_connect("success", time.perf_counter() - started)
        logger.info(f"Live session connected (model={self._model})")
        self._emit(OpenEvent())
        return True

    async def disconnect(self) -> bool:
        """Close the connection. Safe to call repeatedly.

        Returns:
            True if an open connection was closed.
        """
        self._generation += 1
        self._status = ConnectionStatus.DISCONNECTED
        if self._session is None:
            return False

        await self._teardown()
        logger.info("Live session disconnected")
        self._emit(CloseEvent(reason="client disconnect"))
        return True

    async def _teardown(self) -> None:
        """Drop the connection handle, stop loops and close the SDK context."""
        context = self._session_cm
        had_session = self._session is not None
        self._session = None
        self._session_cm = None
        self._outbound = None

        tasks = [task for task in (self._receive_task, self._send_task) if task is not None]
        self._receive_task = None
        self._send_task = None

        current = asyncio.current_task()
        for task in tasks:
            if task is not current:
                task.cancel()
        for task in tasks:
            if task is not current:
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        if context is not None:
            await self._close_context(context)
        if had_session:
            record_live_disconnect()

    async def _close_context(self, context: AbstractAsyncContextManager[LiveSession]) -> None:
        try:
            await context.__aexit__(None, None, None)
        except Exception as e:
            logger.warning(f"Error closing live session: {e}")

    async def _fail(self, generation: int, error: BaseException) -> None:
        if generation != self._generation or self._session is None:
            return
        self._status = ConnectionStatus.DISCONNECTED
        await self._teardown()
        self._emit(ErrorEvent(error=error))

    async def _server_closed(self, generation: int, reason: str) -> None:
        if generation != self._generation or self._session is None:
            return
        self._status = ConnectionStatus.DISCONNECTED
        await self._teardown()
        logger.info(f"Live session closed by server: {reason}")
        self._emit(CloseEvent(reason=reason))

    # =========================================================================
    # Outbound
    # =========================================================================

    def send(
        self,
        parts: str | dict[str, Any] | Sequence[str | dict[str, Any]],
        turn_complete: bool = True,
    ) -> bool:
        """Send a user turn made of text (or raw part dicts)."""
        turns = {"role": "user", "parts": _normalize_parts(parts)}

        async def op(session: LiveSession) -> None:
            await session.send_client_content(turns=turns, turn_complete=turn_complete)

        return self._enqueue("client content", op)

    def send_realtime_input(self, chunks: Sequence[AudioChunk]) -> bool:
        """Stream base64 media chunks (microphone audio, camera frames)."""
        if not self.is_connected():
            logger.warning("Cannot send realtime input: not connected")
            return False

        for chunk in chunks:
            blob = types.Blob(data=base64.b64decode(chunk.data), mime_type=chunk.mime_type)
            if chunk.mime_type.startswith("audio/"):
                kwargs = {"audio": blob}
            elif chunk.mime_type.startswith("image/"):
                kwargs = {"video": blob}
            else:
                kwargs = {"media": blob}

            async def op(session: LiveSession, kwargs: dict[str, Any] = kwargs) -> None:
                await session.send_realtime_input(**kwargs)

            self._enqueue("realtime input", op)
        return True

    def send_tool_response(self, responses: ToolResponse | Sequence[ToolResponse]) -> bool:
        """Answer one or more function calls."""
        if isinstance(responses, ToolResponse):
            responses = [responses]
        function_responses = [
            types.FunctionResponse(id=r.call_id, name=r.name, response=r.to_payload())
            for r in responses
        ]

        async def op(session: LiveSession) -> None:
            await session.send_tool_response(function_responses=function_responses)

        return self._enqueue("tool response", op)

    def _enqueue(self, label: str, op: OutboundOp) -> bool:
        if not self.is_connected() or self._outbound is None:
            logger.warning(f"Cannot send {label}: not connected")
            return False
        self._outbound.put_nowait(op)
        return True

    async def _send_loop(
        self,
        session: LiveSession,
        queue: asyncio.Queue[OutboundOp],
        generation: int,
    ) -> None:
        while True:
            op = await queue.get()
            try:
                await op(session)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Live send failed: {e}")
                await self._fail(generation, e)
                return

    # =========================================================================
    # Inbound
    # =========================================================================

    async def _receive_loop(self, session: LiveSession, generation: int) -> None:
        try:
            while True:
                received = False
                # session.receive() ends after each completed turn
                async for message in session.receive():
                    received = True
                    self._handle_message(message)
                if not received:
                    break
        except asyncio.CancelledError:
            raise
        except ConnectionClosedOK as e:
            await self._server_closed(generation, e.reason or "connection closed")
            return
        except Exception as e:
            logger.error(f"Live receive failed: {e}")
            await self._fail(generation, e)
            return
        await self._server_closed(generation, "stream ended")

    def _handle_message(self, message: Any) -> None:
        """Translate one server message into events."""
        tool_call = getattr(message, "tool_call", None)
        cancellation = getattr(message, "tool_call_cancellation", None)
        server_content = getattr(message, "server_content", None)

        if getattr(message, "setup_complete", None) is not None:
            self._emit(SetupCompleteEvent())
        elif tool_call is not None:
            calls = tuple(
                FunctionCall(id=fc.id or "", name=fc.name or "", args=dict(fc.args or {}))
                for fc in tool_call.function_calls or []
            )
            self._emit(ToolCallEvent(function_calls=calls))
        elif cancellation is not None:
            self._emit(ToolCallCancellationEvent(ids=tuple(cancellation.ids or [])))
        elif server_content is not None:
            self._handle_server_content(server_content)
        elif getattr(message, "go_away", None) is not None:
            logger.warning(f"Server will close the session soon: {message.go_away.time_left}")
        elif getattr(message, "usage_metadata", None) is not None:
            logger.debug("Usage metadata received")
        else:
            logger.warning(f"Unmatched live message: {type(message).__name__}")

    def _handle_server_content(self, content: Any) -> None:
        if content.interrupted:
            self._emit(InterruptedEvent())
            return

        model_turn = content.model_turn
        if model_turn is not None and model_turn.parts:
            other_parts: list[ContentPart] = []
            for part in model_turn.parts:
                inline = part.inline_data
                mime_type = (inline.mime_type or "") if inline is not None else ""
                if inline is not None and mime_type.startswith(PCM_MIME_PREFIX):
                    self._emit(AudioEvent(data=_decode_inline(inline.data), mime_type=mime_type))
                else:
                    other_parts.append(
                        ContentPart(
                            text=part.text,
                            mime_type=mime_type or None,
                            data=_decode_inline(inline.data) if inline is not None else None,
                        )
                    )
            if other_parts:
                self._emit(ContentEvent(parts=tuple(other_parts)))

        if content.turn_complete:
            self._emit(TurnCompleteEvent())
