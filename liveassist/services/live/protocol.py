"""Protocol and types for the live session connection."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol

PCM_MIME_PREFIX = "audio/pcm"


class ConnectionStatus(str, Enum):
    """Connection lifecycle state."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class AudioChunk:
    """Base64-encoded media chunk streamed to the model."""

    mime_type: str
    data: str


@dataclass(frozen=True, slots=True)
class FunctionCall:
    """A tool invocation requested by the model."""

    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToolResponse:
    """Result of a single function call, sent back to the model."""

    call_id: str
    name: str
    success: bool
    result: Any = None
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Response body as seen by the model."""
        if self.success:
            return {"success": True, "result": self.result}
        return {"success": False, "error": self.error or "Unknown error"}


@dataclass(frozen=True, slots=True)
class ContentPart:
    """Non-audio part of a model turn."""

    text: str | None = None
    mime_type: str | None = None
    data: bytes | None = None


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True, slots=True)
class OpenEvent:
    """Connection handshake completed."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class CloseEvent:
    """Connection closed by either side."""

    reason: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """Transport or protocol failure."""

    error: BaseException
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


@dataclass(frozen=True, slots=True)
class SetupCompleteEvent:
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class ContentEvent:
    """Text (and other non-audio) parts of a model turn."""

    parts: tuple[ContentPart, ...]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.parts if part.text)


@dataclass(frozen=True, slots=True)
class AudioEvent:
    """Decoded PCM audio from a model turn."""

    data: bytes
    mime_type: str = "audio/pcm;rate=24000"
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class TurnCompleteEvent:
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class InterruptedEvent:
    """The model stopped generating because the user barged in."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class ToolCallEvent:
    function_calls: tuple[FunctionCall, ...]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class ToolCallCancellationEvent:
    ids: tuple[str, ...]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


LiveEvent = (
    OpenEvent
    | CloseEvent
    | ErrorEvent
    | SetupCompleteEvent
    | ContentEvent
    | AudioEvent
    | TurnCompleteEvent
    | InterruptedEvent
    | ToolCallEvent
    | ToolCallCancellationEvent
)

LiveEventObserver = Callable[[LiveEvent], None]


# =============================================================================
# Transport
# =============================================================================


class LiveSession(Protocol):
    """An open duplex session, as exposed by google-genai's AsyncSession."""

    async def send_client_content(self, *, turns: Any = None, turn_complete: bool = True) -> None:
        ...

    async def send_realtime_input(self, **kwargs: Any) -> None:
        ...

    async def send_tool_response(self, *, function_responses: Any) -> None:
        ...

    def receive(self) -> AsyncIterator[Any]:
        ...


class LiveConnector(Protocol):
    """Opens a live session for a model and connect config."""

    def __call__(self, model: str, config: Any) -> AbstractAsyncContextManager[LiveSession]:
        ...
