"""Session state owned by the orchestrator.

State is an immutable snapshot; every change produces a new SessionState
that is handed to subscribers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from liveassist.services.audio.protocol import PermissionState
from liveassist.services.live.protocol import ConnectionStatus


class UIMode(str, Enum):
    VOICE = "voice"
    TEXT = "text"


class VoiceState(str, Enum):
    """What the voice side of the assistant is doing."""

    IDLE = "idle"
    LISTENING = "listening"
    SPEAKING = "speaking"
    PAUSED = "paused"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class MessageMetadata:
    token_count: int | None = None
    finish_reason: str | None = None


@dataclass(frozen=True, slots=True)
class Message:
    """One transcript entry."""

    role: Role
    text: str | None = None
    audio: bytes | None = None
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: MessageMetadata | None = None


@dataclass(frozen=True, slots=True)
class SessionState:
    """Everything the UI renders about the current session."""

    session_id: str
    ui_mode: UIMode = UIMode.VOICE
    connection_status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    voice_state: VoiceState = VoiceState.IDLE
    is_recording: bool = False
    is_playing: bool = False
    audio_level: float = 0.0
    microphone_permission: PermissionState = PermissionState.PENDING
    messages: tuple[Message, ...] = ()
    is_streaming: bool = False
    current_response: str = ""
    is_sidebar_open: bool = False
    selected_filter: str = "all"
    is_transitioning: bool = False
    last_error: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.connection_status == ConnectionStatus.CONNECTED
