"""Live session services (Gemini Live)."""

from liveassist.services.live.client import GenAIConnector, LiveSessionClient
from liveassist.services.live.exceptions import (
    LiveConnectionError,
    LiveServiceError,
    LiveTimeoutError,
)
from liveassist.services.live.protocol import (
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
    LiveSession,
    OpenEvent,
    SetupCompleteEvent,
    ToolCallCancellationEvent,
    ToolCallEvent,
    ToolResponse,
    TurnCompleteEvent,
)

__all__ = [
    # Protocol and types
    "AudioChunk",
    "ConnectionStatus",
    "ContentPart",
    "FunctionCall",
    "LiveConnector",
    "LiveSession",
    "ToolResponse",
    # Events
    "LiveEvent",
    "OpenEvent",
    "CloseEvent",
    "ErrorEvent",
    "SetupCompleteEvent",
    "ContentEvent",
    "AudioEvent",
    "TurnCompleteEvent",
    "InterruptedEvent",
    "ToolCallEvent",
    "ToolCallCancellationEvent",
    # Implementation
    "GenAIConnector",
    "LiveSessionClient",
    # Exceptions
    "LiveServiceError",
    "LiveConnectionError",
    "LiveTimeoutError",
]
