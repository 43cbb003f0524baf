"""Core session components.

- SessionOrchestrator: owns session state and sequences live/audio/tool work
- SessionConfig: connection settings staged until the next connect
- AssistantRuntime: starts and stops the services a session needs
"""

from liveassist.core.orchestrator import SessionOrchestrator
from liveassist.core.runtime import AssistantRuntime
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

__all__ = [
    # Orchestration
    "SessionOrchestrator",
    "AssistantRuntime",
    # State
    "SessionState",
    "Message",
    "MessageMetadata",
    "Role",
    "UIMode",
    "VoiceState",
    # Configuration
    "SessionConfig",
    "VoiceName",
    "ResponseModality",
    "build_live_config",
    "parse_voice_name",
]
