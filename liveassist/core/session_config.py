"""Connection configuration staged by the orchestrator.

SessionConfig is what the user can change between connections; it is turned
into a google-genai LiveConnectConfig only when a new connection is opened.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from google.genai import types

from liveassist.config import Settings, get_settings
from liveassist.core.state import UIMode
from liveassist.services.tools.declarations import build_tools


class VoiceName(str, Enum):
    """Prebuilt voices offered by the Live API."""

    PUCK = "Puck"
    CHARON = "Charon"
    KORE = "Kore"
    FENRIR = "Fenrir"
    AOEDE = "Aoede"
    LEDA = "Leda"
    ORUS = "Orus"
    ZEPHYR = "Zephyr"


class ResponseModality(str, Enum):
    TEXT = "TEXT"
    AUDIO = "AUDIO"
    # Follows the UI mode: audio replies in voice mode, text in text mode
    TEXT_AND_AUDIO = "TEXT_AND_AUDIO"


def parse_voice_name(value: str | VoiceName) -> VoiceName:
    """Resolve a voice preset by value, case-insensitively.

    Raises:
        ValueError: If the name is not a known preset
    """
    if isinstance(value, VoiceName):
        return value
    for voice in VoiceName:
        if voice.value.lower() == value.strip().lower():
            return voice
    raise ValueError(f"Unknown voice {value!r}; expected one of {[v.value for v in VoiceName]}")


@dataclass(frozen=True, slots=True)
class SessionConfig:
    voice_name: VoiceName = VoiceName.AOEDE
    system_instructions: str = ""
    tools_enabled: bool = True
    response_modality: ResponseModality = ResponseModality.TEXT_AND_AUDIO
    temperature: float = 0.7
    max_output_tokens: int = 8192

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> SessionConfig:
        """Create config from application settings."""
        s = settings or get_settings()
        return cls(
            voice_name=parse_voice_name(s.default_voice_name),
            system_instructions=s.default_system_instructions,
            tools_enabled=s.tools_enabled,
            temperature=s.temperature,
            max_output_tokens=s.max_output_tokens,
        )

    def with_changes(self, **changes: object) -> SessionConfig:
        return replace(self, **changes)  # type: ignore[arg-type]

    def modalities_for(self, mode: UIMode) -> list[types.Modality]:
        if self.response_modality == ResponseModality.TEXT:
            return [types.Modality.TEXT]
        if self.response_modality == ResponseModality.AUDIO:
            return [types.Modality.AUDIO]
        return [types.Modality.AUDIO if mode == UIMode.VOICE else types.Modality.TEXT]


def build_live_config(mode: UIMode, config: SessionConfig) -> types.LiveConnectConfig:
    """Build the setup payload for a new connection in the given mode."""
    modalities = config.modalities_for(mode)

    speech_config = None
    if types.Modality.AUDIO in modalities:
        speech_config = types.SpeechConfig(
            voice_config=types.VoiceConfig(
                prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=config.voice_name.value)
            )
        )

    system_instruction = None
    if config.system_instructions:
        system_instruction = types.Content(parts=[types.Part(text=config.system_instructions)])

    return types.LiveConnectConfig(
        response_modalities=modalities,
        speech_config=speech_config,
        system_instruction=system_instruction,
        tools=build_tools() if config.tools_enabled else None,
        temperature=config.temperature,
        max_output_tokens=config.max_output_tokens,
    )
