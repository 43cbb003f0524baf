"""Tests for staged connection configuration."""

from __future__ import annotations

import pytest
from google.genai import types

from liveassist.core import (
    ResponseModality,
    SessionConfig,
    UIMode,
    VoiceName,
    build_live_config,
    parse_voice_name,
)


class TestParseVoiceName:
    """Tests for voice preset lookup."""

    @pytest.mark.parametrize("value", ["Aoede", "aoede", " AOEDE "])
    def test_case_insensitive(self, value: str) -> None:
        """Test names match regardless of case and surrounding space."""
        assert parse_voice_name(value) == VoiceName.AOEDE

    def test_enum_passthrough(self) -> None:
        """Test enum members are returned unchanged."""
        assert parse_voice_name(VoiceName.PUCK) is VoiceName.PUCK

    def test_unknown_voice(self) -> None:
        """Test unknown names raise ValueError listing the presets."""
        with pytest.raises(ValueError, match="Charon"):
            parse_voice_name("Alexa")


class TestSessionConfig:
    """Tests for SessionConfig."""

    def test_from_settings(self, settings_factory) -> None:
        """Test defaults come from settings."""
        config = SessionConfig.from_settings(
            settings_factory(default_voice_name="puck", tools_enabled=False, temperature=0.2)
        )

        assert config.voice_name == VoiceName.PUCK
        assert config.tools_enabled is False
        assert config.temperature == 0.2
        assert config.response_modality == ResponseModality.TEXT_AND_AUDIO

    def test_with_changes_returns_copy(self) -> None:
        """Test changes produce a new config and leave the original alone."""
        original = SessionConfig()

        changed = original.with_changes(voice_name=VoiceName.LEDA)

        assert changed.voice_name == VoiceName.LEDA
        assert original.voice_name == VoiceName.AOEDE

    @pytest.mark.parametrize(
        ("modality", "mode", "expected"),
        [
            (ResponseModality.TEXT_AND_AUDIO, UIMode.VOICE, [types.Modality.AUDIO]),
            (ResponseModality.TEXT_AND_AUDIO, UIMode.TEXT, [types.Modality.TEXT]),
            (ResponseModality.TEXT, UIMode.VOICE, [types.Modality.TEXT]),
            (ResponseModality.AUDIO, UIMode.TEXT, [types.Modality.AUDIO]),
        ],
    )
    def test_modalities_for(self, modality, mode, expected) -> None:
        """Test the reply modality follows the mode unless pinned."""
        assert SessionConfig(response_modality=modality).modalities_for(mode) == expected


class TestBuildLiveConfig:
    """Tests for the connect payload."""

    def test_voice_mode(self) -> None:
        """Test voice connections carry the speech config and instructions."""
        config = build_live_config(
            UIMode.VOICE,
            SessionConfig(voice_name=VoiceName.FENRIR, system_instructions="Be concise."),
        )

        assert config.response_modalities == [types.Modality.AUDIO]
        assert config.speech_config.voice_config.prebuilt_voice_config.voice_name == "Fenrir"
        assert config.system_instruction.parts[0].text == "Be concise."
        assert config.max_output_tokens == 8192

    def test_text_mode_without_tools(self) -> None:
        """Test text connections omit speech settings and tools when disabled."""
        config = build_live_config(UIMode.TEXT, SessionConfig(tools_enabled=False))

        assert config.response_modalities == [types.Modality.TEXT]
        assert config.speech_config is None
        assert config.system_instruction is None
        assert config.tools is None

    def test_tools_declared(self) -> None:
        """Test enabled tools are sent as one Tool of declarations."""
        config = build_live_config(UIMode.TEXT, SessionConfig())

        (tool,) = config.tools
        names = {declaration.name for declaration in tool.function_declarations}
        assert {"generateFitnessReport", "scrollToSection", "listReports"} <= names
