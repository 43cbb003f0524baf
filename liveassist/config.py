"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
See .env.example for required variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_INSTRUCTIONS = (
    "You are a helpful fitness and wellness assistant. Answer clearly and "
    "concisely, use the available tools to navigate the app, collect user "
    "details and save reports when the user asks for one."
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ==========================================================================
    # API Keys
    # ==========================================================================
    google_api_key: SecretStr = Field(description="Google API key for Gemini Live")
    live_model: str = Field(
        default="models/gemini-2.0-flash-exp",
        description="Gemini model used for live sessions",
    )
    live_api_version: str = Field(
        default="v1alpha",
        description="API version passed to the genai client",
    )

    # ==========================================================================
    # Database
    # ==========================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/liveassist.db",
        description="SQLAlchemy async database URL",
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # ==========================================================================
    # Session
    # ==========================================================================
    connect_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Bounded wait for a connection before an action is aborted",
    )
    reconnect_delay_seconds: float = Field(
        default=0.1,
        ge=0,
        description="Pause between closing an old connection and opening a new one",
    )
    mode_switch_settle_seconds: float = Field(
        default=0.3,
        ge=0,
        description="Pause after disconnecting during a voice/text mode switch",
    )
    eager_voice_connect: bool = Field(
        default=False,
        description="Reconnect immediately when switching into voice mode",
    )
    default_ui_mode: Literal["voice", "text"] = Field(
        default="voice", description="Interaction mode for new sessions"
    )
    default_voice_name: str = Field(
        default="Aoede", description="Prebuilt voice used for spoken replies"
    )
    default_system_instructions: str = Field(
        default=DEFAULT_SYSTEM_INSTRUCTIONS,
        description="System instruction sent with every new connection",
    )
    system_instructions_max_length: int = Field(
        default=4000, gt=0, description="Maximum length of system instructions"
    )
    tools_enabled: bool = Field(
        default=True, description="Expose tool declarations to the model"
    )
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_output_tokens: int = Field(default=8192, gt=0)
    tool_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Maximum time a tool handler may run"
    )

    # ==========================================================================
    # Audio
    # ==========================================================================
    audio_input_sample_rate: int = Field(
        default=16000, description="Sample rate of PCM streamed to the model"
    )
    audio_output_sample_rate: int = Field(
        default=24000, description="Sample rate of PCM returned by the model"
    )
    audio_chunk_size: int = Field(
        default=1024, gt=0, description="Frames per captured audio chunk"
    )
    audio_vad_threshold: float = Field(
        default=30.0,
        ge=0,
        le=100,
        description="Level (0-100) above which input counts as voice activity",
    )
    audio_input_device: int | None = Field(
        default=None, description="sounddevice input device index"
    )
    audio_output_device: int | None = Field(
        default=None, description="sounddevice output device index"
    )
    audio_device_sample_rate: int | None = Field(
        default=None,
        description="Native capture rate of the input device, resampled when it differs",
    )

    # ==========================================================================
    # Interaction Log
    # ==========================================================================
    interaction_log_batch_size: int = Field(default=10, gt=0)
    interaction_log_flush_interval: float = Field(
        default=2.0, gt=0, description="Seconds between periodic flushes"
    )
    interaction_log_max_retries: int = Field(default=3, ge=1)
    interaction_log_retry_delay: float = Field(
        default=1.0, ge=0, description="Base retry delay, multiplied by attempt number"
    )
    interaction_log_fallback_url: str | None = Field(
        default=None,
        description="HTTP endpoint receiving batches when the database is unavailable",
    )
    interaction_log_fallback_token: SecretStr | None = Field(
        default=None,
        description="Bearer token for the fallback endpoint",
    )
    interaction_log_timeout_seconds: float = Field(default=10.0, gt=0)

    # ==========================================================================
    # API Auth
    # ==========================================================================
    jwt_secret: SecretStr | None = Field(
        default=None, description="HS256 secret for verifying API tokens"
    )
    jwt_verify: bool = Field(default=True, description="Verify token signatures")
    jwt_audience: str | None = Field(default=None, description="Expected token audience")

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def interaction_log_fallback_enabled(self) -> bool:
        """Check if the HTTP fallback transport is configured."""
        return bool(self.interaction_log_fallback_url)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()  # type: ignore[call-arg]
