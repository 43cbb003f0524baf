"""SQLModel database models.

Tables:
- interactions_log: audit trail of every session interaction
- reports: documents generated by the assistant through tool calls

JSON payloads are stored as text and validated on the way in.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import field_validator
from sqlmodel import Field, SQLModel

# Average reading speed used for report metadata
WORDS_PER_MINUTE = 200

# =============================================================================
# Enums (shared across models)
# =============================================================================


class InteractionType(str, Enum):
    """Kind of event recorded in the interaction log."""

    user_message = "user_message"
    assistant_response = "assistant_response"
    tool_call = "tool_call"
    tool_response = "tool_response"
    audio_input = "audio_input"
    audio_output = "audio_output"
    session_start = "session_start"
    session_end = "session_end"
    error = "error"


class ReportCategory(str, Enum):
    """Category of a generated report."""

    fitness = "fitness"
    workout = "workout"
    supplement = "supplement"
    health = "health"
    nutrition = "nutrition"
    analysis = "analysis"
    summary = "summary"
    technical = "technical"
    business = "business"
    project = "project"
    other = "other"


class ReportStatus(str, Enum):
    """Lifecycle of a generated report."""

    generating = "generating"
    completed = "completed"
    error = "error"


def _json_text(value: Any, expected: type) -> str:
    """Validate a JSON payload and return it as text."""
    if isinstance(value, str):
        try:
            data = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}") from e
    else:
        data = value
        value = json.dumps(value, default=str)

    if not isinstance(data, expected):
        raise ValueError(f"Expected JSON {expected.__name__}")
    return value


# =============================================================================
# Database Models
# =============================================================================


class InteractionLog(SQLModel, table=True):
    """A single interaction event within an assistant session."""

    __tablename__ = "interactions_log"

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        primary_key=True,
        description="Unique identifier",
    )
    session_id: str = Field(index=True, description="Session that produced the event")
    user_id: str | None = Field(default=None, index=True)
    interaction_type: InteractionType = Field(index=True)
    content_json: str = Field(default="{}", description="JSON object with event content")
    metadata_json: str = Field(default="{}", description="JSON object with event metadata")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        index=True,
        description="When the event happened on the client",
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("content_json", "metadata_json", mode="before")
    @classmethod
    def validate_json_object(cls, v: Any) -> str:
        """Accept a dict or JSON text holding an object."""
        if v is None:
            return "{}"
        return _json_text(v, dict)

    @property
    def content(self) -> dict[str, Any]:
        return json.loads(self.content_json)

    @property
    def metadata_dict(self) -> dict[str, Any]:
        return json.loads(self.metadata_json)


class Report(SQLModel, table=True):
    """A markdown report produced by the assistant."""

    __tablename__ = "reports"

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        primary_key=True,
        description="Unique identifier",
    )
    title: str = Field(max_length=200, index=True)
    content: str = Field(description="Markdown body")
    category: ReportCategory = Field(default=ReportCategory.other, index=True)
    tags_json: str = Field(default="[]", description="JSON list of tags")
    status: ReportStatus = Field(default=ReportStatus.completed)
    user_id: str | None = Field(default=None, index=True)
    user_info_json: str | None = Field(
        default=None, description="JSON object with user details the report is based on"
    )
    word_count: int = Field(default=0, ge=0)
    estimated_read_time: int = Field(default=1, ge=1, description="Minutes")
    source: str = Field(default="ai-generated", max_length=50)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("tags_json", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> str:
        """Accept a list or JSON text holding a list of strings."""
        if v is None:
            return "[]"
        value = _json_text(v, list)
        if not all(isinstance(tag, str) for tag in json.loads(value)):
            raise ValueError("Tags must be strings")
        return value

    @field_validator("user_info_json", mode="before")
    @classmethod
    def validate_user_info(cls, v: Any) -> str | None:
        if v is None:
            return None
        return _json_text(v, dict)

    @property
    def tags(self) -> list[str]:
        return json.loads(self.tags_json)

    def refresh_metadata(self) -> None:
        """Recompute word count and read time from the content."""
        self.word_count = len(self.content.split())
        self.estimated_read_time = max(1, -(-self.word_count // WORDS_PER_MINUTE))
