"""Protocol and types for interaction audit logging."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from liveassist.db.models import InteractionType


@dataclass(frozen=True, slots=True)
class InteractionLogEntry:
    """One immutable audit record."""

    session_id: str
    interaction_type: InteractionType
    content: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    user_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_record(self) -> dict[str, Any]:
        """Wire form shared by every transport."""
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "interaction_type": self.interaction_type.value,
            "content": self.content,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class QueueStatus:
    queue_size: int
    is_flushing: bool


class LogTransport(Protocol):
    """Destination for batches of interaction log entries."""

    name: str

    async def insert(self, batch: Sequence[InteractionLogEntry]) -> None:
        """Store a batch.

        Raises:
            LogTransportError: If the batch was not stored
        """
        ...
