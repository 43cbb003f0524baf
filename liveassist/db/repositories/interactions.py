"""Interaction log repository."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from liveassist.db.models import InteractionLog


@dataclass
class InteractionStats:
    """Aggregated interaction counts for one user over a period."""

    total_interactions: int = 0
    total_sessions: int = 0
    interaction_types: dict[str, int] = field(default_factory=dict)
    daily_breakdown: dict[str, int] = field(default_factory=dict)
    period_days: int = 7


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    raise ValueError(f"Unsupported timestamp: {value!r}")


def record_to_row(record: Mapping[str, Any], *, user_id: str | None = None) -> InteractionLog:
    """Build an InteractionLog row from a wire record.

    Wire records use `content` and `metadata` keys; `user_id` overrides the
    record's own value when given.
    """
    data: dict[str, Any] = {
        "session_id": record.get("session_id"),
        "user_id": user_id if user_id is not None else record.get("user_id"),
        "interaction_type": record.get("interaction_type"),
        "content_json": record.get("content") or {},
        "metadata_json": record.get("metadata") or {},
    }
    timestamp = _parse_timestamp(record.get("timestamp"))
    if timestamp is not None:
        data["timestamp"] = timestamp
    return InteractionLog.model_validate(data)


class AsyncInteractionLogRepository:
    """Async repository for the audit logger and API."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert_batch(
        self,
        records: Sequence[Mapping[str, Any]],
        *,
        user_id: str | None = None,
    ) -> list[InteractionLog]:
        rows = [record_to_row(record, user_id=user_id) for record in records]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def list_for_session(
        self,
        session_id: str,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InteractionLog]:
        query = (
            select(InteractionLog)
            .where(InteractionLog.session_id == session_id)  # type: ignore[arg-type]
            .order_by(InteractionLog.timestamp)  # type: ignore[arg-type]
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_for_user(
        self,
        user_id: str,
        *,
        session_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[InteractionLog]:
        query = select(InteractionLog).where(InteractionLog.user_id == user_id)  # type: ignore[arg-type]
        if session_id:
            query = query.where(InteractionLog.session_id == session_id)  # type: ignore[arg-type]
        query = (
            query.order_by(desc(InteractionLog.timestamp))  # type: ignore[arg-type]
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def stats(self, user_id: str, *, days: int = 7) -> InteractionStats:
        cutoff = datetime.now(UTC) - timedelta(days=days)
        query = select(InteractionLog).where(
            InteractionLog.user_id == user_id,  # type: ignore[arg-type]
            InteractionLog.timestamp >= cutoff,  # type: ignore[arg-type]
        )
        result = await self.session.execute(query)
        logs = result.scalars().all()

        stats = InteractionStats(period_days=days, total_interactions=len(logs))
        sessions: set[str] = set()
        for log in logs:
            sessions.add(log.session_id)
            type_key = log.interaction_type.value
            stats.interaction_types[type_key] = stats.interaction_types.get(type_key, 0) + 1
            day_key = log.timestamp.date().isoformat()
            stats.daily_breakdown[day_key] = stats.daily_breakdown.get(day_key, 0) + 1
        stats.total_sessions = len(sessions)
        return stats
