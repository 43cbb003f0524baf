"""Interaction log endpoints.

POST /interactions/log is the server side of the logger's HTTP fallback
transport. The read endpoints return the caller's own history.
Security: All endpoints require JWT authentication; rows are scoped to the
token subject.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from liveassist.api.auth import RequireAuth
from liveassist.db.models import InteractionType
from liveassist.db.repositories.interactions import AsyncInteractionLogRepository
from liveassist.db.session import get_session
from liveassist.logging_config import get_logger

router = APIRouter(prefix="/interactions", tags=["Interactions"])

logger: Any = get_logger(__name__)

MAX_BATCH_SIZE = 500


# =============================================================================
# Schemas
# =============================================================================


class InteractionLogRecord(BaseModel):
    """One entry of an incoming batch."""

    session_id: str = Field(min_length=1)
    interaction_type: InteractionType
    content: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime | None = None


class InteractionLogBatchResponse(BaseModel):
    success: bool
    count: int


class InteractionLogResponse(BaseModel):
    id: str
    session_id: str
    user_id: str | None
    interaction_type: InteractionType
    content: dict[str, Any]
    metadata: dict[str, Any]
    timestamp: str
    created_at: str


class InteractionStatsResponse(BaseModel):
    total_interactions: int
    total_sessions: int
    interaction_types: dict[str, int]
    daily_breakdown: dict[str, int]
    period_days: int


def _parse_batch(payload: dict[str, Any]) -> list[InteractionLogRecord]:
    logs = payload.get("logs")
    if not isinstance(logs, list) or not logs:
        raise HTTPException(status_code=400, detail="Invalid request: logs array required")
    if len(logs) > MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=400, detail=f"Invalid request: at most {MAX_BATCH_SIZE} logs per batch"
        )
    try:
        return [InteractionLogRecord.model_validate(item) for item in logs]
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid log entry: {e.errors()[0]['msg']}") from e


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/log", response_model=InteractionLogBatchResponse)
async def insert_interaction_logs(
    user: RequireAuth,
    payload: dict[str, Any] = Body(...),  # noqa: B008
    session: AsyncSession = Depends(get_session),
) -> InteractionLogBatchResponse:
    """Store a batch of interaction log entries for the authenticated user."""
    records = _parse_batch(payload)
    now = datetime.now(UTC)

    rows = await AsyncInteractionLogRepository(session).insert_batch(
        [
            {
                "session_id": record.session_id,
                "interaction_type": record.interaction_type.value,
                "content": record.content,
                "metadata": record.metadata,
                "timestamp": record.timestamp or now,
            }
            for record in records
        ],
        user_id=user.sub,
    )
    logger.info(f"Stored {len(rows)} interaction log entries for user {user.sub}")
    return InteractionLogBatchResponse(success=True, count=len(rows))


@router.get("/log", response_model=list[InteractionLogResponse])
async def list_interaction_logs(
    user: RequireAuth,
    session: AsyncSession = Depends(get_session),
    session_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=MAX_BATCH_SIZE),
    offset: int = Query(0, ge=0),
) -> list[InteractionLogResponse]:
    """List the caller's interaction logs, newest first."""
    logs = await AsyncInteractionLogRepository(session).list_for_user(
        user.sub, session_id=session_id, limit=limit, offset=offset
    )
    return [
        InteractionLogResponse(
            id=log.id,
            session_id=log.session_id,
            user_id=log.user_id,
            interaction_type=log.interaction_type,
            content=log.content,
            metadata=log.metadata_dict,
            timestamp=log.timestamp.isoformat(),
            created_at=log.created_at.isoformat(),
        )
        for log in logs
    ]


@router.get("/stats", response_model=InteractionStatsResponse)
async def get_interaction_stats(
    user: RequireAuth,
    session: AsyncSession = Depends(get_session),
    days: int = Query(7, ge=1, le=365),
) -> InteractionStatsResponse:
    """Interaction totals for the caller over the last `days` days."""
    stats = await AsyncInteractionLogRepository(session).stats(user.sub, days=days)
    return InteractionStatsResponse(
        total_interactions=stats.total_interactions,
        total_sessions=stats.total_sessions,
        interaction_types=stats.interaction_types,
        daily_breakdown=stats.daily_breakdown,
        period_days=stats.period_days,
    )
