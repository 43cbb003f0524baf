"""Repository pattern implementations for data access."""

from liveassist.db.repositories.interactions import (
    AsyncInteractionLogRepository,
    InteractionStats,
)
from liveassist.db.repositories.reports import AsyncReportRepository

__all__ = [
    # Interaction log
    "AsyncInteractionLogRepository",
    "InteractionStats",
    # Reports
    "AsyncReportRepository",
]
