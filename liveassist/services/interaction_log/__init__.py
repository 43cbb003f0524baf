"""Interaction audit logging: batched queue with database and HTTP transports."""

from liveassist.services.interaction_log.exceptions import InteractionLogError, LogTransportError
from liveassist.services.interaction_log.logger import InteractionAuditLogger
from liveassist.services.interaction_log.protocol import (
    InteractionLogEntry,
    LogTransport,
    QueueStatus,
)
from liveassist.services.interaction_log.transports import DatabaseLogTransport, HttpLogTransport

__all__ = [
    # Protocol and types
    "InteractionLogEntry",
    "LogTransport",
    "QueueStatus",
    # Implementation
    "InteractionAuditLogger",
    "DatabaseLogTransport",
    "HttpLogTransport",
    # Exceptions
    "InteractionLogError",
    "LogTransportError",
]
