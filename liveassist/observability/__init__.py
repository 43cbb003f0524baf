"""Observability module for metrics."""

from liveassist.observability.metrics import (
    ACTIVE_CONNECTIONS,
    INTERACTION_LOG_QUEUE,
    LIVE_CONNECT_LATENCY,
    LIVE_CONNECT_TOTAL,
    TOOL_CALLS_TOTAL,
    record_live_connect,
    record_tool_call,
)

__all__ = [
    "LIVE_CONNECT_TOTAL",
    "LIVE_CONNECT_LATENCY",
    "ACTIVE_CONNECTIONS",
    "TOOL_CALLS_TOTAL",
    "INTERACTION_LOG_QUEUE",
    "record_live_connect",
    "record_tool_call",
]
