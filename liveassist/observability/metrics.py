"""Prometheus metrics for the LiveAssist session engine.

Provides metrics for monitoring connection health, tool usage and audit logging.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

# =============================================================================
# Counters
# =============================================================================

LIVE_CONNECT_TOTAL = Counter(
    "liveassist_live_connect_total",
    "Live connection attempts by outcome",
    ["outcome"],
)

TOOL_CALLS_TOTAL = Counter(
    "liveassist_tool_calls_total",
    "Tool calls dispatched by tool and outcome",
    ["tool", "outcome"],
)

INTERACTION_LOG_FLUSH_TOTAL = Counter(
    "liveassist_interaction_log_flush_total",
    "Interaction log batch deliveries by transport and outcome",
    ["transport", "outcome"],
)

MODE_SWITCH_TOTAL = Counter(
    "liveassist_mode_switch_total",
    "Voice/text mode switches by target mode",
    ["mode"],
)

# =============================================================================
# Gauges
# =============================================================================

ACTIVE_CONNECTIONS = Gauge(
    "liveassist_active_connections",
    "Currently open live connections",
)

INTERACTION_LOG_QUEUE = Gauge(
    "liveassist_interaction_log_queue_size",
    "Interaction log entries waiting to be flushed",
)

# =============================================================================
# Histograms
# =============================================================================

LIVE_CONNECT_LATENCY = Histogram(
    "liveassist_live_connect_seconds",
    "Time from connect request to completed handshake",
    buckets=[0.1, 0.25, 0.5, 0.75, 1.0, 1.5, 2.0, 3.0, 5.0],
)

TOOL_CALL_LATENCY = Histogram(
    "liveassist_tool_call_seconds",
    "Tool handler execution time",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# =============================================================================
# Helper Functions
# =============================================================================


def record_live_connect(outcome: str, latency_seconds: float | None = None) -> None:
    """Record a connection attempt.

    Args:
        outcome: success or error
        latency_seconds: Handshake duration for successful attempts
    """
    LIVE_CONNECT_TOTAL.labels(outcome=outcome).inc()
    if outcome == "success":
        ACTIVE_CONNECTIONS.inc()
        if latency_seconds is not None:
            LIVE_CONNECT_LATENCY.observe(latency_seconds)


def record_live_disconnect() -> None:
    """Record that an open connection was closed."""
    ACTIVE_CONNECTIONS.dec()


def record_tool_call(tool: str, outcome: str, duration_seconds: float) -> None:
    """Record a dispatched tool call.

    Args:
        tool: Function name requested by the model
        outcome: success, error, timeout or unknown
        duration_seconds: Handler execution time
    """
    TOOL_CALLS_TOTAL.labels(tool=tool, outcome=outcome).inc()
    TOOL_CALL_LATENCY.observe(duration_seconds)


def record_log_flush(transport: str, outcome: str) -> None:
    """Record an interaction log delivery attempt."""
    INTERACTION_LOG_FLUSH_TOTAL.labels(transport=transport, outcome=outcome).inc()


def record_log_queue_size(size: int) -> None:
    INTERACTION_LOG_QUEUE.set(size)


def record_mode_switch(mode: str) -> None:
    MODE_SWITCH_TOTAL.labels(mode=mode).inc()


def get_metrics() -> bytes:
    """Generate Prometheus metrics output.

    Returns:
        Metrics in Prometheus text exposition format.
    """
    return generate_latest()


def get_content_type() -> str:
    """Get the content type for Prometheus metrics.

    Returns:
        Content-Type header value for Prometheus metrics.
    """
    return CONTENT_TYPE_LATEST
