"""Tests for Prometheus metrics."""

from __future__ import annotations

from prometheus_client import REGISTRY

from liveassist.observability.metrics import (
    ACTIVE_CONNECTIONS,
    get_content_type,
    get_metrics,
    record_live_connect,
    record_live_disconnect,
    record_log_flush,
    record_log_queue_size,
    record_mode_switch,
    record_tool_call,
)


class TestMetricsModule:
    """Tests for metrics module functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """Test get_metrics returns bytes."""
        result = get_metrics()
        assert isinstance(result, bytes)

    def test_get_content_type(self) -> None:
        """Test get_content_type returns valid content type."""
        content_type = get_content_type()
        assert "text/plain" in content_type or "text/openmetrics" in content_type

    def test_record_live_connect(self) -> None:
        """Test successful connects raise the active gauge and disconnects lower it."""
        before = ACTIVE_CONNECTIONS._value.get()

        record_live_connect("success", 0.4)
        assert ACTIVE_CONNECTIONS._value.get() == before + 1
        record_live_disconnect()
        assert ACTIVE_CONNECTIONS._value.get() == before

        output = get_metrics().decode("utf-8")
        assert 'liveassist_live_connect_total{outcome="success"}' in output
        assert "liveassist_live_connect_seconds" in output

    def test_failed_connect_not_active(self) -> None:
        """Test failed connects do not count as open connections."""
        before = ACTIVE_CONNECTIONS._value.get()

        record_live_connect("error")

        assert ACTIVE_CONNECTIONS._value.get() == before

    def test_record_tool_call(self) -> None:
        """Test tool calls are labelled by tool and outcome."""
        labels = {"tool": "listReports", "outcome": "timeout"}
        before = REGISTRY.get_sample_value("liveassist_tool_calls_total", labels) or 0.0

        record_tool_call("listReports", "timeout", 30.0)

        assert REGISTRY.get_sample_value("liveassist_tool_calls_total", labels) == before + 1
        assert "liveassist_tool_call_seconds" in get_metrics().decode("utf-8")

    def test_interaction_log_metrics(self) -> None:
        """Test flush outcomes and queue size are exported."""
        labels = {"transport": "database", "outcome": "error"}
        before = REGISTRY.get_sample_value("liveassist_interaction_log_flush_total", labels) or 0.0

        record_log_flush("database", "error")
        record_log_queue_size(7)

        assert (
            REGISTRY.get_sample_value("liveassist_interaction_log_flush_total", labels)
            == before + 1
        )
        assert REGISTRY.get_sample_value("liveassist_interaction_log_queue_size") == 7.0

    def test_record_mode_switch(self) -> None:
        """Test mode switches are counted by target mode."""
        record_mode_switch("text")

        output = get_metrics().decode("utf-8")
        assert 'liveassist_mode_switch_total{mode="text"}' in output


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    def test_metrics_endpoint_returns_200(self, test_client) -> None:
        """Test /metrics endpoint returns 200."""
        response = test_client.get("/metrics")

        assert response.status_code == 200

    def test_metrics_endpoint_content_type(self, test_client) -> None:
        """Test /metrics endpoint returns correct content type."""
        response = test_client.get("/metrics")

        assert "text/plain" in response.headers["content-type"]
        assert "liveassist_" in response.text
