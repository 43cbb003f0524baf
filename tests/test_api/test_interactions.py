"""Tests for interaction log endpoints."""

from __future__ import annotations

import time


def log_record(session_id: str = "s1", interaction_type: str = "user_message", **extra) -> dict:
    return {
        "session_id": session_id,
        "interaction_type": interaction_type,
        "content": {"text": "Hello", "length": 5},
        "metadata": {},
        **extra,
    }


class TestAuth:
    """Tests for JWT protection of the interaction endpoints."""

    def test_missing_token(self, test_client) -> None:
        """Test requests without a token are rejected."""
        response = test_client.post("/api/interactions/log", json={"logs": [log_record()]})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_bad_signature(self, test_client) -> None:
        """Test tokens signed with another secret are rejected."""
        import jwt

        token = jwt.encode({"sub": "user-1"}, "another-secret", algorithm="HS256")

        response = test_client.get(
            "/api/interactions/log", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    def test_expired_token(self, test_client, auth_headers) -> None:
        """Test expired tokens are rejected."""
        response = test_client.get(
            "/api/interactions/log", headers=auth_headers(exp=int(time.time()) - 60)
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Token has expired"


class TestInsertLogs:
    """Tests for POST /api/interactions/log."""

    def test_insert_batch(self, test_client, auth_headers) -> None:
        """Test a batch is stored and counted."""
        response = test_client.post(
            "/api/interactions/log",
            json={"logs": [log_record(), log_record(interaction_type="assistant_response")]},
            headers=auth_headers(),
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "count": 2}

    def test_user_id_comes_from_token(self, test_client, auth_headers) -> None:
        """Test stored rows belong to the token subject, not the payload."""
        test_client.post(
            "/api/interactions/log",
            json={"logs": [log_record(user_id="someone-else")]},
            headers=auth_headers("user-7"),
        )

        logs = test_client.get("/api/interactions/log", headers=auth_headers("user-7")).json()
        assert len(logs) == 1
        assert logs[0]["user_id"] == "user-7"
        assert logs[0]["content"] == {"text": "Hello", "length": 5}
        assert test_client.get("/api/interactions/log", headers=auth_headers("someone-else")).json() == []

    def test_missing_logs(self, test_client, auth_headers) -> None:
        """Test a body without a logs array is rejected."""
        for body in ({}, {"logs": []}, {"logs": "nope"}):
            response = test_client.post("/api/interactions/log", json=body, headers=auth_headers())
            assert response.status_code == 400
            assert "logs array required" in response.json()["detail"]

    def test_invalid_entry(self, test_client, auth_headers) -> None:
        """Test entries with an unknown interaction type are rejected."""
        response = test_client.post(
            "/api/interactions/log",
            json={"logs": [log_record(interaction_type="telepathy")]},
            headers=auth_headers(),
        )

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid log entry")

    def test_batch_too_large(self, test_client, auth_headers) -> None:
        """Test batches above the limit are rejected."""
        response = test_client.post(
            "/api/interactions/log",
            json={"logs": [log_record() for _ in range(501)]},
            headers=auth_headers(),
        )

        assert response.status_code == 400


class TestReadLogs:
    """Tests for GET /api/interactions/log and /api/interactions/stats."""

    def test_filter_by_session(self, test_client, auth_headers) -> None:
        """Test the session_id filter and newest-first order."""
        test_client.post(
            "/api/interactions/log",
            json={
                "logs": [
                    log_record("s1", timestamp="2026-01-01T10:00:00Z"),
                    log_record("s1", "assistant_response", timestamp="2026-01-01T10:00:05Z"),
                    log_record("s2"),
                ]
            },
            headers=auth_headers(),
        )

        logs = test_client.get(
            "/api/interactions/log", params={"session_id": "s1"}, headers=auth_headers()
        ).json()

        assert [log["interaction_type"] for log in logs] == ["assistant_response", "user_message"]

    def test_stats(self, test_client, auth_headers) -> None:
        """Test stats count interactions, sessions and types."""
        test_client.post(
            "/api/interactions/log",
            json={
                "logs": [
                    log_record("s1"),
                    log_record("s1", "assistant_response"),
                    log_record("s2", "session_start", content={"event": "session_started"}),
                ]
            },
            headers=auth_headers(),
        )

        response = test_client.get("/api/interactions/stats", headers=auth_headers())

        assert response.status_code == 200
        stats = response.json()
        assert stats["total_interactions"] == 3
        assert stats["total_sessions"] == 2
        assert stats["interaction_types"] == {
            "user_message": 1,
            "assistant_response": 1,
            "session_start": 1,
        }
        assert stats["period_days"] == 7
        assert sum(stats["daily_breakdown"].values()) == 3
