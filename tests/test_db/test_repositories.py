"""Tests for database repositories."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from liveassist.db.models import InteractionLog, InteractionType, Report, ReportCategory
from liveassist.db.repositories import AsyncInteractionLogRepository, AsyncReportRepository
from liveassist.db.repositories.interactions import record_to_row
from liveassist.db.repositories.reports import parse_category


def record(session_id: str = "s1", interaction_type: str = "user_message", **extra) -> dict:
    return {
        "session_id": session_id,
        "interaction_type": interaction_type,
        "content": {"text": "Hello"},
        **extra,
    }


class TestModels:
    """Tests for model validation."""

    def test_record_to_row(self) -> None:
        """Test wire records become rows with JSON text columns."""
        row = record_to_row(
            record(metadata={"source": "web"}, timestamp="2026-03-01T12:00:00Z"), user_id="u1"
        )

        assert isinstance(row, InteractionLog)
        assert row.interaction_type == InteractionType.user_message
        assert row.content == {"text": "Hello"}
        assert row.metadata_dict == {"source": "web"}
        assert row.user_id == "u1"
        assert row.timestamp == datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def test_content_must_be_object(self) -> None:
        """Test non-object content is rejected."""
        with pytest.raises(ValidationError):
            InteractionLog.model_validate(
                {"session_id": "s1", "interaction_type": "error", "content_json": "[1, 2]"}
            )

    def test_tags_must_be_strings(self) -> None:
        """Test report tags are validated."""
        with pytest.raises(ValidationError):
            Report.model_validate({"title": "t", "content": "c", "tags_json": [1, 2]})

    def test_read_time(self) -> None:
        """Test read time rounds up at 200 words per minute."""
        report = Report.model_validate({"title": "t", "content": "word " * 201})

        report.refresh_metadata()

        assert report.word_count == 201
        assert report.estimated_read_time == 2

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("fitness", ReportCategory.fitness), ("other", ReportCategory.other), ("bogus", None), (None, None)],
    )
    def test_parse_category(self, value, expected) -> None:
        """Test category parsing tolerates unknown values."""
        assert parse_category(value) == expected


class TestAsyncInteractionLogRepository:
    """Tests for AsyncInteractionLogRepository."""

    @pytest.mark.asyncio
    async def test_insert_batch(self, async_session) -> None:
        """Test a batch is inserted and listed in timestamp order."""
        repo = AsyncInteractionLogRepository(async_session)
        base = datetime(2026, 3, 1, tzinfo=UTC)

        rows = await repo.insert_batch(
            [
                record(interaction_type="assistant_response", timestamp=base + timedelta(seconds=5)),
                record(timestamp=base),
            ],
            user_id="u1",
        )

        assert len(rows) == 2
        listed = await repo.list_for_session("s1")
        assert [row.interaction_type for row in listed] == [
            InteractionType.user_message,
            InteractionType.assistant_response,
        ]

    @pytest.mark.asyncio
    async def test_list_for_user(self, async_session) -> None:
        """Test user listing filters by user and session."""
        repo = AsyncInteractionLogRepository(async_session)
        await repo.insert_batch([record("s1"), record("s2")], user_id="u1")
        await repo.insert_batch([record("s1")], user_id="u2")

        assert len(await repo.list_for_user("u1")) == 2
        assert len(await repo.list_for_user("u1", session_id="s2")) == 1
        assert len(await repo.list_for_user("u1", limit=1)) == 1
        assert await repo.list_for_user("nobody") == []

    @pytest.mark.asyncio
    async def test_stats(self, async_session) -> None:
        """Test stats aggregate the recent period only."""
        repo = AsyncInteractionLogRepository(async_session)
        old = datetime.now(UTC) - timedelta(days=30)
        await repo.insert_batch(
            [
                record("s1"),
                record("s1", "tool_call"),
                record("s2", "tool_call"),
                record("s3", timestamp=old),
            ],
            user_id="u1",
        )

        stats = await repo.stats("u1", days=7)

        assert stats.total_interactions == 3
        assert stats.total_sessions == 2
        assert stats.interaction_types == {"user_message": 1, "tool_call": 2}
        assert stats.period_days == 7


class TestAsyncReportRepository:
    """Tests for AsyncReportRepository."""

    @pytest.mark.asyncio
    async def test_create(self, async_session) -> None:
        """Test creating a report fills metadata."""
        repo = AsyncReportRepository(async_session)

        report = await repo.create(
            title="Meal Plan",
            content="Eat more vegetables",
            category=ReportCategory.nutrition,
            tags=["diet"],
            user_info={"goals": "energy"},
            user_id="u1",
        )

        assert report.id
        assert report.tags == ["diet"]
        assert report.word_count == 3
        assert report.source == "ai-generated"

    @pytest.mark.asyncio
    async def test_get_by_title_case_insensitive(self, async_session) -> None:
        """Test title lookup ignores case."""
        repo = AsyncReportRepository(async_session)
        created = await repo.create(title="Meal Plan", content="x")

        found = await repo.get_by_title("MEAL PLAN")

        assert found is not None
        assert found.id == created.id
        assert await repo.get_by_title("Other") is None

    @pytest.mark.asyncio
    async def test_list_filters(self, async_session) -> None:
        """Test listing by category and user."""
        repo = AsyncReportRepository(async_session)
        await repo.create(title="A", content="a", category=ReportCategory.workout, user_id="u1")
        await repo.create(title="B", content="b", category=ReportCategory.health, user_id="u1")
        await repo.create(title="C", content="c", category=ReportCategory.workout, user_id="u2")

        workouts = await repo.list(category=ReportCategory.workout)
        mine = await repo.list(user_id="u1")

        assert sorted(r.title for r in workouts) == ["A", "C"]
        assert sorted(r.title for r in mine) == ["A", "B"]

    @pytest.mark.asyncio
    async def test_update(self, async_session) -> None:
        """Test update changes only the given fields."""
        repo = AsyncReportRepository(async_session)
        created = await repo.create(title="Plan", content="one", tags=["a"])

        updated = await repo.update(created.id, content="one two", category=ReportCategory.summary)

        assert updated is not None
        assert updated.title == "Plan"
        assert updated.word_count == 2
        assert updated.category == ReportCategory.summary
        assert updated.tags == ["a"]
        assert await repo.update("missing", content="x") is None
