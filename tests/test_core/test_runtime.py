"""Tests for the assistant runtime."""

from __future__ import annotations

import pytest
from conftest import FakeAudioPipeline, FakeConnector

from liveassist.core import AssistantRuntime
from liveassist.db.models import InteractionType
from liveassist.services.interaction_log import InteractionAuditLogger
from liveassist.services.live import LiveSessionClient


class MemoryTransport:
    name = "memory"

    def __init__(self) -> None:
        self.entries: list = []

    async def insert(self, batch) -> None:
        self.entries.extend(batch)


class TestAssistantRuntime:
    """Tests for starting and stopping session services."""

    def test_orchestrator_requires_start(self, settings) -> None:
        """Test the orchestrator is unavailable before start."""
        runtime = AssistantRuntime(
            settings,
            interaction_logger=InteractionAuditLogger(MemoryTransport()),
            manage_database=False,
        )

        with pytest.raises(RuntimeError):
            _ = runtime.orchestrator

    @pytest.mark.asyncio
    async def test_lifecycle(self, settings) -> None:
        """Test start wires the session and stop flushes its audit trail."""
        transport = MemoryTransport()
        audio = FakeAudioPipeline()
        runtime = AssistantRuntime(
            settings,
            user_id="user-1",
            client=LiveSessionClient(settings, connector=FakeConnector()),
            audio=audio,
            interaction_logger=InteractionAuditLogger(transport, flush_interval=60.0),
            manage_database=False,
        )

        async with runtime:
            orchestrator = runtime.orchestrator
            assert await runtime.start() is orchestrator
            assert runtime.interaction_logger.is_running
            assert "generateFitnessReport" in orchestrator.dispatcher.tool_names
            assert orchestrator.user_id == "user-1"

        assert audio.disposed
        assert not runtime.interaction_logger.is_running
        assert [e.interaction_type for e in transport.entries] == [
            InteractionType.session_start,
            InteractionType.session_end,
        ]
        assert all(e.user_id == "user-1" for e in transport.entries)
