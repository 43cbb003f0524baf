"""Application root for an assistant session.

Owns the lifecycle of the shared services: the database engine, the
interaction audit logger and the session orchestrator.
"""

from __future__ import annotations

from typing import Any

from liveassist.config import Settings, get_settings
from liveassist.core.orchestrator import SessionOrchestrator
from liveassist.db.session import close_db, init_db
from liveassist.logging_config import get_logger
from liveassist.services.audio.pipeline import AudioPipeline
from liveassist.services.interaction_log.logger import InteractionAuditLogger
from liveassist.services.live.client import LiveSessionClient
from liveassist.services.tools.handlers import ReportService, UIBridge, build_default_handlers

logger: Any = get_logger(__name__)


class AssistantRuntime:
    """Starts and stops everything one assistant session needs.

    Usage:
        async with AssistantRuntime(user_id="u-1") as runtime:
            await runtime.orchestrator.switch_to_text_mode()
            await runtime.orchestrator.send_text_message("Hi")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        user_id: str | None = None,
        ui_bridge: UIBridge | None = None,
        client: LiveSessionClient | None = None,
        audio: AudioPipeline | None = None,
        interaction_logger: InteractionAuditLogger | None = None,
        manage_database: bool = True,
    ) -> None:
        self.settings = settings or get_settings()
        self.user_id = user_id
        self._ui_bridge = ui_bridge
        self._client = client
        self._audio = audio
        self._manage_database = manage_database

        self.interaction_logger = interaction_logger or InteractionAuditLogger.from_settings(
            self.settings
        )
        self._orchestrator: SessionOrchestrator | None = None

    @property
    def orchestrator(self) -> SessionOrchestrator:
        if self._orchestrator is None:
            raise RuntimeError("AssistantRuntime has not been started")
        return self._orchestrator

    async def start(self) -> SessionOrchestrator:
        if self._orchestrator is not None:
            return self._orchestrator

        if self._manage_database:
            await init_db()
        self.interaction_logger.start()

        handlers = build_default_handlers(ReportService(user_id=self.user_id), self._ui_bridge)
        self._orchestrator = SessionOrchestrator(
            self.settings,
            client=self._client,
            audio=self._audio,
            tool_handlers=handlers,
            interaction_logger=self.interaction_logger,
            user_id=self.user_id,
        )
        logger.info("Assistant runtime started")
        return self._orchestrator

    async def stop(self) -> None:
        if self._orchestrator is not None:
            await self._orchestrator.close()
            self._orchestrator = None
        await self.interaction_logger.close()
        if self._manage_database:
            await close_db()
        logger.info("Assistant runtime stopped")

    async def __aenter__(self) -> AssistantRuntime:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
