"""Default handlers for the declared tools.

Report tools persist through the database; navigation and user-input tools
are forwarded to a UIBridge supplied by the host application.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from liveassist.db.models import Report, ReportCategory
from liveassist.db.repositories.reports import AsyncReportRepository, parse_category
from liveassist.db.session import get_session_context
from liveassist.logging_config import get_logger
from liveassist.services.tools.declarations import SECTION_IDS, SECTION_MODES, USER_INFO_TYPES
from liveassist.services.tools.dispatcher import ToolHandler
from liveassist.services.tools.exceptions import ToolExecutionError

logger: Any = get_logger(__name__)

SessionContextFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class UIBridge(Protocol):
    """UI actions the model can trigger."""

    async def scroll_to_section(self, section_id: str) -> None:
        ...

    async def switch_section_mode(self, section_id: str, mode: str) -> None:
        ...

    async def request_user_info(self, info_type: str, question: str) -> None:
        ...


class LoggingUIBridge:
    """UIBridge for headless use: records requested UI actions in the log."""

    async def scroll_to_section(self, section_id: str) -> None:
        logger.info(f"UI: scroll to section {section_id}")

    async def switch_section_mode(self, section_id: str, mode: str) -> None:
        logger.info(f"UI: switch section {section_id} to {mode} mode")

    async def request_user_info(self, info_type: str, question: str) -> None:
        logger.info(f"UI: ask user for {info_type}: {question}")


def serialize_report(report: Report, *, include_content: bool = True) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": report.id,
        "title": report.title,
        "category": report.category.value,
        "tags": report.tags,
        "status": report.status.value,
        "createdAt": report.created_at.isoformat(),
        "updatedAt": report.updated_at.isoformat(),
        "metadata": {
            "wordCount": report.word_count,
            "estimatedReadTime": report.estimated_read_time,
            "source": report.source,
        },
    }
    if include_content:
        data["content"] = report.content
    return data


class ReportService:
    """Report storage for tool handlers, one database session per operation."""

    def __init__(
        self,
        session_context: SessionContextFactory | None = None,
        user_id: str | None = None,
    ) -> None:
        self._session_context = session_context or get_session_context
        self.user_id = user_id

    async def create(
        self,
        *,
        title: str,
        content: str,
        category: ReportCategory,
        tags: list[str] | None = None,
        user_info: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        async with self._session_context() as session:
            report = await AsyncReportRepository(session).create(
                title=title,
                content=content,
                category=category,
                tags=tags,
                user_info=user_info,
                user_id=self.user_id,
            )
            return serialize_report(report, include_content=False)

    async def list(self, category: ReportCategory | None = None) -> list[dict[str, Any]]:
        async with self._session_context() as session:
            reports = await AsyncReportRepository(session).list(
                category=category, user_id=self.user_id
            )
            return [serialize_report(report, include_content=False) for report in reports]

    async def get(
        self,
        *,
        report_id: str | None = None,
        title: str | None = None,
    ) -> dict[str, Any] | None:
        async with self._session_context() as session:
            repo = AsyncReportRepository(session)
            report = await repo.get_by_id(report_id) if report_id else None
            if report is None and title:
                report = await repo.get_by_title(title)
            return serialize_report(report) if report else None

    async def update(
        self,
        report_id: str,
        *,
        content: str,
        title: str | None = None,
        category: ReportCategory | None = None,
        tags: list[str] | None = None,
    ) -> dict[str, Any] | None:
        async with self._session_context() as session:
            report = await AsyncReportRepository(session).update(
                report_id, content=content, title=title, category=category, tags=tags
            )
            return serialize_report(report, include_content=False) if report else None


def _require(args: dict[str, Any], *names: str) -> None:
    missing = [name for name in names if not args.get(name)]
    if missing:
        raise ToolExecutionError(f"Missing required argument(s): {', '.join(missing)}")


def _choice(args: dict[str, Any], name: str, allowed: list[str]) -> str:
    value = args.get(name)
    if value not in allowed:
        raise ToolExecutionError(f"Invalid {name} {value!r}; expected one of {allowed}")
    return value


def _category(value: str | None) -> ReportCategory | None:
    if value is None:
        return None
    category = parse_category(value)
    if category is None:
        raise ToolExecutionError(f"Invalid category {value!r}")
    return category


class ToolHandlers:
    """Implementations of the declared tools."""

    def __init__(self, reports: ReportService, ui: UIBridge) -> None:
        self.reports = reports
        self.ui = ui

    async def generate_fitness_report(self, args: dict[str, Any]) -> dict[str, Any]:
        _require(args, "title", "content", "category")
        report = await self.reports.create(
            title=args["title"],
            content=args["content"],
            category=_category(args["category"]) or ReportCategory.fitness,
            tags=list(args.get("tags") or []),
            user_info=args.get("userInfo"),
        )
        logger.info(f"Report saved: {report['id']}")
        return {"reportId": report["id"], "report": report, "message": "Report saved"}

    async def list_reports(self, args: dict[str, Any]) -> dict[str, Any]:
        reports = await self.reports.list(_category(args.get("category")))
        return {"count": len(reports), "reports": reports}

    async def get_report(self, args: dict[str, Any]) -> dict[str, Any]:
        if not args.get("reportId") and not args.get("title"):
            raise ToolExecutionError("Provide reportId or title")
        report = await self.reports.get(report_id=args.get("reportId"), title=args.get("title"))
        if report is None:
            raise ToolExecutionError("Report not found")
        return {"report": report}

    async def update_report(self, args: dict[str, Any]) -> dict[str, Any]:
        _require(args, "reportId", "content")
        tags = args.get("tags")
        report = await self.reports.update(
            args["reportId"],
            content=args["content"],
            title=args.get("title"),
            category=_category(args.get("category")),
            tags=list(tags) if tags is not None else None,
        )
        if report is None:
            raise ToolExecutionError(f"Report {args['reportId']} not found")
        return {"report": report, "message": "Report updated"}

    async def scroll_to_section(self, args: dict[str, Any]) -> dict[str, Any]:
        section_id = _choice(args, "sectionId", SECTION_IDS)
        await self.ui.scroll_to_section(section_id)
        return {"sectionId": section_id, "status": "scrolled"}

    async def switch_section_mode(self, args: dict[str, Any]) -> dict[str, Any]:
        section_id = _choice(args, "sectionId", SECTION_IDS)
        mode = _choice(args, "mode", SECTION_MODES)
        await self.ui.switch_section_mode(section_id, mode)
        return {"sectionId": section_id, "mode": mode, "status": "switched"}

    async def collect_user_info(self, args: dict[str, Any]) -> dict[str, Any]:
        info_type = _choice(args, "infoType", USER_INFO_TYPES)
        _require(args, "question")
        await self.ui.request_user_info(info_type, args["question"])
        return {"infoType": info_type, "question": args["question"], "status": "awaiting_user_response"}

    def as_mapping(self) -> dict[str, ToolHandler]:
        return {
            "generateFitnessReport": self.generate_fitness_report,
            "listReports": self.list_reports,
            "getReport": self.get_report,
            "updateReport": self.update_report,
            "scrollToSection": self.scroll_to_section,
            "switchSectionMode": self.switch_section_mode,
            "collectUserInfo": self.collect_user_info,
        }


def build_default_handlers(
    reports: ReportService | None = None,
    ui: UIBridge | None = None,
) -> dict[str, ToolHandler]:
    """Handlers for every declared tool."""
    return ToolHandlers(reports or ReportService(), ui or LoggingUIBridge()).as_mapping()
