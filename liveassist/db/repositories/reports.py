"""Report repository."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from liveassist.db.models import Report, ReportCategory, ReportStatus


def parse_category(value: str | None) -> ReportCategory | None:
    if not value:
        return None
    try:
        return ReportCategory(value)
    except ValueError:
        return None


class AsyncReportRepository:
    """Async repository for tool handlers and API."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        *,
        title: str,
        content: str,
        category: ReportCategory = ReportCategory.other,
        tags: list[str] | None = None,
        user_info: dict[str, Any] | None = None,
        user_id: str | None = None,
        source: str = "ai-generated",
    ) -> Report:
        report = Report.model_validate(
            {
                "title": title,
                "content": content,
                "category": category,
                "tags_json": tags or [],
                "user_info_json": user_info,
                "user_id": user_id,
                "source": source,
                "status": ReportStatus.completed,
            }
        )
        report.refresh_metadata()
        self.session.add(report)
        await self.session.flush()
        return report

    async def get_by_id(self, report_id: str) -> Report | None:
        return await self.session.get(Report, report_id)

    async def get_by_title(self, title: str) -> Report | None:
        """Most recent report whose title matches case-insensitively."""
        query = (
            select(Report)
            .where(func.lower(Report.title) == title.lower())  # type: ignore[arg-type]
            .order_by(desc(Report.created_at))  # type: ignore[arg-type]
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalars().first()

    async def list(
        self,
        *,
        category: ReportCategory | None = None,
        user_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Report]:
        query = select(Report)
        if category:
            query = query.where(Report.category == category)  # type: ignore[arg-type]
        if user_id:
            query = query.where(Report.user_id == user_id)  # type: ignore[arg-type]
        query = query.order_by(desc(Report.created_at)).offset(offset).limit(limit)  # type: ignore[arg-type]
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(
        self,
        report_id: str,
        *,
        content: str | None = None,
        title: str | None = None,
        category: ReportCategory | None = None,
        tags: list[str] | None = None,
    ) -> Report | None:
        report = await self.get_by_id(report_id)
        if not report:
            return None
        if content is not None:
            report.content = content
            report.refresh_metadata()
        if title is not None:
            report.title = title
        if category is not None:
            report.category = category
        if tags is not None:
            report.tags_json = json.dumps(tags)
        report.updated_at = datetime.now(UTC)
        self.session.add(report)
        await self.session.flush()
        return report
