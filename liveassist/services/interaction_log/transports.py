"""Transports delivering interaction log batches.

- DatabaseLogTransport: primary, inserts into the interactions_log table
- HttpLogTransport: fallback, POSTs {"logs": [...]} to the log endpoint
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any

import aiohttp
from sqlalchemy.ext.asyncio import AsyncSession

from liveassist.config import Settings, get_settings
from liveassist.db.repositories.interactions import AsyncInteractionLogRepository
from liveassist.db.session import get_session_context
from liveassist.logging_config import get_logger
from liveassist.services.interaction_log.exceptions import LogTransportError
from liveassist.services.interaction_log.protocol import InteractionLogEntry

logger: Any = get_logger(__name__)

SessionContextFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class DatabaseLogTransport:
    """Insert batches through the interaction log repository."""

    name = "database"

    def __init__(self, session_context: SessionContextFactory | None = None) -> None:
        self._session_context = session_context or get_session_context

    async def insert(self, batch: Sequence[InteractionLogEntry]) -> None:
        try:
            async with self._session_context() as session:
                await AsyncInteractionLogRepository(session).insert_batch(
                    [entry.to_record() for entry in batch]
                )
        except Exception as e:
            raise LogTransportError(self.name, str(e)) from e


@dataclass(slots=True)
class HttpLogTransport:
    """POST batches to the interaction log endpoint."""

    url: str
    auth_token: str | None = None
    timeout_seconds: float = 10.0

    name: str = "http"

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> HttpLogTransport | None:
        """Build the fallback transport, or None when no URL is configured."""
        s = settings or get_settings()
        if not s.interaction_log_fallback_url:
            return None
        token = s.interaction_log_fallback_token
        return cls(
            url=s.interaction_log_fallback_url,
            auth_token=token.get_secret_value() if token else None,
            timeout_seconds=s.interaction_log_timeout_seconds,
        )

    async def insert(self, batch: Sequence[InteractionLogEntry]) -> None:
        payload = {"logs": [entry.to_record() for entry in batch]}
        headers = {}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.url, json=payload, headers=headers) as resp:
                    if resp.status >= 400:
                        body = await resp.text()
                        raise LogTransportError(
                            self.name, f"HTTP {resp.status} {body}", status_code=resp.status
                        )
        except LogTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as e:
            raise LogTransportError(self.name, f"{type(e).__name__}: {e}") from e
