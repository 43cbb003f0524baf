"""Batched, non-blocking interaction audit logger.

Entries are queued synchronously and delivered in batches:
- every flush_interval seconds, and as soon as batch_size entries are queued
- primary transport first, retried with a linearly growing delay
- fallback transport once if the primary keeps failing
- batches that could not be delivered go back to the front of the queue

Logging never raises into the caller and never blocks on I/O.
"""

from __future__ import annotations

import asyncio
import atexit
import contextlib
import traceback
from collections import deque
from collections.abc import Sequence
from typing import Any

from liveassist.config import Settings, get_settings
from liveassist.db.models import InteractionType
from liveassist.logging_config import get_logger
from liveassist.observability.metrics import record_log_flush, record_log_queue_size
from liveassist.services.interaction_log.protocol import (
    InteractionLogEntry,
    LogTransport,
    QueueStatus,
)
from liveassist.services.interaction_log.transports import DatabaseLogTransport, HttpLogTransport
from liveassist.services.live.protocol import FunctionCall, ToolResponse

logger: Any = get_logger(__name__)


class InteractionAuditLogger:
    """Queue of audit entries with periodic, retrying delivery.

    Usage:
        audit = InteractionAuditLogger.from_settings()
        audit.start()
        audit.log_user_message(session_id, "Hello")
        ...
        await audit.close()
    """

    def __init__(
        self,
        primary: LogTransport,
        fallback: LogTransport | None = None,
        *,
        batch_size: int = 10,
        flush_interval: float = 2.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self._primary = primary
        self._fallback = fallback
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        self._queue: deque[InteractionLogEntry] = deque()
        self._flushing = False
        self._periodic_task: asyncio.Task[None] | None = None
        self._pending_flushes: set[asyncio.Task[bool]] = set()
        self._exit_hook_registered = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        primary: LogTransport | None = None,
        fallback: LogTransport | None = None,
    ) -> InteractionAuditLogger:
        """Build a logger with the database as primary and HTTP as fallback."""
        s = settings or get_settings()
        return cls(
            primary or DatabaseLogTransport(),
            fallback if fallback is not None else HttpLogTransport.from_settings(s),
            batch_size=s.interaction_log_batch_size,
            flush_interval=s.interaction_log_flush_interval,
            max_retries=s.interaction_log_max_retries,
            retry_delay=s.interaction_log_retry_delay,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._periodic_task is not None and not self._periodic_task.done()

    def start(self) -> None:
        """Start periodic flushing. Must be called from a running event loop."""
        if self.is_running:
            return
        self._periodic_task = asyncio.get_running_loop().create_task(self._run_periodic())
        if not self._exit_hook_registered:
            atexit.register(self._flush_at_exit)
            self._exit_hook_registered = True
        logger.debug(f"Interaction logger started (interval={self.flush_interval}s)")

    async def close(self) -> None:
        """Stop periodic flushing and deliver what is left."""
        if self._periodic_task is not None:
            self._periodic_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._periodic_task
            self._periodic_task = None

        if self._pending_flushes:
            await asyncio.gather(*self._pending_flushes, return_exceptions=True)

        await self.force_flush()
        if self._queue:
            logger.warning(f"{len(self._queue)} interaction log entries still undelivered")

    async def _run_periodic(self) -> None:
        while True:
            await asyncio.sleep(self.flush_interval)
            await self.flush()

    def _flush_at_exit(self) -> None:
        """Best-effort delivery at interpreter exit."""
        if not self._queue:
            return
        logger.info(f"Flushing {len(self._queue)} interaction log entries at exit")
        try:
            asyncio.run(self._deliver_remaining(max_retries=1))
        except Exception as e:
            logger.error(f"Interaction log exit flush failed: {e}")

    # =========================================================================
    # Queueing
    # =========================================================================

    def log(self, entry: InteractionLogEntry) -> bool:
        """Queue an entry. Never blocks and never raises.

        Returns:
            False if the entry was rejected.
        """
        if not entry.session_id or not entry.interaction_type:
            logger.warning("Dropping interaction log entry without session_id or interaction_type")
            return False

        self._queue.append(entry)
        record_log_queue_size(len(self._queue))
        if len(self._queue) >= self.batch_size:
            self._schedule_flush()
        return True

    def log_event(
        self,
        session_id: str,
        interaction_type: InteractionType,
        content: dict[str, Any] | None = None,
        *,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        return self.log(
            InteractionLogEntry(
                session_id=session_id,
                interaction_type=interaction_type,
                content=content or {},
                metadata=metadata or {},
                user_id=user_id,
            )
        )

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the periodic task or close() delivers the entries
            return
        task = loop.create_task(self.flush())
        self._pending_flushes.add(task)
        task.add_done_callback(self._pending_flushes.discard)

    # =========================================================================
    # Helpers
    # =========================================================================

    def log_session_start(
        self, session_id: str, *, user_id: str | None = None, metadata: dict[str, Any] | None = None
    ) -> bool:
        return self.log_event(
            session_id,
            InteractionType.session_start,
            {"event": "session_started"},
            user_id=user_id,
            metadata=metadata,
        )

    def log_session_end(
        self, session_id: str, *, user_id: str | None = None, metadata: dict[str, Any] | None = None
    ) -> bool:
        """Queue a session_end entry and flush without waiting for the batch to fill."""
        logged = self.log_event(
            session_id,
            InteractionType.session_end,
            {"event": "session_ended"},
            user_id=user_id,
            metadata=metadata,
        )
        self._schedule_flush()
        return logged

    def log_user_message(
        self, session_id: str, text: str, *, user_id: str | None = None, metadata: dict[str, Any] | None = None
    ) -> bool:
        return self.log_event(
            session_id,
            InteractionType.user_message,
            {"text": text, "length": len(text)},
            user_id=user_id,
            metadata=metadata,
        )

    def log_assistant_response(
        self, session_id: str, text: str, *, user_id: str | None = None, metadata: dict[str, Any] | None = None
    ) -> bool:
        return self.log_event(
            session_id,
            InteractionType.assistant_response,
            {"text": text, "length": len(text)},
            user_id=user_id,
            metadata=metadata,
        )

    def log_audio_input(
        self,
        session_id: str,
        *,
        size_bytes: int,
        duration_ms: float,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        return self.log_event(
            session_id,
            InteractionType.audio_input,
            {"audio_duration_ms": round(duration_ms), "audio_size_bytes": size_bytes},
            user_id=user_id,
            metadata=metadata,
        )

    def log_audio_output(
        self,
        session_id: str,
        *,
        size_bytes: int,
        duration_ms: float,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        return self.log_event(
            session_id,
            InteractionType.audio_output,
            {"audio_duration_ms": round(duration_ms), "audio_size_bytes": size_bytes},
            user_id=user_id,
            metadata=metadata,
        )

    def log_tool_call(
        self, session_id: str, call: FunctionCall, *, user_id: str | None = None
    ) -> bool:
        return self.log_event(
            session_id,
            InteractionType.tool_call,
            {"function_name": call.name, "arguments": call.args, "call_id": call.id},
            user_id=user_id,
        )

    def log_tool_response(
        self, session_id: str, response: ToolResponse, *, user_id: str | None = None
    ) -> bool:
        return self.log_event(
            session_id,
            InteractionType.tool_response,
            {"response": response.to_payload(), "success": response.success, "call_id": response.call_id},
            user_id=user_id,
            metadata={"function_name": response.name},
        )

    def log_error(
        self,
        session_id: str,
        error: BaseException | str,
        *,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        if isinstance(error, BaseException):
            content = {
                "error_message": str(error) or type(error).__name__,
                "error_type": type(error).__name__,
                "stack": "".join(traceback.format_exception(error)) if error.__traceback__ else None,
            }
        else:
            content = {"error_message": error, "error_type": "Unknown", "stack": None}
        return self.log_event(
            session_id, InteractionType.error, content, user_id=user_id, metadata=metadata
        )

    # =========================================================================
    # Delivery
    # =========================================================================

    def queue_status(self) -> QueueStatus:
        return QueueStatus(queue_size=len(self._queue), is_flushing=self._flushing)

    async def flush(self) -> bool:
        """Deliver everything queued so far.

        No-op while another flush is running or when the queue is empty.

        Returns:
            True if a batch was delivered.
        """
        if self._flushing or not self._queue:
            return False

        self._flushing = True
        batch = list(self._queue)
        self._queue.clear()
        try:
            delivered = await self._deliver(batch, max_retries=self.max_retries)
        except asyncio.CancelledError:
            self._requeue(batch)
            raise
        finally:
            self._flushing = False

        if not delivered:
            self._requeue(batch)
        record_log_queue_size(len(self._queue))
        return delivered

    async def force_flush(self) -> bool:
        """Flush, then give anything left one more fallback attempt."""
        delivered = await self.flush()
        if self._queue and not self._flushing and self._fallback is not None:
            batch = list(self._queue)
            self._queue.clear()
            if await self._try_fallback(batch):
                delivered = True
            else:
                self._requeue(batch)
            record_log_queue_size(len(self._queue))
        return delivered

    async def _deliver_remaining(self, max_retries: int) -> None:
        batch = list(self._queue)
        self._queue.clear()
        if not await self._deliver(batch, max_retries=max_retries):
            self._requeue(batch)

    async def _deliver(self, batch: Sequence[InteractionLogEntry], *, max_retries: int) -> bool:
        for attempt in range(1, max_retries + 1):
            try:
                await self._primary.insert(batch)
            except Exception as e:
                record_log_flush(self._primary.name, "error")
                logger.warning(
                    f"Interaction log flush attempt {attempt}/{max_retries} failed: {e}"
                )
                if attempt < max_retries:
                    await asyncio.sleep(self.retry_delay * attempt)
                continue

            record_log_flush(self._primary.name, "success")
            logger.debug(f"Flushed {len(batch)} interaction log entries")
            return True

        return await self._try_fallback(batch)

    async def _try_fallback(self, batch: Sequence[InteractionLogEntry]) -> bool:
        if self._fallback is None:
            return False
        try:
            await self._fallback.insert(batch)
        except Exception as e:
            record_log_flush(self._fallback.name, "error")
            logger.error(f"Interaction log fallback failed: {e}")
            return False
        record_log_flush(self._fallback.name, "success")
        logger.info(f"Delivered {len(batch)} interaction log entries via {self._fallback.name}")
        return True

    def _requeue(self, batch: Sequence[InteractionLogEntry]) -> None:
        self._queue.extendleft(reversed(batch))
