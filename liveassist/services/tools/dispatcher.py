"""Dispatch of model-issued tool calls to registered handlers.

Every function call is answered exactly once: with the handler's result, or
with a failure for unknown tools, handler errors and timeouts. Calls the
server cancels are abandoned without a response.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Protocol

from liveassist.logging_config import get_logger, sanitize_for_log
from liveassist.observability.metrics import record_tool_call
from liveassist.services.live.protocol import FunctionCall, ToolCallEvent, ToolResponse
from liveassist.services.tools.exceptions import ToolNotFoundError, ToolTimeoutError

logger: Any = get_logger(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any] | Any]
ResponseHook = Callable[[FunctionCall, ToolResponse], None]


class ToolResponder(Protocol):
    """Sends tool responses back over the live connection."""

    def send_tool_response(self, responses: ToolResponse | Sequence[ToolResponse]) -> bool:
        ...


class ToolCallDispatcher:
    """Routes function calls to handlers and answers each one.

    Usage:
        dispatcher = ToolCallDispatcher(client, build_default_handlers(...))
        responses = await dispatcher.dispatch(tool_call_event)
    """

    def __init__(
        self,
        responder: ToolResponder,
        handlers: Mapping[str, ToolHandler] | None = None,
        *,
        timeout_seconds: float = 30.0,
        on_response: ResponseHook | None = None,
    ) -> None:
        self._responder = responder
        self._handlers: dict[str, ToolHandler] = dict(handlers or {})
        self._timeout = timeout_seconds
        self.on_response = on_response

        self._inflight: dict[str, asyncio.Task[ToolResponse]] = {}
        self._cancelled: set[str] = set()

    # =========================================================================
    # Registry
    # =========================================================================

    def register(self, name: str, handler: ToolHandler) -> None:
        if name in self._handlers:
            logger.warning(f"Replacing handler for tool {name}")
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def has_handler(self, name: str) -> bool:
        return name in self._handlers

    @property
    def tool_names(self) -> list[str]:
        return sorted(self._handlers)

    @property
    def pending_call_ids(self) -> list[str]:
        return list(self._inflight)

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def dispatch(
        self,
        tool_call: ToolCallEvent | Sequence[FunctionCall],
    ) -> list[ToolResponse]:
        """Run every function call concurrently.

        Each response is sent as soon as its handler finishes.

        Returns:
            Responses sent, in call order (cancelled calls omitted).
        """
        calls = tool_call.function_calls if isinstance(tool_call, ToolCallEvent) else tuple(tool_call)
        if not calls:
            return []

        tasks = []
        for call in calls:
            task = asyncio.create_task(self._run(call))
            self._inflight[call.id] = task
            tasks.append(task)

        results = await asyncio.gather(*tasks, return_exceptions=True)
        return [result for result in results if isinstance(result, ToolResponse)]

    def cancel(self, call_ids: Sequence[str]) -> int:
        """Abandon running calls the server revoked.

        Returns:
            Number of calls cancelled.
        """
        cancelled = 0
        for call_id in call_ids:
            task = self._inflight.get(call_id)
            if task is None or task.done():
                continue
            self._cancelled.add(call_id)
            task.cancel()
            cancelled += 1
        if cancelled:
            logger.info(f"Cancelled {cancelled} tool call(s)")
        return cancelled

    def cancel_all(self) -> int:
        return self.cancel(list(self._inflight))

    async def _run(self, call: FunctionCall) -> ToolResponse:
        started = time.perf_counter()
        handler = self._handlers.get(call.name)
        outcome = "success"

        try:
            if handler is None:
                raise ToolNotFoundError(call.name)
            logger.info(f"Tool call {call.name} ({call.id}): {sanitize_for_log(call.args)}")
            result = await asyncio.wait_for(self._invoke(handler, call.args), self._timeout)
            response = ToolResponse(call_id=call.id, name=call.name, success=True, result=result)
        except asyncio.CancelledError:
            if call.id in self._cancelled:
                self._cancelled.discard(call.id)
                record_tool_call(call.name, "cancelled", time.perf_counter() - started)
                logger.info(f"Tool call {call.name} ({call.id}) cancelled by server")
            raise
        except ToolNotFoundError as e:
            outcome = "unknown"
            logger.warning(str(e))
            response = ToolResponse(call_id=call.id, name=call.name, success=False, error=str(e))
        except TimeoutError:
            outcome = "timeout"
            error = ToolTimeoutError(call.name, self._timeout)
            logger.error(str(error))
            response = ToolResponse(call_id=call.id, name=call.name, success=False, error=str(error))
        except Exception as e:
            outcome = "error"
            logger.error(f"Tool {call.name} failed: {e}")
            response = ToolResponse(call_id=call.id, name=call.name, success=False, error=str(e))
        finally:
            self._inflight.pop(call.id, None)

        record_tool_call(call.name, outcome, time.perf_counter() - started)
        self._responder.send_tool_response(response)
        if self.on_response is not None:
            try:
                self.on_response(call, response)
            except Exception as e:
                logger.error(f"Tool response hook failed: {e}")
        return response

    async def _invoke(self, handler: ToolHandler, args: dict[str, Any]) -> Any:
        result = handler(dict(args))
        if inspect.isawaitable(result):
            result = await result
        return result
