"""Tool call services: declarations, dispatch and default handlers."""

from liveassist.services.tools.declarations import (
    FUNCTION_DECLARATIONS,
    build_tools,
    declaration_names,
)
from liveassist.services.tools.dispatcher import ToolCallDispatcher, ToolHandler, ToolResponder
from liveassist.services.tools.exceptions import (
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolTimeoutError,
)
from liveassist.services.tools.handlers import (
    LoggingUIBridge,
    ReportService,
    ToolHandlers,
    UIBridge,
    build_default_handlers,
)

__all__ = [
    # Declarations
    "FUNCTION_DECLARATIONS",
    "build_tools",
    "declaration_names",
    # Dispatch
    "ToolCallDispatcher",
    "ToolHandler",
    "ToolResponder",
    # Handlers
    "ToolHandlers",
    "ReportService",
    "UIBridge",
    "LoggingUIBridge",
    "build_default_handlers",
    # Exceptions
    "ToolError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolTimeoutError",
]
