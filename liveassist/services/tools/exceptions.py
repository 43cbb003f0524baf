"""Custom exceptions for tool call handling."""


class ToolError(Exception):
    """Base exception for tool call errors."""

    pass


class ToolNotFoundError(ToolError):
    """Raised when the model calls a tool with no registered handler."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ToolExecutionError(ToolError):
    """Raised by handlers for expected failures (bad arguments, missing records)."""

    pass


class ToolTimeoutError(ToolError):
    """Raised when a handler runs past its timeout."""

    def __init__(self, name: str, timeout_seconds: float) -> None:
        super().__init__(f"Tool {name} timed out after {timeout_seconds:.1f}s")
        self.name = name
        self.timeout_seconds = timeout_seconds
