"""Custom exceptions for interaction log delivery."""


class InteractionLogError(Exception):
    """Base exception for interaction log errors."""

    pass


class LogTransportError(InteractionLogError):
    """Raised when a transport fails to store a batch."""

    def __init__(self, transport: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{transport}: {message}")
        self.transport = transport
        self.status_code = status_code
