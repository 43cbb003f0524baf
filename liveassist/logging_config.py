"""Logging configuration using Loguru.

Provides structured logging with:
- Console output for development
- File rotation for production
- Secrets and raw audio payloads kept out of log lines
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

# Keys whose values are never written to logs
SECRET_MARKERS = ("api_key", "token", "authorization", "secret", "password")

# Payload fields that carry base64 media
PAYLOAD_FIELDS = frozenset({"data", "audio", "inline_data"})
MAX_PAYLOAD_PREVIEW = 32


def setup_logging(
    level: str = "INFO",
    log_dir: str = "logs",
    enable_file: bool = True,
) -> None:
    """Configure application logging.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files
        enable_file: Whether to enable file logging
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=True,  # Disable in production for security
    )

    if enable_file:
        log_path = Path(log_dir)
        log_path.mkdir(exist_ok=True)

        logger.add(
            log_path / "liveassist_{time:YYYY-MM-DD}.log",
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{name}:{function}:{line} | "
                "{message}"
            ),
            level=level,
            rotation="100 MB",
            retention="30 days",
            compression="gz",
            backtrace=True,
            diagnose=False,
        )

        # Error-only log for quick debugging
        logger.add(
            log_path / "errors_{time:YYYY-MM-DD}.log",
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{name}:{function}:{line} | "
                "{message}\n{exception}"
            ),
            level="ERROR",
            rotation="50 MB",
            retention="90 days",
            compression="gz",
            backtrace=True,
            diagnose=False,
        )

    logger.info(f"Logging initialized at {level} level")


def get_logger(name: str) -> "logger":
    """Get a logger instance with the given name.

    Usage:
        from liveassist.logging_config import get_logger
        logger = get_logger(__name__)
        logger.info("Message")
    """
    return logger.bind(name=name)


def truncate_payload(value: str | bytes) -> str:
    """Shorten a media payload to a preview: 'UklGRi...(2048 chars)'."""
    if isinstance(value, bytes):
        return f"<{len(value)} bytes>"
    if len(value) <= MAX_PAYLOAD_PREVIEW:
        return value
    return f"{value[:MAX_PAYLOAD_PREVIEW]}...({len(value)} chars)"


def sanitize_for_log(data: dict[str, Any]) -> dict[str, Any]:
    """Remove secrets and shorten media payloads in a dict before logging.

    Redacts: any key containing api_key, token, authorization, secret, password
    Truncates: data/audio/inline_data payloads
    """
    result: dict[str, Any] = {}

    for key, value in data.items():
        lowered = key.lower()
        if any(marker in lowered for marker in SECRET_MARKERS):
            result[key] = "[REDACTED]"
        elif lowered in PAYLOAD_FIELDS and isinstance(value, str | bytes):
            result[key] = truncate_payload(value)
        elif isinstance(value, dict):
            result[key] = sanitize_for_log(value)
        elif isinstance(value, list):
            result[key] = [
                sanitize_for_log(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value

    return result
