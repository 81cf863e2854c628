"""
hescore Structured Logging Configuration.

Provides consistent logging across all hescore components with:
- Structured JSON output for production
- Human-readable output for development
- Operation correlation via LogContext
- Sensitive data filtering (secret keys never reach a log line)

Usage:
    from hescore.logging import get_logger, configure_logging

    # At application startup
    configure_logging(level="INFO", json_format=True)

    # In modules
    logger = get_logger(__name__)
    logger.info("Encrypted query", extra={"size_bytes": 1234})
"""

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime
from typing import Any, Dict, Optional

from .config import settings

# Sensitive field patterns to filter from logs
SENSITIVE_PATTERNS = frozenset(
    {
        "secret",
        "secret_key",
        "secretkey",
        "sk_bytes",
        "private_key",
        "privatekey",
        "password",
        "token",
        "plaintext",
        "vector",
    }
)

_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


def _is_sensitive_key(key: str) -> bool:
    """Check if a key name suggests sensitive data."""
    key_lower = key.lower()
    return any(pattern in key_lower for pattern in SENSITIVE_PATTERNS)


def _filter_sensitive(data: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively filter sensitive values from a dictionary."""
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        if _is_sensitive_key(key):
            filtered[key] = "[REDACTED]"
        elif isinstance(value, dict):
            filtered[key] = _filter_sensitive(value)
        elif isinstance(value, list):
            filtered[key] = [_filter_sensitive(item) if isinstance(item, dict) else item for item in value]
        else:
            filtered[key] = value
    return filtered


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.pathname:
            log_data["location"] = {
                "file": record.pathname.split("/")[-1],
                "line": record.lineno,
                "function": record.funcName,
            }

        extra_fields = LogContext.get_current()
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                extra_fields[key] = value

        if extra_fields:
            log_data["extra"] = _filter_sensitive(extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        reset = self.RESET if color else ""

        timestamp = datetime.utcnow().strftime("%H:%M:%S.%f")[:-3]
        level = f"{color}{record.levelname:8}{reset}"
        name = record.name.split(".")[-1][:15].ljust(15)
        message = record.getMessage()

        operation = getattr(record, "operation", None) or LogContext.get_current().get("operation")
        if operation:
            message = f"[{operation}] {message}"

        formatted = f"{timestamp} {level} {name} {message}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    stream: Any = None,
) -> None:
    """
    Configure logging for hescore components.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: HS_LOG_LEVEL
        json_format: Use JSON output. Default: True in production, False otherwise
        stream: Output stream. Default: sys.stderr
    """
    if json_format is None:
        json_format = settings.is_production()

    root_logger = logging.getLogger("hescore")
    root_logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    root_logger.addHandler(handler)
    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a hescore module.

    Usage:
        logger = get_logger(__name__)
        logger.info("Message", extra={"operation": "decrypt_score"})
    """
    if not name.startswith("hescore"):
        name = f"hescore.{name}"
    return logging.getLogger(name)


# Scoped per thread and per asyncio task
_current_context: ContextVar[Optional["LogContext"]] = ContextVar("hescore_log_context", default=None)


class LogContext:
    """
    Context manager for adding correlation fields to logs.

    Usage:
        with LogContext(operation="encrypt_vector", call_id="abc123"):
            logger.info("Processing")  # Formatters include operation and call_id
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs
        self._token: Optional[Token] = None

    def __enter__(self) -> "LogContext":
        self._token = _current_context.set(self)
        return self

    def __exit__(self, *args: Any) -> None:
        _current_context.reset(self._token)

    @classmethod
    def get_current(cls) -> Dict[str, Any]:
        """Get the current logging context."""
        current = _current_context.get()
        if current is not None:
            return current.context.copy()
        return {}


# Initialize with default config when module is imported
# (can be reconfigured later with configure_logging())
if not logging.getLogger("hescore").handlers:
    configure_logging()


__all__ = [
    "configure_logging",
    "get_logger",
    "LogContext",
    "StructuredFormatter",
    "DevelopmentFormatter",
]
