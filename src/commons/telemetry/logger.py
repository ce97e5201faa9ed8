"""Structured logging with JSON output, correlation IDs and security events.

Two context variables travel with each request or pipeline run: the
correlation id set by the HTTP middleware, and a free-form log context
(``video_id``, ``conversation_id``) bound with ``LogContext``. Both
formatters read them so call sites only pass what is specific to the
message through ``extra``.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, ClassVar

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
log_context_var: ContextVar[dict[str, Any]] = ContextVar("log_context")

SECURITY_LOGGER_NAME = "security"

_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation id to the current context, generating a UUID if needed."""
    cid = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(cid)
    return cid


def get_log_context() -> dict[str, Any]:
    """Copy of the current log context; empty when nothing was bound."""
    return dict(log_context_var.get({}))


def set_log_context(**kwargs: Any) -> None:
    log_context_var.set({**log_context_var.get({}), **kwargs})


def clear_log_context() -> None:
    log_context_var.set({})


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Return the fields passed to a log call through ``extra``."""
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=UTC)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, suitable for log shippers.

    Keys: ``timestamp``, ``level``, ``logger``, ``message``, optionally
    ``path``, ``correlation_id``, ``context`` and ``exception``, followed
    by the record's ``extra`` fields.
    """

    def __init__(self, *, include_path: bool = True) -> None:
        super().__init__()
        self.include_path = include_path

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_path:
            entry["path"] = f"{record.pathname}:{record.lineno}"
        if cid := get_correlation_id():
            entry["correlation_id"] = cid
        if context := get_log_context():
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(record_extras(record))
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Colored single-line output for local development.

    Shows the first 8 characters of the correlation id and the video and
    conversation bound in the log context.
    """

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET: ClassVar[str] = "\033[0m"
    CONTEXT_LABELS: ClassVar[dict[str, str]] = {
        "video_id": "video",
        "conversation_id": "conversation",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        parts = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"{color}{record.levelname:8}{self.RESET}",
            f"[{record.name}]",
        ]
        if cid := get_correlation_id():
            parts.append(f"[{cid[:8]}]")

        context = get_log_context()
        labels = [
            f"{label}={context[key]}"
            for key, label in self.CONTEXT_LABELS.items()
            if context.get(key)
        ]
        if labels:
            parts.append(f"({' '.join(labels)})")

        parts.append(record.getMessage())
        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: str = "INFO",
    format_type: str = "json",
    logger_name: str | None = None,
) -> logging.Logger:
    """Configure and return a logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format_type: Output format ('json' or 'text').
        logger_name: Optional logger name. Defaults to root logger.

    Returns:
        Configured logger instance.
    """
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(logger_name)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JsonFormatter() if format_type == "json" else TextFormatter())

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger by name (usually ``__name__``)."""
    return logging.getLogger(name)


def log_security_event(event: str, **details: Any) -> None:
    """Emit an audit event on the dedicated security logger.

    Args:
        event: Event name, e.g. ``unauthorized_rag_query``.
        **details: Event attributes such as ``user_id`` or ``conversation_id``.
    """
    get_logger(SECURITY_LOGGER_NAME).warning(
        f"Security event: {event}",
        extra={"security_event": event, **details},
    )
