"""Telemetry module - structured logging and LLM tracing."""

from src.commons.telemetry.decorators import LogContext, log_exceptions, timed
from src.commons.telemetry.langfuse_client import (
    GenerationTrace,
    init_langfuse,
    is_langfuse_enabled,
    shutdown_langfuse,
    traced_generation,
)
from src.commons.telemetry.logger import (
    SECURITY_LOGGER_NAME,
    JsonFormatter,
    TextFormatter,
    clear_log_context,
    configure_logging,
    get_correlation_id,
    get_log_context,
    get_logger,
    log_security_event,
    set_correlation_id,
    set_log_context,
)

__all__ = [
    # Decorators
    "timed",
    "log_exceptions",
    "LogContext",
    # Logger
    "get_logger",
    "configure_logging",
    "log_security_event",
    "SECURITY_LOGGER_NAME",
    "JsonFormatter",
    "TextFormatter",
    # Correlation ID
    "get_correlation_id",
    "set_correlation_id",
    # Log Context
    "get_log_context",
    "set_log_context",
    "clear_log_context",
    # Langfuse
    "init_langfuse",
    "shutdown_langfuse",
    "is_langfuse_enabled",
    "traced_generation",
    "GenerationTrace",
]
