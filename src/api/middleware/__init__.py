"""API middleware components."""

from src.api.middleware.error_handler import ERROR_RULES, error_handler_middleware
from src.api.middleware.logging import LoggingMiddleware

__all__ = [
    "ERROR_RULES",
    "LoggingMiddleware",
    "error_handler_middleware",
]
