"""Error envelope middleware.

Every failure leaves the API as::

    {"error": {"code", "message", "details", "request_id"}}

Domain exceptions are matched against ``ERROR_RULES`` in order, so
subclasses must be listed before their bases.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from src.commons.telemetry.logger import get_logger
from src.domain.exceptions import (
    AuthorizationError,
    DomainException,
    PipelineStageError,
    RateLimitExceededError,
    SynthesisError,
    ValidationError,
    VideoNotFoundException,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ErrorRule:
    """How one exception type is rendered to clients."""

    exc_type: type[Exception]
    status_code: int
    code: str
    log_level: int = logging.WARNING
    message: Callable[[Any], str] = str
    details: Callable[[Any], dict[str, Any]] = field(default=lambda _: {})


ERROR_RULES: tuple[ErrorRule, ...] = (
    ErrorRule(
        ValidationError,
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        message=lambda e: e.reason,
        details=lambda e: {"field": e.field},
    ),
    ErrorRule(
        AuthorizationError,
        status.HTTP_403_FORBIDDEN,
        "FORBIDDEN",
        log_level=logging.INFO,
        message=lambda _: "You're not a member of this conversation",
        details=lambda e: {"conversation_id": e.conversation_id},
    ),
    ErrorRule(
        VideoNotFoundException,
        status.HTTP_404_NOT_FOUND,
        "VIDEO_NOT_FOUND",
        details=lambda e: {"video_id": e.video_id},
    ),
    ErrorRule(
        RateLimitExceededError,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "RATE_LIMITED",
        log_level=logging.INFO,
        message=lambda _: "Too many requests",
        details=lambda e: {"retry_after": e.retry_after_seconds},
    ),
    ErrorRule(
        SynthesisError,
        status.HTTP_502_BAD_GATEWAY,
        "UPSTREAM_ERROR",
        log_level=logging.ERROR,
        message=lambda e: f"RAG query failed: {e.reason}",
    ),
    ErrorRule(
        PipelineStageError,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INGESTION_ERROR",
        log_level=logging.ERROR,
        details=lambda e: {"video_id": e.video_id, "stage": e.stage},
    ),
    ErrorRule(DomainException, status.HTTP_400_BAD_REQUEST, "DOMAIN_ERROR"),
)


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Render the error envelope, echoing the request id when one was set."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": getattr(request.state, "request_id", "unknown"),
            }
        },
    )


def find_rule(exc: Exception) -> ErrorRule | None:
    """First rule whose type matches ``exc``, or None for unexpected errors."""
    return next((rule for rule in ERROR_RULES if isinstance(exc, rule.exc_type)), None)


def render_exception(request: Request, exc: Exception) -> JSONResponse:
    """Log ``exc`` at its rule's level and build the client response."""
    rule = find_rule(exc)
    if rule is None:
        logger.exception(
            f"Unhandled error on {request.method} {request.url.path}",
            extra={"exception_type": type(exc).__name__},
        )
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_ERROR",
            "An unexpected error occurred",
        )

    details = rule.details(exc)
    logger.log(
        rule.log_level,
        f"{rule.code}: {exc}",
        extra={"error_code": rule.code, "path": request.url.path, **details},
    )
    response = error_response(
        request, rule.status_code, rule.code, rule.message(exc), details
    )
    if isinstance(exc, RateLimitExceededError):
        response.headers["Retry-After"] = str(exc.retry_after_seconds)
    return response


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Convert any exception escaping a route into the error envelope."""
    try:
        return await call_next(request)
    except Exception as exc:
        return render_exception(request, exc)
