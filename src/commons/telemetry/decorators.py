"""Telemetry decorators for timing and exception logging."""

import functools
import inspect
import logging
import time
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar

from src.commons.telemetry.logger import get_log_context, get_logger, log_context_var

P = ParamSpec("P")
R = TypeVar("R")


def _wrap(
    fn: Callable[P, R],
    before: Callable[[], Any],
    after: Callable[[Any, BaseException | None], None],
) -> Callable[P, R]:
    """Wrap a sync or async callable with before/after hooks."""
    if inspect.iscoroutinefunction(fn):

        @functools.wraps(fn)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            state = before()
            try:
                result = await fn(*args, **kwargs)  # type: ignore[misc]
            except BaseException as e:
                after(state, e)
                raise
            after(state, None)
            return result  # type: ignore[no-any-return]

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(fn)
    def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        state = before()
        try:
            result = fn(*args, **kwargs)
        except BaseException as e:
            after(state, e)
            raise
        after(state, None)
        return result

    return sync_wrapper


def timed(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator to measure and log execution time.

    Args:
        logger: Optional logger instance.
        level: Log level for timing messages.
        threshold_ms: Only log when execution takes at least this long.

    Returns:
        Decorator.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        log = logger or get_logger(fn.__module__)

        def after(start: float, error: BaseException | None) -> None:
            elapsed_ms = (time.perf_counter() - start) * 1000
            if threshold_ms is not None and elapsed_ms < threshold_ms:
                return
            log.log(
                level,
                f"{fn.__qualname__} {'failed' if error else 'completed'}",
                extra={"duration_ms": round(elapsed_ms, 2)},
            )

        return _wrap(fn, time.perf_counter, after)

    return decorator


def log_exceptions(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.ERROR,
    message: str | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator that logs an escaping exception and re-raises it.

    Args:
        logger: Optional logger instance.
        level: Log level for exceptions.
        message: Optional custom message.

    Returns:
        Decorator.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        log = logger or get_logger(fn.__module__)

        def after(_: Any, error: BaseException | None) -> None:
            if error is None or not isinstance(error, Exception):
                return
            log.log(
                level,
                message or f"Exception in {fn.__qualname__}",
                exc_info=error,
                extra={"exception_type": type(error).__name__},
            )

        return _wrap(fn, lambda: None, after)

    return decorator


class LogContext:
    """Context manager adding temporary fields to every log record.

    Example:
        with LogContext(video_id=video.id, conversation_id=video.conversation_id):
            ...
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs
        self._previous_context: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._previous_context = get_log_context()
        log_context_var.set({**self._previous_context, **self.context})
        return self

    def __exit__(self, *args: Any) -> None:
        log_context_var.set(self._previous_context)
