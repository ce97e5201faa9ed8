"""Input sanitization and in-memory rate limiting."""

import math
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from src.commons.settings.models import LimitConfig
from src.commons.telemetry import log_security_event
from src.domain.exceptions import RateLimitExceededError

_SCRIPT_BLOCK = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE
)
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def sanitize_input(value: Any) -> Any:
    """Strip script blocks, ``javascript:`` schemes and inline handlers.

    Strings are cleaned and trimmed; lists and dicts are cleaned
    recursively, keys included. Other values pass through unchanged.
    """
    if isinstance(value, str):
        cleaned = _SCRIPT_BLOCK.sub("", value)
        cleaned = _JS_SCHEME.sub("", cleaned)
        cleaned = _EVENT_HANDLER.sub("", cleaned)
        return cleaned.strip()
    if isinstance(value, list):
        return [sanitize_input(item) for item in value]
    if isinstance(value, dict):
        return {sanitize_input(k): sanitize_input(v) for k, v in value.items()}
    return value


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window request counter per client key.

    State lives in process memory, so limits apply per worker.
    """

    def __init__(
        self,
        limit: LimitConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def check(self, key: str) -> None:
        """Count one request for ``key``.

        Raises:
            RateLimitExceededError: If the key has used its budget for the
                current window.
        """
        now = self._clock()
        self._evict(now)

        window = self._windows.get(key)
        if window is None or now > window.reset_at:
            self._windows[key] = _Window(
                count=1, reset_at=now + self._limit.window_seconds
            )
            return

        if window.count >= self._limit.requests:
            retry_after = math.ceil(window.reset_at - now)
            log_security_event(
                "rate_limit_exceeded", client_key=key, retry_after=retry_after
            )
            raise RateLimitExceededError(key, retry_after)

        window.count += 1

    def reset(self) -> None:
        self._windows.clear()

    def _evict(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now > w.reset_at]
        for key in expired:
            del self._windows[key]
