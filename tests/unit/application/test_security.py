"""Unit tests for input sanitization and rate limiting."""

from unittest.mock import patch

import pytest

from src.application.services.security import RateLimiter, sanitize_input
from src.commons.settings.models import LimitConfig
from src.domain.exceptions import RateLimitExceededError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestSanitizeInput:
    """Tests for sanitize_input."""

    def test_removes_script_blocks(self):
        assert sanitize_input("hi <script>alert(1)</script> there") == "hi  there"

    def test_removes_javascript_scheme(self):
        assert sanitize_input("javascript:alert(1)") == "alert(1)"

    def test_removes_event_handlers(self):
        assert sanitize_input('<img onerror="x">') == '<img "x">'

    def test_trims_whitespace(self):
        assert sanitize_input("  what did we plan?  ") == "what did we plan?"

    def test_cleans_nested_structures(self):
        value = {
            " key ": ["<script>x</script>ok", {"JavaScript:a": "b"}],
            "n": 5,
        }

        assert sanitize_input(value) == {"key": ["ok", {"a": "b"}], "n": 5}

    def test_passes_through_other_types(self):
        assert sanitize_input(None) is None
        assert sanitize_input(3.5) == 3.5


class TestRateLimiter:
    """Tests for the fixed-window rate limiter."""

    @pytest.fixture
    def clock(self) -> FakeClock:
        return FakeClock()

    @pytest.fixture
    def limiter(self, clock) -> RateLimiter:
        return RateLimiter(LimitConfig(requests=3, window_seconds=60), clock=clock)

    def test_allows_requests_within_budget(self, limiter):
        for _ in range(3):
            limiter.check("query:alice")

    def test_rejects_request_over_budget(self, limiter, clock):
        for _ in range(3):
            limiter.check("query:alice")
        clock.now += 10

        with (
            patch("src.application.services.security.log_security_event") as audit,
            pytest.raises(RateLimitExceededError) as exc_info,
        ):
            limiter.check("query:alice")

        assert exc_info.value.retry_after_seconds == 50
        assert exc_info.value.key == "query:alice"
        audit.assert_called_once_with(
            "rate_limit_exceeded", client_key="query:alice", retry_after=50
        )

    def test_keys_are_independent(self, limiter):
        for _ in range(3):
            limiter.check("query:alice")

        limiter.check("query:bob")

    def test_window_resets_after_expiry(self, limiter, clock):
        for _ in range(3):
            limiter.check("query:alice")
        clock.now += 61

        limiter.check("query:alice")

    def test_reset_clears_all_windows(self, limiter):
        for _ in range(3):
            limiter.check("query:alice")

        limiter.reset()

        limiter.check("query:alice")
