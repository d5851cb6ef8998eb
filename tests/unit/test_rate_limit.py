"""
Unit tests for the fixed-window rate limiter.
"""

import threading
from types import SimpleNamespace

import pytest

from app.core.rate_limit import RateLimiter
from app.exceptions.base import RateLimitError


class TestRateLimiter:
    """Test cases for RateLimiter."""

    def test_allows_up_to_budget(self):
        """The budget is spent, then the next hit reports the wait."""
        limiter = RateLimiter(max_attempts=3, window_seconds=60)

        assert [limiter.hit("1.2.3.4", now=100.0) for _ in range(3)] == [None, None, None]
        assert limiter.hit("1.2.3.4", now=110.0) == 51

    def test_window_resets(self):
        """Attempts are allowed again once the window expires."""
        limiter = RateLimiter(max_attempts=1, window_seconds=60)

        assert limiter.hit("k", now=0.0) is None
        assert limiter.hit("k", now=59.0) is not None
        assert limiter.hit("k", now=60.0) is None

    def test_keys_are_independent(self):
        """Each client address has its own window."""
        limiter = RateLimiter(max_attempts=1, window_seconds=60)

        assert limiter.hit("a", now=0.0) is None
        assert limiter.hit("b", now=0.0) is None
        assert limiter.hit("a", now=1.0) is not None

    def test_reset(self):
        """reset() forgets every window."""
        limiter = RateLimiter(max_attempts=1, window_seconds=60)
        limiter.hit("a", now=0.0)

        limiter.reset()

        assert limiter.hit("a", now=1.0) is None

    def test_invalid_configuration(self):
        """Zero budgets or windows are refused."""
        with pytest.raises(ValueError):
            RateLimiter(max_attempts=0, window_seconds=60)
        with pytest.raises(ValueError):
            RateLimiter(max_attempts=1, window_seconds=0)

    def test_concurrent_hits_are_counted_exactly(self):
        """Parallel increments never exceed the budget."""
        limiter = RateLimiter(max_attempts=50, window_seconds=60)
        allowed = []

        def worker():
            for _ in range(20):
                if limiter.hit("shared", now=1.0) is None:
                    allowed.append(1)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(allowed) == 50

    @pytest.mark.asyncio
    async def test_dependency_raises_rate_limit_error(self):
        """Used as a dependency it raises 429 with Retry-After."""
        limiter = RateLimiter(max_attempts=1, window_seconds=900, name="login")
        request = SimpleNamespace(client=SimpleNamespace(host="10.0.0.1"))

        await limiter(request)
        with pytest.raises(RateLimitError) as exc_info:
            await limiter(request)

        assert exc_info.value.status_code == 429
        assert 0 < int(exc_info.value.headers["Retry-After"]) <= 900
