"""In-process rate limiting for the public authentication endpoints.

Each limiter keeps a fixed window per client address: the first attempt opens
the window, further attempts inside it are counted, and once the budget is
spent the client gets 429 until the window expires. The counter is process-wide
mutable state, so updates happen under a lock.
"""

import logging
import threading
import time
from dataclasses import dataclass

from fastapi import Request

from app.core.config import settings
from app.exceptions.base import RateLimitError

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window attempt counter keyed by client address.

    Instances are usable directly as FastAPI dependencies.
    """

    # Sweep expired windows after this many tracked keys
    CLEANUP_THRESHOLD = 1000

    def __init__(self, max_attempts: int, window_seconds: int, name: str = "rate_limit"):
        if max_attempts < 1 or window_seconds < 1:
            raise ValueError("max_attempts and window_seconds must be positive")
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.name = name
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, now: float | None = None) -> int | None:
        """Record an attempt for ``key``.

        Returns ``None`` when the attempt is allowed, otherwise the number of
        seconds until the window resets.
        """
        now = time.monotonic() if now is None else now
        with self._lock:
            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                if len(self._windows) >= self.CLEANUP_THRESHOLD:
                    self._sweep(now)
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return None
            if window.count >= self.max_attempts:
                return max(1, int(window.reset_at - now) + 1)
            window.count += 1
            return None

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _sweep(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]

    async def __call__(self, request: Request) -> None:
        client_ip = request.client.host if request.client else "unknown"
        retry_after = self.hit(client_ip)
        if retry_after is not None:
            logger.warning(
                "Rate limit %s exceeded for %s (%d attempts / %ds)",
                self.name,
                client_ip,
                self.max_attempts,
                self.window_seconds,
            )
            raise RateLimitError(
                "Too many authentication attempts. Please try again later.",
                retry_after=retry_after,
            )


register_rate_limiter = RateLimiter(
    settings.auth_rate_limit_attempts, settings.auth_rate_limit_window, name="register"
)
login_rate_limiter = RateLimiter(
    settings.auth_rate_limit_attempts, settings.auth_rate_limit_window, name="login"
)
refresh_rate_limiter = RateLimiter(
    settings.refresh_rate_limit_attempts, settings.refresh_rate_limit_window, name="refresh"
)


def reset_rate_limiters() -> None:
    for limiter in (register_rate_limiter, login_rate_limiter, refresh_rate_limiter):
        limiter.reset()
