"""In-memory fixed-window rate limiter used to slow down credential guessing."""

import logging
import time
from collections.abc import Callable

from fastapi import HTTPException, Request, status

from notesapp.core.config import get_settings

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter:
    """Counts hits per key inside fixed windows of ``window`` seconds."""

    def __init__(
        self,
        max_hits: int = 10,
        window: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_hits = max_hits
        self._window = window
        self._clock = clock
        self._counters: dict[str, tuple[float, int]] = {}

    def hit(self, key: str) -> bool:
        """Record an attempt; return False once the window's budget is spent."""
        now = self._clock()
        started, count = self._counters.get(key, (now, 0))
        if now - started >= self._window:
            started, count = now, 0
        count += 1
        self._counters[key] = (started, count)
        self._purge(now)
        return count <= self._max_hits

    def retry_after(self, key: str) -> int:
        """Seconds until ``key``'s current window resets."""
        entry = self._counters.get(key)
        if entry is None:
            return 0
        remaining = self._window - (self._clock() - entry[0])
        return max(0, int(remaining + 0.999))

    def reset(self) -> None:
        self._counters.clear()

    def _purge(self, now: float) -> None:
        expired = [k for k, (started, _) in self._counters.items() if now - started >= self._window]
        for k in expired:
            del self._counters[k]


_settings = get_settings()
login_limiter = FixedWindowRateLimiter(
    max_hits=_settings.login_rate_limit,
    window=_settings.login_rate_window_seconds,
)


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def limit_login_attempts(request: Request) -> None:
    """FastAPI dependency: 429 once a client exceeds the login budget."""
    key = client_key(request)
    if not login_limiter.hit(key):
        logger.warning("Login rate limit exceeded for %s", key)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="too_many_requests",
            headers={"Retry-After": str(login_limiter.retry_after(key))},
        )
