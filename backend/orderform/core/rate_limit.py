"""Rate limiting utilities.

Two limiters live here. The SlowAPI ``limiter`` guards endpoints per remote
address (code validation). ``OrderRateLimiter`` bounds order submissions per
client email; its key comes out of the request body, so it is an explicit
component stored on ``app.state`` rather than a route decorator.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from orderform.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def init_rate_limiter(app: FastAPI) -> None:
    """Attach the rate limiter and exception handler to the FastAPI app."""

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    async def rate_limit_exceeded_handler(request, exc):  # type: ignore[unused-arg]
        return JSONResponse(
            status_code=429,
            content={"valid": False, "message": "Too many attempts. Please try again later."},
        )

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@dataclass
class RateLimitEntry:
    count: int
    window_reset_at: float


class OrderRateLimiter:
    """Fixed-window counter: ``limit`` calls per ``window_seconds`` per key.

    The window starts at the first call for a key (not on a wall-clock
    boundary) and a call made after ``window_reset_at`` opens a new one.
    State is process-local and lost on restart; several workers each keep
    their own counts.
    """

    def __init__(
        self,
        limit: int = 5,
        window_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls) -> "OrderRateLimiter":
        return cls(
            limit=settings.ORDER_RATE_LIMIT,
            window_seconds=settings.ORDER_RATE_WINDOW_SECONDS,
        )

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now > entry.window_reset_at:
                self._entries[key] = RateLimitEntry(
                    count=1, window_reset_at=now + self.window_seconds
                )
                self._prune(now)
                return True
            if entry.count >= self.limit:
                return False
            entry.count += 1
            return True

    def retry_after(self, key: str) -> int:
        """Whole seconds until the key's current window closes (0 if none)."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now > entry.window_reset_at:
                return 0
            return math.ceil(entry.window_reset_at - now)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def _prune(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now > e.window_reset_at]
        for key in expired:
            del self._entries[key]


def get_order_rate_limiter(request: Request) -> OrderRateLimiter:
    """FastAPI dependency returning the app-scoped order limiter."""

    return request.app.state.order_rate_limiter
