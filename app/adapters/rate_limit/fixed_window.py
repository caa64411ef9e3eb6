"""Fixed-window rate limiter on top of a pluggable counter store.

Every call counts, including rejected ones: a client that keeps hammering a
closed window stays blocked until the window resets. Windows start at the
first request of a key (not aligned to wall-clock boundaries), and bursts
straddling a boundary are admitted.
"""

from __future__ import annotations

import time
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimitStore, RateLimitResult


class FixedWindowRateLimiter:
    """Admit at most ``limit`` requests per key per ``window_seconds``."""

    def __init__(
        self,
        store: AbstractRateLimitStore,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter store shared by every limiter of the application.
            limit: Maximum number of requests per window.
            window_seconds: Size of the window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock

    def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and decide whether it may proceed.

        Raises:
            ValueError: If key is empty.
        """
        now = self._clock()
        entry = self.store.increment(key, window_seconds=self.window_seconds, now=now)
        return RateLimitResult.from_entry(entry, limit=self.limit, now=now)

    def sweep(self) -> int:
        """Remove expired entries from the underlying store."""
        return self.store.sweep(self._clock())
