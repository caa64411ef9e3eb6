"""Rate limit store interfaces and result types.

The limiter and the HTTP layer depend on ``AbstractRateLimitStore`` (not the
concrete implementation) so the counter map can be backed by an in-process
dict today and by a shared cache in a multi-instance deployment later.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class RateLimitEntry:
    """Counter state for one client key.

    Attributes:
        key: Client key (usually the client address).
        count: Requests seen in the current window.
        window_reset_at: UNIX time (seconds, float) when the window ends.
    """

    key: str
    count: int
    window_reset_at: float

    def is_expired(self, now: float) -> bool:
        return self.window_reset_at < now


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None

    def headers(self) -> dict[str, str]:
        """Informational headers attached to every gated response."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }

    @classmethod
    def from_entry(cls, entry: RateLimitEntry, *, limit: int, now: float) -> "RateLimitResult":
        allowed = entry.count <= limit
        return cls(
            allowed=allowed,
            limit=limit,
            remaining=max(0, limit - entry.count),
            reset_at=int(math.ceil(entry.window_reset_at)),
            retry_after_seconds=None if allowed else max(0, int(math.ceil(entry.window_reset_at - now))),
        )


class AbstractRateLimitStore(ABC):
    """Interface for rate limit counter stores."""

    @abstractmethod
    def get(self, key: str) -> RateLimitEntry | None:
        """Return a snapshot of the entry for ``key`` (expired or not)."""
        raise NotImplementedError

    @abstractmethod
    def increment(self, key: str, *, window_seconds: int, now: float) -> RateLimitEntry:
        """Atomically open a fresh window if needed, then count one request.

        If no entry exists for ``key`` or its window has elapsed, the entry is
        replaced with ``count=0`` and ``window_reset_at = now + window_seconds``
        before incrementing.

        Args:
            key: Client key.
            window_seconds: Window length used when a new window is opened.
            now: Current UNIX time in seconds.

        Returns:
            A snapshot of the entry after incrementing.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self, now: float) -> int:
        """Remove entries whose window has elapsed; return how many were removed."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""
        raise NotImplementedError
