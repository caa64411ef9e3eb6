"""Rate limiting adapters.

This package provides a small abstraction layer so the API can start with an
in-memory counter store and later migrate to a shared store without changing
the HTTP layer.
"""

from app.adapters.rate_limit.base import AbstractRateLimitStore, RateLimitEntry, RateLimitResult
from app.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryRateLimitStore

__all__ = [
    "AbstractRateLimitStore",
    "FixedWindowRateLimiter",
    "InMemoryRateLimitStore",
    "RateLimitEntry",
    "RateLimitResult",
]
