"""Rate limiting gate for the HTTP layer.

This module wires the rate limiting adapter into the HTTP layer. The gate is
run by ``rate_limit_middleware`` for every path under the API prefix, before
routing and body parsing.

Design goals:
- Minimal coupling: routes know nothing about rate limiting.
- Swap-friendly: the counter store lives on ``app.state`` behind an abstract
  interface, injected through ``create_app(rate_limit_store=...)``.
- Headers on every gated response: the result is recorded on
  ``request.state.rate_limit`` and copied onto the response by the
  same middleware.

Rate limiting strategy:
- Fixed-window limit per client address.
- Requests without a client address share the ``"unknown"`` bucket.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimitStore
from app.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from app.core.config import settings
from app.core.errors import RateLimitExceededAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT_KEY = "unknown"


def get_rate_limit_store(request: Request) -> AbstractRateLimitStore:
    """Return the counter store owned by the running application."""

    return request.app.state.rate_limit_store


def client_key(request: Request) -> str:
    """Build the limiter key for the current request.

    Forwarded-IP headers are not trusted; behind a proxy that does not
    rewrite the peer address every client shares one bucket.
    """

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT_KEY


class RateLimitGate:
    """Callable enforcing a fixed-window budget per client.

    ``limit`` and ``window_seconds`` default to the APP_RATE_LIMIT_* settings,
    read on every call so tests can patch them.

    Usage:
        app.middleware("http")(rate_limit_middleware(RateLimitGate(), path_prefix="/api/v1"))
    """

    def __init__(
        self,
        *,
        limit: int | None = None,
        window_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock

    def _build_limiter(self, store: AbstractRateLimitStore) -> FixedWindowRateLimiter:
        return FixedWindowRateLimiter(
            store,
            limit=self.limit or settings.app.rate_limit_requests,
            window_seconds=self.window_seconds or settings.app.rate_limit_window_seconds,
            clock=self.clock,
        )

    def __call__(self, request: Request) -> None:
        """Consume one unit of the caller's budget.

        Raises:
            RateLimitExceededAppError: 429 when the window's budget is spent.
        """

        if not settings.app.rate_limit_enabled:
            return

        limiter = self._build_limiter(get_rate_limit_store(request))
        key = client_key(request)
        result = limiter.consume(key)
        request.state.rate_limit = result

        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "key_hash": hash_identifier(key),
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "window_s": limiter.window_seconds,
                },
            )
            return

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": hash_identifier(key),
                "shared_bucket": key == UNKNOWN_CLIENT_KEY,
                "limit": result.limit,
                "window_s": limiter.window_seconds,
                "retry_after_s": retry_after,
            },
        )

        raise RateLimitExceededAppError(
            message="Too many requests, please try again later.",
            headers={"Retry-After": str(retry_after), **result.headers()},
        )


async def sweep_rate_limit_store_periodically(
    store: AbstractRateLimitStore,
    interval_seconds: float,
    *,
    clock: Callable[[], float] = time.time,
) -> None:
    """Remove expired entries every ``interval_seconds`` until cancelled."""

    while True:
        await asyncio.sleep(interval_seconds)
        removed = store.sweep(clock())
        if removed:
            logger.info("rate_limit.swept", extra={"removed": removed})
