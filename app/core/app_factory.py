"""Application factory for the booking API.

Centralizes app construction (metadata, state, middleware, handlers, routers)
so tests can build isolated instances with their own rate-limit store and
webhook notifier.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.adapters.rate_limit import AbstractRateLimitStore, InMemoryRateLimitStore
from app.api.routes import admin_router, analytics_router, bookings_router, health_router, services_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import rate_limit_middleware, request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import RateLimitGate, sweep_rate_limit_store_periodically
from app.db.create_tables import create_tables
from app.services.webhook_service import WebhookNotifier

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.database.create_tables:
        create_tables()

    sweeper: asyncio.Task | None = None
    interval = settings.app.rate_limit_sweep_interval_seconds
    if interval > 0:
        sweeper = asyncio.create_task(
            sweep_rate_limit_store_periodically(app.state.rate_limit_store, interval)
        )

    logger.info(
        "app.started",
        extra={"webhooks_enabled": app.state.webhook_notifier.config.active, "sweep_interval_s": interval},
    )
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper


def create_app(
    *,
    rate_limit_store: AbstractRateLimitStore | None = None,
    webhook_notifier: WebhookNotifier | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limit_store: Counter store for the rate limiter; a fresh
            in-memory store when omitted.
        webhook_notifier: Outbound webhook client; built from WEBHOOK_*
            settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Service Booking API",
        description=(
            "Service catalog and bookings with cookie sessions, role checks, "
            "per-client rate limiting and signed webhooks. Every JSON response "
            "uses the {success, data | error} envelope."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # An empty store is falsy (it defines __len__)
    if rate_limit_store is None:
        rate_limit_store = InMemoryRateLimitStore()
    if webhook_notifier is None:
        webhook_notifier = WebhookNotifier.from_settings(settings.webhook)
    app.state.rate_limit_store = rate_limit_store
    app.state.webhook_notifier = webhook_notifier

    # Middleware; the last registered runs first
    app.middleware("http")(rate_limit_middleware(RateLimitGate(), path_prefix=API_PREFIX))
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(services_router, prefix=API_PREFIX)
    app.include_router(bookings_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)
    app.include_router(analytics_router, prefix=API_PREFIX)
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    return app
