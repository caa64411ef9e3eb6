from __future__ import annotations

from app.api.routes.admin import router as admin_router
from app.api.routes.analytics import router as analytics_router
from app.api.routes.bookings import router as bookings_router
from app.api.routes.health import router as health_router
from app.api.routes.services import router as services_router

__all__ = [
    "admin_router",
    "analytics_router",
    "bookings_router",
    "health_router",
    "services_router",
]
