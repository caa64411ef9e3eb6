"""Aggregates for the admin dashboard."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.repositories.booking_repository import BookingRepository
from app.repositories.service_repository import ServiceRepository
from app.schemas.analytics import DashboardStats, DashboardSummary, RecentBooking
from app.schemas.booking import BookingStatus
from app.services.common import database_guard

RECENT_BOOKINGS_LIMIT = 5


class DashboardService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.bookings = BookingRepository(session)
        self.services = ServiceRepository(session)

    def summary(self) -> dict[str, Any]:
        """Booking/service counts, revenue and the latest bookings.

        Revenue only counts bookings that were not cancelled. Keys are
        camelCase in the returned mapping.
        """
        with database_guard(self.session, "Failed to load dashboard", operation="dashboard.summary"):
            stats = DashboardStats(
                total_bookings=self.bookings.count(),
                total_services=self.services.count(),
                total_revenue=self.bookings.revenue(),
                pending_bookings=self.bookings.count(status=BookingStatus.PENDING.value),
            )
            recent = [
                RecentBooking(
                    id=b.id,
                    customer_name=b.user.email,
                    service_name=b.service.name,
                    date=b.scheduled_at,
                    status=b.status,
                )
                for b in self.bookings.recent(RECENT_BOOKINGS_LIMIT)
            ]

        return DashboardSummary(stats=stats, recent_bookings=recent).model_dump(mode="json", by_alias=True)
