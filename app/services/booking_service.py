"""Booking use cases: create, list, read and status changes.

Creating a booking also stages a ``booking`` conversion event and bumps the
customer's ``user_metrics`` row in the same transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.api.params import Page
from app.core.auth import AuthResult
from app.core.errors import BadRequestAppError, ConflictAppError, ForbiddenAppError, NotFoundAppError
from app.core.responses import pagination_meta
from app.db.models import Booking
from app.repositories.analytics_repository import AnalyticsRepository
from app.repositories.booking_repository import BookingRepository
from app.repositories.service_repository import ServiceRepository
from app.schemas.booking import BookingCreate, BookingRead, BookingStatus, BookingStatusUpdate
from app.services.common import database_guard
from app.services.webhook_service import WebhookDispatcher, WebhookEventType

logger = logging.getLogger(__name__)


def serialize_booking(entity: Booking) -> dict[str, Any]:
    return BookingRead.model_validate(entity).model_dump(mode="json")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_status(raw: str | None) -> BookingStatus | None:
    if raw is None:
        return None
    try:
        return BookingStatus(raw)
    except ValueError:
        allowed = ", ".join(s.value for s in BookingStatus)
        raise BadRequestAppError(message=f"status must be one of: {allowed}") from None


class BookingService:
    def __init__(
        self,
        session: Session,
        webhooks: WebhookDispatcher | None = None,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.session = session
        self.bookings = BookingRepository(session)
        self.services = ServiceRepository(session)
        self.analytics = AnalyticsRepository(session)
        self.webhooks = webhooks
        self.clock = clock

    def _emit(self, event: WebhookEventType, data: dict[str, Any]) -> None:
        if self.webhooks is not None:
            self.webhooks.emit(event, data)

    def _visible_booking(self, booking_id: int, auth: AuthResult) -> Booking:
        entity = self.bookings.get(booking_id)
        # Other users' bookings are reported as missing, not forbidden.
        if entity is None or (not auth.is_admin and entity.user_id != auth.user_id):
            raise NotFoundAppError.for_resource("Booking")
        return entity

    def create_booking(self, auth: AuthResult, payload: BookingCreate) -> dict[str, Any]:
        if payload.service_id is None or payload.scheduled_at is None:
            raise BadRequestAppError(message="service_id and scheduled_at are required")

        now = self.clock()
        scheduled_at = _as_utc(payload.scheduled_at)
        if scheduled_at <= now:
            raise BadRequestAppError(message="scheduled_at must be in the future")

        with database_guard(self.session, "Failed to create booking", operation="bookings.create"):
            service = self.services.get(payload.service_id)
            if service is None:
                raise NotFoundAppError.for_resource("Service")

            entity = self.bookings.add(
                user_id=auth.user_id,
                service_id=service.id,
                scheduled_at=scheduled_at,
            )
            self.analytics.stage_conversion(
                user_id=auth.user_id,
                event_type="booking",
                booking_id=entity.id,
                value=service.price,
                metadata={"service_id": service.id, "service_name": service.name},
            )
            self.analytics.stage_booking_metrics(user_id=auth.user_id, spend=service.price, at=now)
            self.session.commit()
            self.session.refresh(entity)
            data = serialize_booking(entity)

        logger.info("booking.created", extra={"booking_id": entity.id, "service_id": service.id})
        self._emit(WebhookEventType.BOOKING_CREATED, data)
        return data

    def list_bookings(
        self,
        auth: AuthResult,
        page: Page,
        status: BookingStatus | None = None,
    ) -> tuple[list[dict[str, Any]], dict[str, Any]]:
        """Admins see every booking; customers only their own."""
        owner = None if auth.is_admin else auth.user_id
        status_value = status.value if status else None
        with database_guard(self.session, "Failed to fetch bookings", operation="bookings.list"):
            rows = self.bookings.list(limit=page.limit, offset=page.offset, user_id=owner, status=status_value)
            items = [serialize_booking(b) for b in rows]
            total = self.bookings.count(user_id=owner, status=status_value)
        return items, pagination_meta(total=total, limit=page.limit, offset=page.offset, count=len(items))

    def get_booking(self, auth: AuthResult, booking_id: int) -> dict[str, Any]:
        with database_guard(self.session, "Failed to fetch booking", operation="bookings.get"):
            return serialize_booking(self._visible_booking(booking_id, auth))

    def update_status(self, auth: AuthResult, booking_id: int, payload: BookingStatusUpdate) -> dict[str, Any]:
        """Admins may set any status; customers may only cancel their own."""
        if payload.status is None:
            raise BadRequestAppError(message="status is required")
        new_status = payload.status

        with database_guard(self.session, "Failed to update booking", operation="bookings.update"):
            entity = self._visible_booking(booking_id, auth)
            if not auth.is_admin and new_status is not BookingStatus.CANCELLED:
                raise ForbiddenAppError(message="Customers can only cancel bookings")
            if new_status is BookingStatus.CANCELLED and entity.status == BookingStatus.CANCELLED.value:
                raise ConflictAppError(message="Booking is already cancelled")

            entity = self.bookings.set_status(entity, new_status.value)
            data = serialize_booking(entity)

        event = (
            WebhookEventType.BOOKING_CANCELLED
            if new_status is BookingStatus.CANCELLED
            else WebhookEventType.BOOKING_UPDATED
        )
        logger.info("booking.status_changed", extra={"booking_id": booking_id, "status": new_status.value})
        self._emit(event, data)
        return data
