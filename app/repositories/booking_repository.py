"""Booking persistence and the aggregates behind the admin dashboard."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, joinedload

from app.db.models import Booking, Service


class BookingRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _filtered(
        self,
        stmt: Select,
        *,
        user_id: int | None,
        status: str | None,
        service_id: int | None = None,
    ) -> Select:
        if user_id is not None:
            stmt = stmt.where(Booking.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        if service_id is not None:
            stmt = stmt.where(Booking.service_id == service_id)
        return stmt

    def list(
        self,
        *,
        limit: int,
        offset: int,
        user_id: int | None = None,
        status: str | None = None,
    ) -> list[Booking]:
        stmt = self._filtered(select(Booking), user_id=user_id, status=status)
        stmt = stmt.order_by(Booking.scheduled_at, Booking.id).limit(limit).offset(offset)
        return list(self.session.execute(stmt).scalars().all())

    def count(
        self,
        *,
        user_id: int | None = None,
        status: str | None = None,
        service_id: int | None = None,
    ) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(Booking), user_id=user_id, status=status, service_id=service_id
        )
        return self.session.execute(stmt).scalar_one()

    def get(self, booking_id: int) -> Booking | None:
        return self.session.get(Booking, booking_id)

    def add(self, *, user_id: int, service_id: int, scheduled_at: datetime) -> Booking:
        """Stage a new pending booking; the caller commits."""
        entity = Booking(user_id=user_id, service_id=service_id, scheduled_at=scheduled_at, status="pending")
        self.session.add(entity)
        self.session.flush()
        return entity

    def set_status(self, entity: Booking, status: str) -> Booking:
        entity.status = status
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def revenue(self) -> Decimal:
        """Sum of service prices over bookings that were not cancelled."""
        stmt = (
            select(func.coalesce(func.sum(Service.price), 0))
            .select_from(Booking)
            .join(Service, Service.id == Booking.service_id)
            .where(Booking.status != "cancelled")
        )
        return Decimal(str(self.session.execute(stmt).scalar_one())).quantize(Decimal("0.01"))

    def recent(self, limit: int) -> list[Booking]:
        stmt = (
            select(Booking)
            .options(joinedload(Booking.user), joinedload(Booking.service))
            .order_by(Booking.scheduled_at.desc(), Booking.id.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().unique().all())
