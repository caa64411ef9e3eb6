"""Writes to the analytics tables."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import ConversionEvent, PageView, ServiceInteraction, UserMetrics


class AnalyticsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add_page_view(
        self,
        *,
        url: str,
        user_id: int | None,
        referrer: str | None,
        user_agent: str | None,
        ip_address: str | None,
    ) -> PageView:
        entity = PageView(
            url=url,
            user_id=user_id,
            referrer=referrer,
            user_agent=user_agent,
            ip_address=ip_address,
        )
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def add_interaction(self, *, service_id: int, interaction_type: str, user_id: int | None) -> ServiceInteraction:
        entity = ServiceInteraction(service_id=service_id, interaction_type=interaction_type, user_id=user_id)
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    # The two helpers below only stage rows; the booking flow commits them
    # together with the booking itself.
    def stage_conversion(
        self,
        *,
        user_id: int,
        event_type: str,
        booking_id: int | None = None,
        value: Decimal | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ConversionEvent:
        entity = ConversionEvent(
            user_id=user_id,
            event_type=event_type,
            booking_id=booking_id,
            value=value,
            event_metadata=metadata,
        )
        self.session.add(entity)
        return entity

    def stage_booking_metrics(self, *, user_id: int, spend: Decimal, at: datetime) -> UserMetrics:
        metrics = self.get_user_metrics(user_id)
        if metrics is None:
            metrics = UserMetrics(user_id=user_id, total_bookings=0, total_spend=Decimal("0"))
            self.session.add(metrics)
        metrics.total_bookings = (metrics.total_bookings or 0) + 1
        metrics.total_spend = Decimal(str(metrics.total_spend or 0)) + spend
        metrics.last_activity = at
        metrics.is_active = True
        return metrics

    def get_user_metrics(self, user_id: int) -> UserMetrics | None:
        return self.session.execute(
            select(UserMetrics).where(UserMetrics.user_id == user_id)
        ).scalar_one_or_none()
