"""Recording of page views and service interactions."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import BadRequestAppError, NotFoundAppError
from app.repositories.analytics_repository import AnalyticsRepository
from app.repositories.service_repository import ServiceRepository
from app.schemas.analytics import InteractionCreate, PageViewCreate
from app.services.common import database_guard

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.repository = AnalyticsRepository(session)
        self.services = ServiceRepository(session)

    def record_page_view(
        self,
        payload: PageViewCreate,
        *,
        user_id: int | None,
        user_agent: str | None,
        ip_address: str | None,
    ) -> dict[str, Any]:
        if not payload.url:
            raise BadRequestAppError(message="url is required")

        with database_guard(self.session, "Failed to record page view", operation="analytics.page_view"):
            entity = self.repository.add_page_view(
                url=payload.url,
                referrer=payload.referrer,
                user_id=user_id,
                user_agent=user_agent,
                ip_address=ip_address,
            )
        return {"id": entity.id, "url": entity.url}

    def record_interaction(self, payload: InteractionCreate, *, user_id: int | None) -> dict[str, Any]:
        if payload.service_id is None or payload.interaction_type is None:
            raise BadRequestAppError(message="service_id and interaction_type are required")

        with database_guard(self.session, "Failed to record interaction", operation="analytics.interaction"):
            if self.services.get(payload.service_id) is None:
                raise NotFoundAppError.for_resource("Service")
            entity = self.repository.add_interaction(
                service_id=payload.service_id,
                interaction_type=payload.interaction_type.value,
                user_id=user_id,
            )

        logger.debug(
            "analytics.interaction",
            extra={"service_id": entity.service_id, "interaction_type": entity.interaction_type},
        )
        return {
            "id": entity.id,
            "service_id": entity.service_id,
            "interaction_type": entity.interaction_type,
        }
