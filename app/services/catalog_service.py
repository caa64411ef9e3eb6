"""Service catalog use cases.

CRUD over the ``services`` table plus webhook emission for every change.
Webhooks are dispatched only after the change is committed, and their
delivery can never undo it.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.params import Page
from app.core.errors import BadRequestAppError, ConflictAppError, NotFoundAppError
from app.core.responses import pagination_meta
from app.db.models import Service
from app.repositories.booking_repository import BookingRepository
from app.repositories.service_repository import ServiceRepository
from app.schemas.service import ServiceCreate, ServiceRead, ServiceUpdate
from app.services.common import database_guard
from app.services.webhook_service import WebhookDispatcher, WebhookEventType

logger = logging.getLogger(__name__)


def serialize_service(entity: Service) -> dict[str, Any]:
    return ServiceRead.model_validate(entity).model_dump(mode="json")


class CatalogService:
    def __init__(self, session: Session, webhooks: WebhookDispatcher | None = None) -> None:
        self.session = session
        self.repository = ServiceRepository(session)
        self.bookings = BookingRepository(session)
        self.webhooks = webhooks

    def _emit(self, event: WebhookEventType, data: dict[str, Any]) -> None:
        if self.webhooks is not None:
            self.webhooks.emit(event, data)

    def _get_or_404(self, service_id: int) -> Service:
        entity = self.repository.get(service_id)
        if entity is None:
            raise NotFoundAppError.for_resource("Service")
        return entity

    def list_services(self, page: Page) -> tuple[list[dict[str, Any]], dict[str, Any]]:
        """Return one page of services ordered by name, with pagination meta."""
        with database_guard(self.session, "Failed to fetch services", operation="services.list"):
            items = [serialize_service(s) for s in self.repository.list(limit=page.limit, offset=page.offset)]
            total = self.repository.count()
        return items, pagination_meta(total=total, limit=page.limit, offset=page.offset, count=len(items))

    def get_service(self, service_id: int) -> dict[str, Any]:
        with database_guard(self.session, "Failed to fetch service", operation="services.get"):
            return serialize_service(self._get_or_404(service_id))

    def create_service(self, payload: ServiceCreate) -> dict[str, Any]:
        if not payload.name or not payload.price:
            raise BadRequestAppError(message="Name and price are required")

        with database_guard(self.session, "Failed to create service", operation="services.create"):
            entity = self.repository.create(
                name=payload.name,
                price=payload.price,
                description=payload.description,
                duration=payload.duration,
            )
            data = serialize_service(entity)

        logger.info("service.created", extra={"service_id": entity.id})
        self._emit(WebhookEventType.SERVICE_CREATED, data)
        return data

    def update_service(self, service_id: int, payload: ServiceUpdate) -> dict[str, Any]:
        changes = payload.model_dump(exclude_none=True)
        if "name" in changes and not changes["name"]:
            raise BadRequestAppError(message="Name cannot be empty")

        with database_guard(self.session, "Failed to update service", operation="services.update"):
            entity = self._get_or_404(service_id)
            entity = self.repository.update(entity, changes)
            data = serialize_service(entity)

        logger.info("service.updated", extra={"service_id": service_id, "fields": sorted(changes)})
        self._emit(WebhookEventType.SERVICE_UPDATED, data)
        return data

    def delete_service(self, service_id: int) -> dict[str, Any]:
        with database_guard(self.session, "Failed to delete service", operation="services.delete"):
            entity = self._get_or_404(service_id)
            data = serialize_service(entity)
            if self.bookings.count(service_id=service_id):
                raise ConflictAppError(message="Service has bookings and cannot be deleted")
            try:
                self.repository.delete(service_id)
            except IntegrityError as exc:
                self.session.rollback()
                raise ConflictAppError(message="Service has bookings and cannot be deleted") from exc

        logger.info("service.deleted", extra={"service_id": service_id})
        self._emit(WebhookEventType.SERVICE_DELETED, data)
        return {"id": service_id, "deleted": True}
