"""CRUD helpers for the service catalog."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.db.models import Service


class ServiceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, *, limit: int, offset: int) -> list[Service]:
        stmt = select(Service).order_by(Service.name, Service.id).limit(limit).offset(offset)
        return list(self.session.execute(stmt).scalars().all())

    def count(self) -> int:
        return self.session.execute(select(func.count()).select_from(Service)).scalar_one()

    def get(self, service_id: int) -> Service | None:
        return self.session.get(Service, service_id)

    def create(
        self,
        *,
        name: str,
        price: Decimal,
        description: str | None = None,
        duration: int | None = None,
    ) -> Service:
        entity = Service(name=name, description=description, price=price, duration=duration)
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def update(self, entity: Service, changes: dict[str, Any]) -> Service:
        for field, value in changes.items():
            setattr(entity, field, value)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def delete(self, service_id: int) -> None:
        self.session.execute(delete(Service).where(Service.id == service_id))
        self.session.commit()
