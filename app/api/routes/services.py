from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.params import parse_id, parse_page
from app.core.auth import UserRole, require_role
from app.core.responses import success_response
from app.db.session import get_db
from app.schemas.service import ServiceCreate, ServiceUpdate
from app.services.catalog_service import CatalogService
from app.services.webhook_service import WebhookDispatcher, get_webhook_dispatcher

router = APIRouter(prefix="/services", tags=["Services"])

require_admin = require_role(UserRole.ADMIN)


@router.get("")
def list_services(
    limit: str | None = None,
    offset: str | None = None,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """List services ordered by name.

    ``limit`` defaults to 10 (1..100) and ``offset`` to 0; anything else is
    rejected with BAD_REQUEST. ``meta.pagination.hasMore`` tells whether a
    further page exists.
    """
    page = parse_page(limit, offset)
    items, meta = CatalogService(db).list_services(page)
    return success_response(items, meta=meta)


@router.get("/{service_id}")
def get_service(service_id: str, db: Session = Depends(get_db)) -> JSONResponse:
    sid = parse_id(service_id, "service")
    return success_response(CatalogService(db).get_service(sid))


@router.post("", dependencies=[Depends(require_admin)])
def create_service(
    payload: ServiceCreate,
    db: Session = Depends(get_db),
    webhooks: WebhookDispatcher = Depends(get_webhook_dispatcher),
) -> JSONResponse:
    """Create a service (admin only). ``name`` and ``price`` are required."""
    data = CatalogService(db, webhooks).create_service(payload)
    return success_response(data, status_code=201)


@router.put("/{service_id}", dependencies=[Depends(require_admin)])
def update_service(
    service_id: str,
    payload: ServiceUpdate,
    db: Session = Depends(get_db),
    webhooks: WebhookDispatcher = Depends(get_webhook_dispatcher),
) -> JSONResponse:
    """Update a service; fields left out or null keep their current value."""
    sid = parse_id(service_id, "service")
    return success_response(CatalogService(db, webhooks).update_service(sid, payload))


@router.delete("/{service_id}", dependencies=[Depends(require_admin)])
def delete_service(
    service_id: str,
    db: Session = Depends(get_db),
    webhooks: WebhookDispatcher = Depends(get_webhook_dispatcher),
) -> JSONResponse:
    sid = parse_id(service_id, "service")
    return success_response(CatalogService(db, webhooks).delete_service(sid))
