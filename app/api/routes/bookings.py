from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.params import parse_id, parse_page
from app.core.auth import AuthResult, UserRole, require_role
from app.core.responses import success_response
from app.db.session import get_db
from app.schemas.booking import BookingCreate, BookingStatusUpdate
from app.services.booking_service import BookingService, parse_status
from app.services.webhook_service import WebhookDispatcher, get_webhook_dispatcher

router = APIRouter(prefix="/bookings", tags=["Bookings"])

require_user = require_role(UserRole.USER)


@router.post("")
def create_booking(
    payload: BookingCreate,
    auth: AuthResult = Depends(require_user),
    db: Session = Depends(get_db),
    webhooks: WebhookDispatcher = Depends(get_webhook_dispatcher),
) -> JSONResponse:
    """Book a service for the caller.

    The slot must lie in the future and the service must exist. The new
    booking starts as ``pending``.
    """
    data = BookingService(db, webhooks).create_booking(auth, payload)
    return success_response(data, status_code=201)


@router.get("")
def list_bookings(
    status: str | None = None,
    limit: str | None = None,
    offset: str | None = None,
    auth: AuthResult = Depends(require_user),
    db: Session = Depends(get_db),
) -> JSONResponse:
    """List the caller's bookings (every booking for admins)."""
    page = parse_page(limit, offset)
    items, meta = BookingService(db).list_bookings(auth, page, parse_status(status))
    return success_response(items, meta=meta)


@router.get("/{booking_id}")
def get_booking(
    booking_id: str,
    auth: AuthResult = Depends(require_user),
    db: Session = Depends(get_db),
) -> JSONResponse:
    bid = parse_id(booking_id, "booking")
    return success_response(BookingService(db).get_booking(auth, bid))


@router.patch("/{booking_id}")
def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    auth: AuthResult = Depends(require_user),
    db: Session = Depends(get_db),
    webhooks: WebhookDispatcher = Depends(get_webhook_dispatcher),
) -> JSONResponse:
    bid = parse_id(booking_id, "booking")
    return success_response(BookingService(db, webhooks).update_status(auth, bid, payload))
