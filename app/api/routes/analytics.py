from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import AuthResult, get_auth_result
from app.core.responses import success_response
from app.db.session import get_db
from app.schemas.analytics import InteractionCreate, PageViewCreate
from app.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.post("/page-views")
def record_page_view(
    payload: PageViewCreate,
    request: Request,
    auth: AuthResult = Depends(get_auth_result),
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Record a page view; the visitor's session is attached when present."""
    data = AnalyticsService(db).record_page_view(
        payload,
        user_id=auth.user_id,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    return success_response(data, status_code=201)


@router.post("/interactions")
def record_interaction(
    payload: InteractionCreate,
    auth: AuthResult = Depends(get_auth_result),
    db: Session = Depends(get_db),
) -> JSONResponse:
    data = AnalyticsService(db).record_interaction(payload, user_id=auth.user_id)
    return success_response(data, status_code=201)
