from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import UserRole, require_role
from app.core.responses import success_response
from app.db.session import get_db
from app.services.dashboard_service import DashboardService

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db)) -> JSONResponse:
    """Totals, revenue and the five latest bookings."""
    return success_response(DashboardService(db).summary())
