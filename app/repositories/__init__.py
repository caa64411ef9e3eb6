from app.repositories.analytics_repository import AnalyticsRepository
from app.repositories.booking_repository import BookingRepository
from app.repositories.service_repository import ServiceRepository
from app.repositories.session_repository import SessionRecord, SessionRepository

__all__ = [
    "AnalyticsRepository",
    "BookingRepository",
    "ServiceRepository",
    "SessionRecord",
    "SessionRepository",
]
