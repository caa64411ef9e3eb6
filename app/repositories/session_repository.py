"""Session token lookups."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import User, UserSession


@dataclass(frozen=True)
class SessionRecord:
    token: str
    user_id: int
    expires_at: datetime
    role: str


class SessionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_token(self, token: str) -> SessionRecord | None:
        """Return the session joined with its user's role, expired or not."""
        stmt = (
            select(UserSession.session_token, UserSession.user_id, UserSession.expires_at, User.role)
            .join(User, User.id == UserSession.user_id)
            .where(UserSession.session_token == token)
        )
        row = self.session.execute(stmt).one_or_none()
        if row is None:
            return None
        return SessionRecord(token=row[0], user_id=row[1], expires_at=row[2], role=row[3])

    def create(self, user_id: int, token: str, expires_at: datetime) -> UserSession:
        entity = UserSession(user_id=user_id, session_token=token, expires_at=expires_at)
        self.session.add(entity)
        self.session.commit()
        return entity
