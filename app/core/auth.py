"""Cookie session authentication and role checks.

This module provides the two request gates that sit in front of protected
routes:

- ``resolve_session`` / ``get_auth_result``: map the ``session_token`` cookie
  to a user identity. A missing, unknown or expired session is a normal
  outcome (``authenticated=False``), never an exception.
- ``require_role``: build a FastAPI dependency that rejects unauthenticated
  callers (401) and callers whose role does not grant access (403), and
  exposes the resolved identity on ``request.state``.

Usage:
    @router.post("/things")
    def create_thing(auth: AuthResult = Depends(require_role(UserRole.ADMIN))):
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ForbiddenAppError, UnauthorizedAppError
from app.core.logging import hash_identifier
from app.db.session import get_db
from app.repositories.session_repository import SessionRepository

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of resolving a session cookie."""

    authenticated: bool
    user_id: int | None = None
    role: UserRole | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


ANONYMOUS = AuthResult(authenticated=False)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_role(raw: str | None) -> UserRole:
    try:
        return UserRole(raw)
    except ValueError:
        logger.warning("auth.unknown_role", extra={"role": raw})
        return UserRole.USER


def resolve_session(
    token: str | None,
    repository: SessionRepository,
    *,
    now: datetime | None = None,
) -> AuthResult:
    """Resolve a session token to an ``AuthResult``.

    Pure lookup logic without FastAPI dependencies for easy testing.

    Args:
        token: Value of the session cookie (None when absent).
        repository: Session lookup backed by the relational store.
        now: Reference time (defaults to the current UTC time).

    Returns:
        ``AuthResult`` with ``authenticated=False`` when the token is missing,
        unknown or expired (``expires_at < now``); otherwise the user id and
        the role stored on the user.
    """
    if not token:
        return ANONYMOUS

    now = now or datetime.now(timezone.utc)
    try:
        record = repository.find_by_token(token)
    except SQLAlchemyError as exc:
        logger.error(
            "auth.lookup_failed",
            extra={"error_type": type(exc).__name__, "token_hash": hash_identifier(token)},
        )
        return ANONYMOUS

    if record is None:
        logger.info("auth.unauthenticated", extra={"reason": "unknown_token", "token_hash": hash_identifier(token)})
        return ANONYMOUS

    if _as_utc(record.expires_at) < now:
        logger.info("auth.unauthenticated", extra={"reason": "expired", "token_hash": hash_identifier(token)})
        return ANONYMOUS

    return AuthResult(authenticated=True, user_id=record.user_id, role=_parse_role(record.role))


def get_auth_result(request: Request, db: Session = Depends(get_db)) -> AuthResult:
    """FastAPI dependency resolving the caller's session, if any."""

    token = request.cookies.get(settings.app.session_cookie_name)
    return resolve_session(token, SessionRepository(db))


def require_role(role: UserRole) -> Callable[..., AuthResult]:
    """Build a dependency admitting ``role`` or an admin.

    Args:
        role: Role the route requires.

    Returns:
        Dependency returning the caller's ``AuthResult``.

    Raises:
        UnauthorizedAppError: 401 when there is no valid session.
        ForbiddenAppError: 403 when the role does not match and is not admin.
    """

    def dependency(request: Request, auth: AuthResult = Depends(get_auth_result)) -> AuthResult:
        if not auth.authenticated:
            raise UnauthorizedAppError(message="Authentication required")

        if auth.role is not role and not auth.is_admin:
            logger.warning(
                "auth.forbidden",
                extra={"user_id": auth.user_id, "role": auth.role, "required_role": role.value},
            )
            raise ForbiddenAppError(message="Insufficient permissions")

        request.state.user_id = auth.user_id
        request.state.user_role = auth.role
        return auth

    dependency.__name__ = f"require_{role.value}"
    return dependency
