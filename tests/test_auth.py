"""Unit tests for session resolution and role checks."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.core.auth import ANONYMOUS, UserRole, resolve_session
from app.repositories.session_repository import SessionRecord, SessionRepository

ADMIN_TOKEN = "admin-session-token"
EXPIRED_TOKEN = "expired-session-token"

NOW = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


def repo_returning(record: SessionRecord | None) -> Mock:
    repository = Mock(spec=SessionRepository)
    repository.find_by_token.return_value = record
    return repository


class TestResolveSession:
    """Resolution of the session cookie to an identity."""

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token_is_anonymous_without_lookup(self, token) -> None:
        repository = repo_returning(None)

        assert resolve_session(token, repository, now=NOW) == ANONYMOUS
        repository.find_by_token.assert_not_called()

    def test_unknown_token_is_anonymous(self) -> None:
        assert resolve_session("nope", repo_returning(None), now=NOW).authenticated is False

    def test_expired_session_is_anonymous(self) -> None:
        record = SessionRecord(token="t", user_id=1, expires_at=NOW - timedelta(seconds=1), role="user")

        assert resolve_session("t", repo_returning(record), now=NOW) == ANONYMOUS

    def test_session_expiring_now_is_still_valid(self) -> None:
        record = SessionRecord(token="t", user_id=1, expires_at=NOW, role="user")

        assert resolve_session("t", repo_returning(record), now=NOW).authenticated is True

    def test_naive_expiry_is_read_as_utc(self) -> None:
        record = SessionRecord(token="t", user_id=1, expires_at=datetime(2030, 1, 2), role="user")

        assert resolve_session("t", repo_returning(record), now=NOW).authenticated is True

    def test_valid_session_carries_user_and_role(self) -> None:
        record = SessionRecord(token="t", user_id=7, expires_at=NOW + timedelta(hours=1), role="admin")

        result = resolve_session("t", repo_returning(record), now=NOW)

        assert result.authenticated is True
        assert result.user_id == 7
        assert result.role is UserRole.ADMIN
        assert result.is_admin is True

    def test_unknown_role_falls_back_to_user(self) -> None:
        record = SessionRecord(token="t", user_id=7, expires_at=NOW + timedelta(hours=1), role="owner")

        assert resolve_session("t", repo_returning(record), now=NOW).role is UserRole.USER

    def test_lookup_failure_is_anonymous(self) -> None:
        repository = Mock(spec=SessionRepository)
        repository.find_by_token.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        assert resolve_session("t", repository, now=NOW) == ANONYMOUS


class TestSessionRepository:
    def test_find_by_token_joins_user_role(self, db_session, users) -> None:
        record = SessionRepository(db_session).find_by_token(ADMIN_TOKEN)

        assert record is not None
        assert record.user_id == users["admin"].id
        assert record.role == "admin"

    def test_find_by_token_returns_expired_sessions(self, db_session, users) -> None:
        record = SessionRepository(db_session).find_by_token(EXPIRED_TOKEN)

        assert record is not None
        assert resolve_session(EXPIRED_TOKEN, SessionRepository(db_session)) == ANONYMOUS

    def test_create_persists_session(self, db_session, users) -> None:
        repository = SessionRepository(db_session)
        expires = datetime.now(timezone.utc) + timedelta(hours=2)

        repository.create(users["user"].id, "fresh-token", expires)

        assert resolve_session("fresh-token", repository).user_id == users["user"].id


class TestRequireRole:
    """Role gate behaviour through the HTTP layer."""

    def test_anonymous_gets_401(self, client) -> None:
        resp = client.post("/api/v1/services", json={"name": "X", "price": 1})

        assert resp.status_code == 401
        assert resp.json()["error"] == {"code": "UNAUTHORIZED", "message": "Authentication required"}

    def test_expired_session_gets_401(self, app, users) -> None:
        expired_client = TestClient(app, cookies={"session_token": EXPIRED_TOKEN})

        assert expired_client.get("/api/v1/bookings").status_code == 401

    def test_wrong_role_gets_403(self, user_client) -> None:
        resp = user_client.post("/api/v1/services", json={"name": "X", "price": 1})

        assert resp.status_code == 403
        assert resp.json()["error"] == {"code": "FORBIDDEN", "message": "Insufficient permissions"}

    def test_admin_passes_user_routes(self, admin_client) -> None:
        assert admin_client.get("/api/v1/bookings").status_code == 200

    def test_user_passes_user_routes(self, user_client) -> None:
        assert user_client.get("/api/v1/bookings").status_code == 200

    def test_unauthorized_response_still_counts_against_rate_limit(self, client) -> None:
        resp = client.get("/api/v1/bookings")

        assert resp.status_code == 401
        assert resp.headers["X-RateLimit-Remaining"] == "49"
