"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment so no .env file or on-disk database is touched, and
provides an application wired to a temporary SQLite database.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("DB_URL", "sqlite:///:memory:")
os.environ.setdefault("DB_CREATE_TABLES", "false")
os.environ.setdefault("WEBHOOK_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from app.adapters.rate_limit import InMemoryRateLimitStore
from app.core.app_factory import create_app
from app.db import models
from app.db.session import build_engine, get_db
from app.services.webhook_service import WebhookConfig, WebhookEventType, WebhookNotifier

USER_TOKEN = "user-session-token"
ADMIN_TOKEN = "admin-session-token"
EXPIRED_TOKEN = "expired-session-token"
WEBHOOK_SECRET = "test-secret"


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    models.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def users(db_session: Session) -> dict[str, models.User]:
    """Seed one customer and one admin, each with a live session."""
    now = datetime.now(timezone.utc)
    customer = models.User(email="user@example.com", hashed_password="x", role="user")
    admin = models.User(email="admin@example.com", hashed_password="x", role="admin")
    db_session.add_all([customer, admin])
    db_session.flush()
    db_session.add_all(
        [
            models.UserSession(user_id=customer.id, session_token=USER_TOKEN, expires_at=now + timedelta(days=1)),
            models.UserSession(user_id=admin.id, session_token=ADMIN_TOKEN, expires_at=now + timedelta(days=1)),
            models.UserSession(user_id=customer.id, session_token=EXPIRED_TOKEN, expires_at=now - timedelta(hours=1)),
        ]
    )
    db_session.commit()
    return {"user": customer, "admin": admin}


@pytest.fixture
def make_service(db_session: Session):
    def factory(name: str = "Haircut", price: str = "25.00", duration: int | None = 30) -> models.Service:
        entity = models.Service(name=name, price=Decimal(price), duration=duration)
        db_session.add(entity)
        db_session.commit()
        return entity

    return factory


@pytest.fixture
def webhook_calls() -> list:
    return []


@pytest.fixture
def webhook_transport(webhook_calls):
    """Mock endpoint recording every webhook request and answering 200."""

    def handler(request: httpx.Request) -> httpx.Response:
        webhook_calls.append(request)
        return httpx.Response(200)

    return httpx.MockTransport(handler)


@pytest.fixture
def webhook_notifier(webhook_transport) -> WebhookNotifier:
    config = WebhookConfig(
        url="https://hooks.example.test/webhook",
        secret=WEBHOOK_SECRET,
        events=frozenset(WebhookEventType),
        active=True,
    )
    return WebhookNotifier(config, timeout_seconds=1, transport=webhook_transport)


@pytest.fixture
def rate_limit_store() -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore()


@pytest.fixture
def app(session_factory, rate_limit_store, webhook_notifier) -> FastAPI:
    application = create_app(rate_limit_store=rate_limit_store, webhook_notifier=webhook_notifier)

    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app: FastAPI, users) -> TestClient:
    return TestClient(app)


@pytest.fixture
def user_client(app: FastAPI, users) -> TestClient:
    return TestClient(app, cookies={"session_token": USER_TOKEN})


@pytest.fixture
def admin_client(app: FastAPI, users) -> TestClient:
    return TestClient(app, cookies={"session_token": ADMIN_TOKEN})
