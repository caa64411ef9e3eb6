"""Tests for the rate limit dependency and its response headers."""

from __future__ import annotations

import asyncio
from unittest.mock import Mock

import pytest

from app.adapters.rate_limit import InMemoryRateLimitStore
from app.core.config import settings
from app.core.rate_limit import UNKNOWN_CLIENT_KEY, client_key, sweep_rate_limit_store_periodically


def test_success_response_carries_headers(client) -> None:
    resp = client.get("/api/v1/services")

    assert resp.status_code == 200
    assert resp.headers["X-RateLimit-Limit"] == "50"
    assert resp.headers["X-RateLimit-Remaining"] == "49"
    assert int(resp.headers["X-RateLimit-Reset"]) > 0


def test_error_after_gate_still_carries_headers(client) -> None:
    resp = client.get("/api/v1/services/999")

    assert resp.status_code == 404
    assert resp.headers["X-RateLimit-Remaining"] == "49"


def test_limit_exceeded_returns_429(client, monkeypatch) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_requests", 2)

    assert client.get("/api/v1/services").status_code == 200
    assert client.get("/api/v1/services").status_code == 200
    resp = client.get("/api/v1/services")

    assert resp.status_code == 429
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "TOO_MANY_REQUESTS"
    assert resp.headers["X-RateLimit-Limit"] == "2"
    assert resp.headers["X-RateLimit-Remaining"] == "0"
    assert 0 < int(resp.headers["Retry-After"]) <= 60


def test_budget_is_shared_across_routes(client, rate_limit_store) -> None:
    client.get("/api/v1/services")
    client.get("/api/v1/bookings")

    assert rate_limit_store.get("testclient").count == 2


def test_health_is_not_rate_limited(client, rate_limit_store) -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    assert "X-RateLimit-Limit" not in resp.headers
    assert len(rate_limit_store) == 0


def test_disabled_rate_limit_skips_counting(client, rate_limit_store, monkeypatch) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_enabled", False)

    resp = client.get("/api/v1/services")

    assert resp.status_code == 200
    assert "X-RateLimit-Limit" not in resp.headers
    assert len(rate_limit_store) == 0


def test_malformed_body_is_counted_and_carries_headers(admin_client, rate_limit_store) -> None:
    resp = admin_client.post(
        "/api/v1/services",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 422
    assert resp.headers["X-RateLimit-Remaining"] == "49"
    assert rate_limit_store.get("testclient").count == 1


def test_unknown_api_path_is_counted(client, rate_limit_store) -> None:
    resp = client.get("/api/v1/nowhere")

    assert resp.status_code == 404
    assert resp.headers["X-RateLimit-Limit"] == "50"
    assert rate_limit_store.get("testclient").count == 1


def test_limit_is_checked_before_authentication(client, monkeypatch) -> None:
    monkeypatch.setattr(settings.app, "rate_limit_requests", 1)
    client.get("/api/v1/services")

    resp = client.post("/api/v1/services", json={"name": "Haircut", "price": 25})

    assert resp.status_code == 429


def test_client_without_address_uses_shared_bucket() -> None:
    assert client_key(Mock(client=None)) == UNKNOWN_CLIENT_KEY


def test_client_key_is_peer_address() -> None:
    request = Mock()
    request.client.host = "10.0.0.7"

    assert client_key(request) == "10.0.0.7"


@pytest.mark.asyncio
async def test_periodic_sweeper_removes_expired_entries() -> None:
    store = InMemoryRateLimitStore()
    store.increment("stale", window_seconds=1, now=0.0)
    store.increment("live", window_seconds=60, now=100.0)

    task = asyncio.create_task(sweep_rate_limit_store_periodically(store, 0.01, clock=lambda: 100.0))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert store.get("stale") is None
    assert store.get("live") is not None
