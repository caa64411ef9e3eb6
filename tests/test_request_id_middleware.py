from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient


def test_preserves_incoming_request_id_header(client):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_error_responses_carry_request_id(client):
    resp = client.get("/api/v1/services/abc", headers={"X-Request-ID": "req-err"})

    assert resp.status_code == 400
    assert resp.headers.get("X-Request-ID") == "req-err"


def test_unexpected_error_keeps_correlation_and_rate_limit_headers(app, users):
    client = TestClient(app, raise_server_exceptions=False)

    with patch(
        "app.services.catalog_service.CatalogService.list_services",
        side_effect=RuntimeError("driver exploded"),
    ):
        resp = client.get("/api/v1/services", headers={"X-Request-ID": "req-crash"})

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "INTERNAL_SERVER_ERROR"
    assert "driver exploded" not in resp.text
    assert resp.headers["X-Request-ID"] == "req-crash"
    assert resp.headers.get("X-Request-Duration-ms") is not None
    assert resp.headers["X-RateLimit-Limit"] == "50"
    assert resp.headers["X-RateLimit-Remaining"] == "49"


def test_health_body(client):
    assert client.get("/health").json() == {"status": "ok"}
