"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import (
    JsonFormatter,
    Redactor,
    RequestIdFilter,
    SensitiveDataFilter,
    hash_identifier,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired like production (redaction + JSON) writing to a buffer."""

    def build(name: str) -> tuple[logging.Logger, StringIO]:
        logger = logging.getLogger(name)
        logger.setLevel(logging.INFO)
        logger.handlers.clear()
        logger.propagate = False

        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.addFilter(RequestIdFilter())
        handler.addFilter(SensitiveDataFilter())
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        return logger, stream

    return build


def test_sensitive_filter_redacts_session_material(capture):
    logger, stream = capture("test_session_redaction")

    logger.info(
        "auth_event",
        extra={
            "session_token": "tok-123",
            "cookie": "session_token=tok-123",
            "hashed_password": "$2b$12$abc",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "tok-123" not in output
    assert "$2b$12$abc" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_webhook_secrets(capture):
    logger, stream = capture("test_webhook_redaction")

    logger.info("webhook_event", extra={"secret": "shh", "signature": "abcdef", "event": "booking.created"})

    record = json.loads(stream.getvalue())
    assert record["secret"] == "[REDACTED]"
    assert record["signature"] == "[REDACTED]"
    assert record["event"] == "booking.created"


def test_sensitive_filter_allows_safe_fields(capture):
    logger, stream = capture("test_safe_fields")

    logger.info(
        "safe_event",
        extra={
            "route": "/api/v1/services",
            "status": 200,
            "duration_ms": 150.5,
        },
    )

    output = stream.getvalue()
    assert "/api/v1/services" in output
    assert "200" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts(capture):
    logger, stream = capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "Authorization": "Bearer secret-key",
                "X-Webhook-Signature": "deadbeef",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()
    assert "secret-key" not in output
    assert "deadbeef" not in output
    assert "pytest" in output


def test_request_id_is_attached_from_context(capture):
    logger, stream = capture("test_request_id")

    set_request_id("req-42")
    try:
        logger.info("with_context")
    finally:
        set_request_id(None)

    assert json.loads(stream.getvalue())["request_id"] == "req-42"


def test_hash_identifier_is_stable_and_opaque():
    hashed = hash_identifier("203.0.113.9")

    assert hashed == hash_identifier("203.0.113.9")
    assert len(hashed) == 16
    assert "203.0.113.9" not in hashed


def test_session_token_inside_raw_cookie_header_is_masked(capture):
    logger, stream = capture("test_cookie_header")

    logger.info("request_headers", extra={"raw_headers": "theme=dark; session_token=tok-999; lang=en"})

    record = json.loads(stream.getvalue())
    assert record["raw_headers"] == "theme=dark; session_token=[REDACTED]; lang=en"


def test_custom_session_cookie_name_is_treated_as_sensitive():
    redactor = Redactor(cookie_name="sid")

    assert redactor.is_sensitive("SID")
    assert redactor.redact({"sid": "abc", "path": "/"}) == {"sid": "[REDACTED]", "path": "/"}
    assert redactor.redact("sid=abc") == "sid=[REDACTED]"


def test_exception_traceback_is_rendered_and_masked(capture):
    logger, stream = capture("test_exception")

    try:
        raise RuntimeError("lookup failed for session_token=tok-777")
    except RuntimeError:
        logger.exception("auth.lookup_failed")

    record = json.loads(stream.getvalue())
    assert "RuntimeError" in record["exception"]
    assert "tok-777" not in record["exception"]


def test_request_id_is_not_duplicated_from_extra(capture):
    logger, stream = capture("test_request_id_extra")

    logger.info("explicit", extra={"request_id": "req-explicit"})

    assert stream.getvalue().count("req-explicit") == 1
