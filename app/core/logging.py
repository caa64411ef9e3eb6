"""Structured logging for the booking API.

Log records are event names (``rate_limit.exceeded``, ``webhook.failed``)
with structured ``extra`` fields. Records are rendered as JSON, carry the
request id of the HTTP request that produced them, and never contain session
tokens, cookies, webhook secrets or signatures.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from app.core.config import LogSettings, settings

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

REDACTED = "[REDACTED]"

# Field names whose values never reach a log line
SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "authorization",
        "token",
        "session_token",
        "secret",
        "webhook_secret",
        "signature",
        "x-webhook-signature",
        "password",
        "hashed_password",
        "cookie",
        "set-cookie",
        "database_url",
        "email",
    }
)

# Attributes every LogRecord has; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "request_id",
}


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    """Request id of the HTTP request being handled, if any."""

    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def hash_identifier(value: str, length: int = 16) -> str:
    """Truncated SHA-256 of ``value`` for log fields.

    Client addresses and session tokens never reach the logs verbatim.

    Examples:
        >>> len(hash_identifier("127.0.0.1"))
        16
    """

    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:length]


class Redactor:
    """Masks secrets in structured log fields.

    Keys in ``sensitive_keys`` (case-insensitive) are replaced wholesale.
    String values are also scanned for ``<cookie_name>=<token>`` pairs, so a
    raw Cookie header logged under an innocuous key still loses the session
    token.
    """

    def __init__(self, sensitive_keys: Iterable[str] | None = None, cookie_name: str | None = None) -> None:
        cookie = cookie_name or settings.app.session_cookie_name
        keys = SENSITIVE_KEYS_DEFAULT if sensitive_keys is None else sensitive_keys
        self.sensitive_keys = {k.lower() for k in keys} | {cookie.lower()}
        self._cookie_pair = re.compile(rf"({re.escape(cookie)}=)[^;,\s]+", re.IGNORECASE)

    def is_sensitive(self, key: Any) -> bool:
        return isinstance(key, str) and key.lower() in self.sensitive_keys

    def redact(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._cookie_pair.sub(rf"\g<1>{REDACTED}", value)
        if isinstance(value, Mapping):
            return {k: REDACTED if self.is_sensitive(k) else self.redact(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.redact(v) for v in value)
        return value

    def extra_fields(self, record: LogRecord) -> dict[str, Any]:
        """The record's ``extra`` fields, redacted."""
        return {
            key: REDACTED if self.is_sensitive(key) else self.redact(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }


class RequestIdFilter(logging.Filter):
    """Attach request_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Rewrite extra fields in place so every handler sees redacted values."""

    def __init__(self, redactor: Redactor | None = None) -> None:
        super().__init__()
        self.redactor = redactor or Redactor()

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in self.redactor.extra_fields(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    def __init__(self, *, redactor: Redactor | None = None, ensure_ascii: bool = True) -> None:
        super().__init__()
        self.redactor = redactor or Redactor()
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id

        payload.update(self.redactor.extra_fields(record))

        if record.exc_info:
            payload["exception"] = self.redactor.redact(self.formatException(record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    """Stdout by default; a (rotating) file when LOG_OUTPUT=file."""

    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/app.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes:
        return RotatingFileHandler(
            file_path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(file_path, encoding="utf-8")


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install one redacting handler on the root logger.

    APP_DEBUG=true forces DEBUG regardless of LOG_LEVEL. Safe to call more
    than once; previous root handlers are replaced.
    """

    cfg = log_settings or settings.log

    level = logging.DEBUG if settings.app.debug else getattr(logging, cfg.level.upper(), logging.INFO)
    redactor = Redactor()
    handler = _build_handler(cfg)

    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter(redactor))

    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter(redactor=redactor))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Avoid double logging from uvicorn if it gets re-configured
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False

    # httpx logs every outbound request at INFO (webhook deliveries)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
