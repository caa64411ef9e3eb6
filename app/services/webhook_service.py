"""Signed outbound webhooks.

Each delivery is one JSON POST whose raw body is signed with HMAC-SHA256
(hex) using the shared secret; the signature travels in the
``X-Webhook-Signature`` header. There is no retry. Delivery is best effort:
``WebhookNotifier.notify`` logs the outcome and never raises, so handlers can
schedule it as a background task without risking the primary operation.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import httpx
from fastapi import BackgroundTasks, Depends, Request

from app.core.config import WebhookSettings, settings

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"


class WebhookEventType(str, Enum):
    BOOKING_CREATED = "booking.created"
    BOOKING_UPDATED = "booking.updated"
    BOOKING_CANCELLED = "booking.cancelled"
    SERVICE_CREATED = "service.created"
    SERVICE_UPDATED = "service.updated"
    SERVICE_DELETED = "service.deleted"
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class WebhookConfig:
    url: str
    secret: str
    events: frozenset[WebhookEventType]
    active: bool

    def subscribes(self, event: WebhookEventType) -> bool:
        return self.active and event in self.events

    @classmethod
    def from_settings(cls, webhook_settings: WebhookSettings | None = None) -> "WebhookConfig":
        cfg = webhook_settings or settings.webhook
        return cls(
            url=cfg.url,
            secret=cfg.secret,
            events=parse_event_types(cfg.events),
            active=cfg.enabled,
        )


@dataclass(frozen=True)
class WebhookResult:
    """What happened to one webhook emission."""

    outcome: DeliveryOutcome
    event: WebhookEventType
    delivery_id: str | None = None
    status_code: int | None = None
    reason: str | None = None

    @property
    def delivered(self) -> bool:
        return self.outcome is DeliveryOutcome.DELIVERED


def parse_event_types(events_string: str | None) -> frozenset[WebhookEventType]:
    """Parse comma-separated event types; empty means every event.

    Examples:
        >>> sorted(e.value for e in parse_event_types("service.created, booking.created"))
        ['booking.created', 'service.created']
        >>> len(parse_event_types(None)) == len(WebhookEventType)
        True

    Raises:
        ValueError: If a name is not a known event type.
    """
    if not events_string or not events_string.strip():
        return frozenset(WebhookEventType)
    return frozenset(
        WebhookEventType(name.strip()) for name in events_string.split(",") if name.strip()
    )


def generate_signature(payload: str | bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of ``payload`` keyed with ``secret``."""
    body = payload.encode("utf-8") if isinstance(payload, str) else payload
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(payload: str | bytes, signature: str, secret: str) -> bool:
    """Accept exactly the signature ``generate_signature`` produces."""
    expected = generate_signature(payload, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def build_payload(event: WebhookEventType, data: Any) -> dict[str, Any]:
    return {
        "id": str(uuid.uuid4()),
        "event": event.value,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "data": data,
    }


class WebhookNotifier:
    """Deliver signed event notifications to one configured endpoint."""

    def __init__(
        self,
        config: WebhookConfig,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            config: Endpoint, secret, subscribed events and active flag.
            timeout_seconds: Timeout for the POST in seconds.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        """
        self.config = config
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, webhook_settings: WebhookSettings | None = None) -> "WebhookNotifier":
        cfg = webhook_settings or settings.webhook
        return cls(WebhookConfig.from_settings(cfg), timeout_seconds=cfg.timeout_seconds)

    async def send(self, event: WebhookEventType, data: Any) -> WebhookResult:
        """Sign and POST one event.

        Returns:
            SKIPPED without any I/O when the endpoint is inactive or not
            subscribed; DELIVERED for a 2xx answer; FAILED otherwise.
        """
        if not self.config.subscribes(event):
            return WebhookResult(
                outcome=DeliveryOutcome.SKIPPED,
                event=event,
                reason=f"Webhook not configured for event: {event.value}",
            )

        payload = build_payload(event, data)
        body = json.dumps(payload, default=str, separators=(",", ":"))
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: generate_signature(body, self.config.secret),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self.config.url, content=body.encode("utf-8"), headers=headers)
        except httpx.HTTPError as exc:
            return WebhookResult(
                outcome=DeliveryOutcome.FAILED,
                event=event,
                delivery_id=payload["id"],
                reason=f"{type(exc).__name__}: {exc}",
            )

        if response.is_success:
            return WebhookResult(
                outcome=DeliveryOutcome.DELIVERED,
                event=event,
                delivery_id=payload["id"],
                status_code=response.status_code,
            )
        return WebhookResult(
            outcome=DeliveryOutcome.FAILED,
            event=event,
            delivery_id=payload["id"],
            status_code=response.status_code,
            reason=f"Endpoint answered HTTP {response.status_code}",
        )

    async def notify(self, event: WebhookEventType, data: Any) -> WebhookResult:
        """Best-effort ``send``: log the outcome, never raise."""
        try:
            result = await self.send(event, data)
        except Exception as exc:  # noqa: BLE001
            result = WebhookResult(
                outcome=DeliveryOutcome.FAILED,
                event=event,
                reason=f"{type(exc).__name__}: {exc}",
            )

        log_extra = {
            "event": event.value,
            "outcome": result.outcome.value,
            "delivery_id": result.delivery_id,
            "status_code": result.status_code,
            "reason": result.reason,
        }
        if result.outcome is DeliveryOutcome.FAILED:
            logger.error("webhook.failed", extra=log_extra)
        elif result.outcome is DeliveryOutcome.SKIPPED:
            logger.debug("webhook.skipped", extra=log_extra)
        else:
            logger.info("webhook.delivered", extra=log_extra)
        return result


class WebhookDispatcher:
    """Schedule ``notify`` calls to run after the response is sent.

    ``emit`` only queues work on the request's ``BackgroundTasks``; the
    delivery result is logged by the notifier.
    """

    def __init__(self, notifier: WebhookNotifier, background_tasks: BackgroundTasks) -> None:
        self.notifier = notifier
        self.background_tasks = background_tasks

    def emit(self, event: WebhookEventType, data: Any) -> None:
        if not self.notifier.config.subscribes(event):
            logger.debug("webhook.not_scheduled", extra={"event": event.value})
            return
        self.background_tasks.add_task(self.notifier.notify, event, data)


def get_webhook_notifier(request: Request) -> WebhookNotifier:
    """Return the notifier owned by the running application."""
    return request.app.state.webhook_notifier


def get_webhook_dispatcher(
    background_tasks: BackgroundTasks,
    notifier: WebhookNotifier = Depends(get_webhook_notifier),
) -> WebhookDispatcher:
    return WebhookDispatcher(notifier, background_tasks)
