"""OpenAPI customization for the booking API.

Adds the ``session_token`` cookie security scheme, tag descriptions, and
marks the public operations (health, catalog reads, analytics) as not
requiring a session.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.core.config import settings

_TAGS = [
    {"name": "Services", "description": "Service catalog; writes require an admin session."},
    {"name": "Bookings", "description": "Customer bookings; requires a session."},
    {"name": "Admin", "description": "Admin dashboard aggregates."},
    {"name": "Analytics", "description": "Page view and interaction tracking."},
    {"name": "Health", "description": "Liveness check."},
]


def _is_public(path: str, method: str) -> bool:
    if path.endswith("/health") or "/analytics/" in path:
        return True
    return "/services" in path and method == "get"


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add the cookie scheme and tags."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "SessionCookie",
            {
                "type": "apiKey",
                "in": "cookie",
                "name": settings.app.session_cookie_name,
                "description": "Opaque session token issued at login.",
            },
        )
        schema.setdefault("security", [{"SessionCookie": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        tags.extend(tag for tag in _TAGS if tag["name"] not in existing_tag_names)

        for path, methods in schema.get("paths", {}).items():
            for method, operation in methods.items():
                if isinstance(operation, dict) and _is_public(path, method):
                    operation["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
