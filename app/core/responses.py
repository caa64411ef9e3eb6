"""JSON envelope helpers shared by every API route.

Success: ``{"success": true, "data": ..., "meta": {...}}`` (meta optional).
Error:   ``{"success": false, "error": {"code", "message", "details"?}}``.
"""

from __future__ import annotations

from typing import Any, Mapping

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core.errors import STATUS_CODES, ErrorCode


def success_response(
    data: Any,
    meta: Mapping[str, Any] | None = None,
    status_code: int = 200,
) -> JSONResponse:
    """Wrap ``data`` in the success envelope."""

    content: dict[str, Any] = {"success": True, "data": data}
    if meta:
        content["meta"] = dict(meta)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def error_body(code: ErrorCode, message: str, details: Any = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code.value, "message": message}
    # Include details only if present (optional structured context)
    if details:
        error["details"] = details
    return {"success": False, "error": error}


def error_response(
    code: ErrorCode,
    message: str,
    details: Any = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Build the error envelope with the status mapped from ``code``."""

    return JSONResponse(
        status_code=STATUS_CODES[code],
        content=jsonable_encoder(error_body(code, message, details)),
        headers=dict(headers) if headers else None,
    )


def pagination_meta(*, total: int, limit: int, offset: int, count: int) -> dict[str, Any]:
    """Build ``meta.pagination`` for a page of ``count`` items."""

    return {
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "hasMore": offset + count < total,
        }
    }
