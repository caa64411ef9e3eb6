"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return the JSON error envelope with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → the status bound to their error code
- RequestValidationError → 422 VALIDATION_ERROR with per-field messages
- Starlette HTTPException (unknown route, wrong method) → mapped error code
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import AppError, ErrorCode
from app.core.logging import get_request_id
from app.core.responses import error_response

logger = logging.getLogger(__name__)

_HTTP_STATUS_TO_CODE = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.TOO_MANY_REQUESTS,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with the error envelope.

    Client faults are logged at warning level, server faults at error level.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the status bound to the error code.
    """
    status_code = exc.status_code
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code.value,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    return error_response(exc.code, exc.message, exc.details, headers=exc.headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert Pydantic request validation failures to VALIDATION_ERROR.

    ``details`` maps the dotted field location (e.g. ``body.price``) to the
    list of messages reported for it.
    """
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        details.setdefault(location or "request", []).append(error.get("msg", "Invalid value"))

    logger.info(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "fields": sorted(details),
            "request_id": get_request_id(),
        },
    )

    return error_response(ErrorCode.VALIDATION_ERROR, "Validation failed", details)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (404 route, 405 method) in the envelope."""
    code = _HTTP_STATUS_TO_CODE.get(exc.status_code, ErrorCode.INTERNAL_SERVER_ERROR)
    response = error_response(code, str(exc.detail), headers=getattr(exc, "headers", None))
    # Keep the framework status (e.g. 405) even when it has no dedicated code.
    response.status_code = exc.status_code
    return response


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the unexpected error and answer a generic INTERNAL_SERVER_ERROR."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return error_response(
        ErrorCode.INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
    )


def setup_exception_handlers(app) -> None:
    """Register the envelope handlers on ``app``; repeated calls replace them."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
