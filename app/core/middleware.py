"""HTTP middleware for request correlation and rate-limit headers.

Two middlewares live here:
- ``request_id_middleware`` accepts an incoming X-Request-ID header (or
  generates a UUID), stores it in contextvars for log correlation and echoes
  it, together with the request duration, on the response.
- ``rate_limit_middleware`` builds a middleware that runs the rate limit
  gate for a path prefix and puts the capacity headers on the response,
  whatever produced it (route handler, exception handler, or the 429 itself).

Both render unexpected exceptions with ``general_exception_handler`` so a 500
still carries their headers.

Usage:
    app.middleware("http")(rate_limit_middleware(RateLimitGate(), path_prefix="/api/v1"))
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import Request, Response

from app.core.config import settings
from app.core.errors import RateLimitExceededAppError
from app.core.exception_handlers import app_error_handler, general_exception_handler
from app.core.logging import clear_request_id, set_request_id
from app.core.rate_limit import RateLimitGate


async def request_id_middleware(request: Request, call_next) -> Response:
    """Correlate logs and responses with a request id.

    Reuses the incoming ``X-Request-ID`` (header name from
    LOG_REQUEST_ID_HEADER) or generates a UUID4, and reports the handling
    time in ``X-Request-Duration-ms``.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        response = await general_exception_handler(request, exc)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


def rate_limit_middleware(gate: RateLimitGate, *, path_prefix: str) -> Callable:
    """Build the middleware enforcing ``gate`` on every path under ``path_prefix``.

    The budget is consumed before routing and body parsing, so requests that
    fail validation or match no route still count. The ``RateLimitResult``
    recorded on ``request.state.rate_limit`` is copied onto the outgoing
    response as X-RateLimit-* headers, whatever produced it.
    """

    async def middleware(request: Request, call_next) -> Response:
        path = request.url.path
        if path != path_prefix and not path.startswith(path_prefix + "/"):
            return await call_next(request)

        try:
            gate(request)
        except RateLimitExceededAppError as exc:
            response: Response = await app_error_handler(request, exc)
        else:
            try:
                response = await call_next(request)
            except Exception as exc:
                response = await general_exception_handler(request, exc)

        result = getattr(request.state, "rate_limit", None)
        if result is not None:
            for name, value in result.headers().items():
                response.headers.setdefault(name, value)
        return response

    return middleware
