"""Helpers shared by the domain services."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import InternalServerAppError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


@contextmanager
def database_guard(session: Session, message: str, *, operation: str) -> Iterator[None]:
    """Turn database faults into a generic INTERNAL_SERVER_ERROR.

    The session is rolled back and the driver error is logged; only
    ``message`` reaches the client. Domain errors raised inside the block
    pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(
            "db.operation_failed",
            extra={
                "operation": operation,
                "error_type": type(exc).__name__,
                "error_msg": str(exc),
                "request_id": get_request_id(),
            },
        )
        raise InternalServerAppError(message=message) from exc
