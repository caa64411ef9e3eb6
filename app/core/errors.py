"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Each subclass is bound
to one stable error code and its HTTP status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


class ErrorCode(str, Enum):
    """Machine-readable error codes exposed in the API envelope."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    VALIDATION_ERROR = "VALIDATION_ERROR"


STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.TOO_MANY_REQUESTS: 429,
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
    ErrorCode.VALIDATION_ERROR: 422,
}


@dataclass(eq=False)
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        message: Human-readable error message.
        details: Optional structured details returned to the client.
        headers: Optional extra response headers (e.g. Retry-After).
    """

    code: ClassVar[ErrorCode] = ErrorCode.INTERNAL_SERVER_ERROR

    message: str
    details: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.code]


class BadRequestAppError(AppError):
    """Raised for malformed client input (missing fields, invalid ids)."""

    code = ErrorCode.BAD_REQUEST


class UnauthorizedAppError(AppError):
    """Raised when a route requires a session and none is valid."""

    code = ErrorCode.UNAUTHORIZED


class ForbiddenAppError(AppError):
    """Raised when the caller's role does not grant access."""

    code = ErrorCode.FORBIDDEN


class NotFoundAppError(AppError):
    """Raised after a lookup miss."""

    code = ErrorCode.NOT_FOUND

    @classmethod
    def for_resource(cls, resource: str = "Resource") -> "NotFoundAppError":
        return cls(message=f"{resource} not found")


class ConflictAppError(AppError):
    """Raised when the requested change conflicts with current state."""

    code = ErrorCode.CONFLICT


class RateLimitExceededAppError(AppError):
    """Raised when a client exhausts its request budget for the window."""

    code = ErrorCode.TOO_MANY_REQUESTS


class InternalServerAppError(AppError):
    """Raised for unexpected/database faults; message must stay generic."""

    code = ErrorCode.INTERNAL_SERVER_ERROR


class ServiceUnavailableAppError(AppError):
    """Raised when a dependency (e.g. the database) is unreachable."""

    code = ErrorCode.SERVICE_UNAVAILABLE


class ValidationAppError(AppError):
    """Raised when input validation fails field by field."""

    code = ErrorCode.VALIDATION_ERROR

    @classmethod
    def from_fields(cls, details: dict[str, list[str]]) -> "ValidationAppError":
        return cls(message="Validation failed", details=details)
