"""Parsing of path and query parameters that arrive as raw strings.

Identifiers and pagination values are declared as ``str`` on the routes so
that malformed input is reported as BAD_REQUEST (not a 422 schema error) and
is rejected before any database access.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from app.core.config import settings
from app.core.errors import BadRequestAppError


@dataclass(frozen=True)
class Page:
    limit: int
    offset: int


_INTEGER = re.compile(r"-?\d+")


def _parse_int(raw: str) -> int | None:
    raw = raw.strip()
    if not _INTEGER.fullmatch(raw):
        return None
    return int(raw)


def parse_id(raw: str, resource: str) -> int:
    """Parse a positive integer identifier or raise BAD_REQUEST.

    Examples:
        >>> parse_id("42", "service")
        42
    """
    value = _parse_int(raw)
    if value is None or value < 1:
        raise BadRequestAppError(message=f"Invalid {resource} ID")
    return value


def parse_page(limit: str | None, offset: str | None) -> Page:
    """Parse ``limit``/``offset`` query values with configured defaults."""
    max_size = settings.app.max_page_size

    parsed_limit = settings.app.default_page_size if limit is None else _parse_int(limit)
    if parsed_limit is None or not 1 <= parsed_limit <= max_size:
        raise BadRequestAppError(
            message=f"limit must be an integer between 1 and {max_size}",
            details={"limit": limit},
        )

    parsed_offset = 0 if offset is None else _parse_int(offset)
    if parsed_offset is None or parsed_offset < 0:
        raise BadRequestAppError(
            message="offset must be a non-negative integer",
            details={"offset": offset},
        )

    return Page(limit=parsed_limit, offset=parsed_offset)
