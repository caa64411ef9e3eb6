"""Unit tests for path/query parameter parsing."""

import pytest

from app.api.params import Page, parse_id, parse_page
from app.core.errors import BadRequestAppError


@pytest.mark.parametrize("raw", ["abc", "", "1.5", "0", "-3", "--5", "1e3"])
def test_parse_id_rejects(raw: str) -> None:
    with pytest.raises(BadRequestAppError) as exc_info:
        parse_id(raw, "service")

    assert exc_info.value.message == "Invalid service ID"


def test_parse_id_accepts_positive_integers() -> None:
    assert parse_id("17", "service") == 17


def test_parse_page_defaults() -> None:
    assert parse_page(None, None) == Page(limit=10, offset=0)


def test_parse_page_bounds() -> None:
    assert parse_page("100", "5") == Page(limit=100, offset=5)

    with pytest.raises(BadRequestAppError):
        parse_page("101", None)

    with pytest.raises(BadRequestAppError):
        parse_page(None, "-1")
