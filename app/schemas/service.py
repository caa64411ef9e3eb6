"""Pydantic schemas for the service catalog."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ServiceCreate(BaseModel):
    """Payload for creating a service.

    ``name`` and ``price`` are typed optional so that their absence is
    reported as BAD_REQUEST by the handler rather than as a schema error.
    """

    name: str | None = Field(
        default=None,
        max_length=255,
        description="Display name of the service (required).",
    )
    description: str | None = Field(
        default=None,
        description="Free-text description shown in the catalog.",
    )
    price: Decimal | None = Field(
        default=None,
        ge=0,
        max_digits=10,
        decimal_places=2,
        description="Price with two decimal places (required).",
    )
    duration: int | None = Field(
        default=None,
        ge=1,
        description="Duration in minutes; null when not applicable.",
    )


class ServiceUpdate(BaseModel):
    """Partial update; omitted or null fields keep their current value."""

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    duration: int | None = Field(default=None, ge=1)


class ServiceRead(BaseModel):
    """A service as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    price: Decimal
    duration: int | None = None
