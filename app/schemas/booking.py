"""Pydantic schemas for bookings."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class BookingCreate(BaseModel):
    """Payload for booking a service slot."""

    service_id: int | None = Field(
        default=None,
        description="Identifier of the service being booked (required).",
    )
    scheduled_at: datetime | None = Field(
        default=None,
        description="Start of the appointment, ISO-8601; naive values are read as UTC (required).",
    )


class BookingStatusUpdate(BaseModel):
    status: BookingStatus | None = Field(
        default=None,
        description="New status: pending, confirmed or cancelled.",
    )


class BookingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    service_id: int
    scheduled_at: datetime
    status: BookingStatus
