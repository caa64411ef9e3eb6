"""Pydantic schemas for analytics events and the admin dashboard."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InteractionType(str, Enum):
    VIEW = "view"
    CLICK = "click"
    QUOTE = "quote"
    BOOK = "book"


class PageViewCreate(BaseModel):
    url: str | None = Field(default=None, description="Visited URL (required).")
    referrer: str | None = Field(default=None, description="Referring URL, if any.")


class InteractionCreate(BaseModel):
    service_id: int | None = Field(default=None, description="Service the user interacted with (required).")
    interaction_type: InteractionType | None = Field(
        default=None,
        description="One of view, click, quote, book (required).",
    )


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DashboardStats(_CamelModel):
    total_bookings: int
    total_services: int
    total_revenue: Decimal
    pending_bookings: int


class RecentBooking(_CamelModel):
    id: int
    customer_name: str
    service_name: str
    date: datetime
    status: str


class DashboardSummary(_CamelModel):
    stats: DashboardStats
    recent_bookings: list[RecentBooking] = Field(default_factory=list)
