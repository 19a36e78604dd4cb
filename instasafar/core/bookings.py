"""Booking record model.

Bookings are owned by the backend; this module only gives them a typed shape
so the dashboard statistics and the API client can work with them.  Rows
returned with joined relations (``hotels(name, city)``, ``packages(...)``)
have the city lifted into :attr:`Booking.city`.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

__all__ = ["BookingStatus", "PaymentStatus", "Booking"]

logger = logging.getLogger(__name__)


class BookingStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class Booking(BaseModel):
    """A single reservation of a hotel, package, flight, or transport option.

    Attributes:
        id: Backend primary key.
        user_id: Customer who made the booking.
        hotel_id: Booked hotel, if any.
        package_id: Booked package, if any.
        flight_id: Booked flight, if any.
        transport_id: Booked transport option, if any.
        check_in_date: Start of the stay / journey.
        check_out_date: End of the stay / journey.
        adults: Number of adult travellers.
        children: Number of child travellers.
        total_price: Amount charged for the booking.
        status: Lifecycle state.
        payment_status: Payment state; only ``paid`` counts as revenue.
        created_at: When the booking was made.
        city: City of the booked hotel or package, when the row carries it.
    """

    model_config = {"frozen": True}

    id: str = Field(..., min_length=1)
    user_id: str | None = None
    hotel_id: str | None = None
    package_id: str | None = None
    flight_id: str | None = None
    transport_id: str | None = None
    check_in_date: date | None = None
    check_out_date: date | None = None
    adults: int = Field(1, ge=0)
    children: int = Field(0, ge=0)
    total_price: float = Field(0.0, ge=0)
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime | None = None
    city: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _lift_joined_city(cls, data: Any) -> Any:
        """Copy ``hotels.city`` / ``packages.city`` from joined rows into ``city``."""
        if not isinstance(data, dict) or data.get("city"):
            return data
        for relation in ("hotels", "packages"):
            joined = data.get(relation)
            if isinstance(joined, dict) and joined.get("city"):
                return {**data, "city": joined["city"]}
        return data

    @field_validator("id", "user_id", "hotel_id", "package_id", "flight_id", "transport_id", mode="before")
    @classmethod
    def _ids_as_strings(cls, v: object) -> object:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("total_price", mode="before")
    @classmethod
    def _null_price_to_zero(cls, v: object) -> object:
        return 0.0 if v is None else v
