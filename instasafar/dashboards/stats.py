"""Booking statistics for the customer, provider and admin dashboards.

All functions are pure: they take already-fetched
:class:`~instasafar.core.bookings.Booking` rows (see
:meth:`~instasafar.api.client.BookingApiClient.list_bookings`) and return a
small dataclass.  Each dataclass offers :meth:`as_dict` for JSON output and
:meth:`format_summary` for a single log / CLI line.

Typical usage::

    bookings = await api.list_bookings(role, user_id)
    stats = stats_for_role(role, bookings)
    logger.info("%s", stats.format_summary())
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any

from instasafar.core.bookings import Booking, BookingStatus, PaymentStatus
from instasafar.core.roles import Capability, UserRole, dashboard_for

__all__ = [
    "CustomerStats",
    "ProviderStats",
    "customer_stats",
    "provider_stats",
    "stats_for_role",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerStats:
    """Headline numbers for a customer's own bookings.

    Attributes:
        total_bookings: Every booking, whatever its status.
        upcoming_bookings: Confirmed bookings whose check-in date is after today.
        total_spent: Sum of ``total_price`` over paid bookings.
        favourite_city: Most frequently booked city, or ``None`` when no
            booking carries a city.
    """

    total_bookings: int = 0
    upcoming_bookings: int = 0
    total_spent: float = 0.0
    favourite_city: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def format_summary(self) -> str:
        return (
            f"bookings={self.total_bookings} upcoming={self.upcoming_bookings} "
            f"spent={self.total_spent:.2f} favourite_city={self.favourite_city or '-'}"
        )


@dataclass(frozen=True)
class ProviderStats:
    """Headline numbers over the bookings of a provider's listings.

    Admins get the same shape computed over every booking.
    """

    total_bookings: int = 0
    pending_bookings: int = 0
    total_revenue: float = 0.0
    average_booking_value: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def format_summary(self) -> str:
        return (
            f"bookings={self.total_bookings} pending={self.pending_bookings} "
            f"revenue={self.total_revenue:.2f} avg={self.average_booking_value:.2f}"
        )


def _paid_total(bookings: Iterable[Booking]) -> float:
    return sum(b.total_price for b in bookings if b.payment_status is PaymentStatus.PAID)


def _favourite_city(bookings: Iterable[Booking]) -> str | None:
    counts = Counter(b.city for b in bookings if b.city)
    if not counts:
        return None
    # Ties resolve to the city whose first booking comes later in row order.
    favourite, best = None, 0
    for city, count in counts.items():
        if count >= best:
            favourite, best = city, count
    return favourite


def customer_stats(bookings: Sequence[Booking], now: datetime | None = None) -> CustomerStats:
    """Compute :class:`CustomerStats`.

    Args:
        bookings: The customer's bookings.
        now: Reference time for "upcoming"; defaults to the current UTC time.
    """
    today = (now or datetime.now(UTC)).date()
    upcoming = sum(
        1
        for b in bookings
        if b.status is BookingStatus.CONFIRMED
        and b.check_in_date is not None
        and b.check_in_date > today
    )
    stats = CustomerStats(
        total_bookings=len(bookings),
        upcoming_bookings=upcoming,
        total_spent=_paid_total(bookings),
        favourite_city=_favourite_city(bookings),
    )
    logger.debug("Customer stats: %s", stats.format_summary())
    return stats


def provider_stats(bookings: Sequence[Booking]) -> ProviderStats:
    """Compute :class:`ProviderStats`.

    ``average_booking_value`` is revenue over the total number of bookings,
    ``0.0`` when there are none.
    """
    total = len(bookings)
    revenue = _paid_total(bookings)
    stats = ProviderStats(
        total_bookings=total,
        pending_bookings=sum(1 for b in bookings if b.status is BookingStatus.PENDING),
        total_revenue=revenue,
        average_booking_value=revenue / total if total else 0.0,
    )
    logger.debug("Provider stats: %s", stats.format_summary())
    return stats


def stats_for_role(
    role: UserRole,
    bookings: Sequence[Booking],
    now: datetime | None = None,
) -> CustomerStats | ProviderStats:
    """Pick the statistics shape for *role*'s dashboard."""
    if dashboard_for(role) is Capability.VIEW_CUSTOMER_DASHBOARD:
        return customer_stats(bookings, now=now)
    return provider_stats(bookings)
