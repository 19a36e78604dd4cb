"""User roles and the capabilities each one grants.

The web application renders one of three dashboard variants (admin,
provider, customer) based on the signed-in user's role.  Instead of comparing
role strings wherever a decision is needed, every check goes through the
closed :class:`UserRole` enumeration and the :data:`ROLE_CAPABILITIES` table.

Typical usage::

    from instasafar.core.roles import Capability, has_capability, role_from_string

    role = role_from_string(user_metadata.get("role"))
    if has_capability(role, Capability.MANAGE_OWN_LISTINGS):
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Final

__all__ = [
    "UserRole",
    "Capability",
    "ROLE_CAPABILITIES",
    "role_from_string",
    "has_capability",
    "dashboard_for",
    "booking_scope",
]

logger = logging.getLogger(__name__)


class UserRole(StrEnum):
    """Every role a signed-in user can hold."""

    ADMIN = "admin"
    PROVIDER = "provider"
    CUSTOMER = "customer"


class Capability(StrEnum):
    """Actions and views gated by role."""

    VIEW_ADMIN_DASHBOARD = "view_admin_dashboard"
    VIEW_PROVIDER_DASHBOARD = "view_provider_dashboard"
    VIEW_CUSTOMER_DASHBOARD = "view_customer_dashboard"
    MANAGE_ALL_LISTINGS = "manage_all_listings"
    MANAGE_OWN_LISTINGS = "manage_own_listings"
    VIEW_ALL_BOOKINGS = "view_all_bookings"
    VIEW_PROVIDER_BOOKINGS = "view_provider_bookings"
    VIEW_OWN_BOOKINGS = "view_own_bookings"
    MANAGE_USERS = "manage_users"
    BOOK = "book"
    USE_WISHLIST = "use_wishlist"


#: Read-only role → capability table.  Admins may open the provider area too,
#: which is why they hold every capability.
ROLE_CAPABILITIES: Final[Mapping[UserRole, frozenset[Capability]]] = MappingProxyType(
    {
        UserRole.ADMIN: frozenset(Capability),
        UserRole.PROVIDER: frozenset(
            {
                Capability.VIEW_PROVIDER_DASHBOARD,
                Capability.MANAGE_OWN_LISTINGS,
                Capability.VIEW_PROVIDER_BOOKINGS,
                Capability.VIEW_OWN_BOOKINGS,
            }
        ),
        UserRole.CUSTOMER: frozenset(
            {
                Capability.VIEW_CUSTOMER_DASHBOARD,
                Capability.VIEW_OWN_BOOKINGS,
                Capability.BOOK,
                Capability.USE_WISHLIST,
            }
        ),
    }
)

#: Legacy role strings still found in older user metadata.
_ROLE_ALIASES: Final[dict[str, UserRole]] = {"user": UserRole.CUSTOMER}


def role_from_string(value: str | None) -> UserRole:
    """Parse a role string from user metadata.

    Matching is case-insensitive.  ``None``, the legacy ``"user"`` value, and
    any unknown string resolve to :attr:`UserRole.CUSTOMER`, the least
    privileged role.

    Args:
        value: Raw role value, e.g. ``user.user_metadata["role"]``.

    Returns:
        The parsed :class:`UserRole`.
    """
    if value is None:
        return UserRole.CUSTOMER
    normalised = value.strip().lower()
    if normalised in _ROLE_ALIASES:
        return _ROLE_ALIASES[normalised]
    try:
        return UserRole(normalised)
    except ValueError:
        logger.warning("Unknown user role %r; treating as customer", value)
        return UserRole.CUSTOMER


def has_capability(role: UserRole, capability: Capability) -> bool:
    """Return ``True`` if *role* grants *capability*."""
    return capability in ROLE_CAPABILITIES[role]


def dashboard_for(role: UserRole) -> Capability:
    """Return the dashboard variant a user with *role* lands on after sign-in."""
    if role is UserRole.ADMIN:
        return Capability.VIEW_ADMIN_DASHBOARD
    if role is UserRole.PROVIDER:
        return Capability.VIEW_PROVIDER_DASHBOARD
    return Capability.VIEW_CUSTOMER_DASHBOARD


def booking_scope(role: UserRole, user_id: str) -> dict[str, str]:
    """Return the ``GET /bookings`` query parameters for *role*.

    The bookings endpoint refuses unscoped listing requests: customers see
    their own bookings, providers see bookings for their listings, and admins
    pass the ``admin`` flag to see everything.

    Args:
        role: Role of the requesting user.
        user_id: Identifier of the requesting user.

    Returns:
        Query-string parameters for the bookings endpoint.
    """
    if has_capability(role, Capability.VIEW_ALL_BOOKINGS):
        return {"admin": "1"}
    if has_capability(role, Capability.VIEW_PROVIDER_BOOKINGS):
        return {"provider_id": user_id}
    return {"user_id": user_id}
