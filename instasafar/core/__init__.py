"""Core domain models, roles, settings, logging configuration, and exceptions."""

from instasafar.core.bookings import Booking, BookingStatus, PaymentStatus
from instasafar.core.exceptions import (
    ApiError,
    ApiRateLimitError,
    ApiRequestError,
    ApiResponseError,
    AuthenticationRequiredError,
    ConfigError,
    InstasafarError,
    ListingParseError,
    StorageError,
)
from instasafar.core.logging_config import JsonFormatter, configure_logging, session_context
from instasafar.core.models import (
    FlightListing,
    HotelListing,
    Listing,
    ListingType,
    PackageListing,
    TransportListing,
    parse_listing,
    parse_listings,
)
from instasafar.core.roles import Capability, UserRole, role_from_string
from instasafar.core.settings import Settings

__all__ = [
    # Logging
    "configure_logging",
    "JsonFormatter",
    "session_context",
    # Listings
    "Listing",
    "ListingType",
    "HotelListing",
    "PackageListing",
    "FlightListing",
    "TransportListing",
    "parse_listing",
    "parse_listings",
    # Bookings
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    # Roles
    "UserRole",
    "Capability",
    "role_from_string",
    # Settings
    "Settings",
    # Exceptions
    "InstasafarError",
    "ConfigError",
    "ListingParseError",
    "StorageError",
    "AuthenticationRequiredError",
    "ApiError",
    "ApiRequestError",
    "ApiRateLimitError",
    "ApiResponseError",
]
