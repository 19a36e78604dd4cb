"""InstaSafar exception taxonomy.

Every custom exception inherits from :class:`InstasafarError`.  Exceptions are
organised by architectural layer so callers can catch at the right granularity:

    Layer hierarchy
    ---------------
    InstasafarError
    ├── ConfigError
    ├── ListingParseError
    ├── StorageError
    │   └── AuthenticationRequiredError
    └── ApiError
        ├── ApiRequestError
        ├── ApiRateLimitError
        └── ApiResponseError

The search pipeline itself (filters, sorting, comparison) never raises for
well-typed input; these exceptions belong to the layers around it.

Usage:

    from instasafar.core.exceptions import ApiRequestError

    raise ApiRequestError("hotels", "HTTP 404") from exc
"""

from __future__ import annotations

import logging

__all__ = [
    "InstasafarError",
    # Config
    "ConfigError",
    # Models
    "ListingParseError",
    # Storage
    "StorageError",
    "AuthenticationRequiredError",
    # API
    "ApiError",
    "ApiRequestError",
    "ApiRateLimitError",
    "ApiResponseError",
]

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class InstasafarError(Exception):
    """Root exception for all InstaSafar errors.

    Catch this to handle any application-level error uniformly.  Prefer
    catching layer-specific subclasses wherever possible.
    """


# ---------------------------------------------------------------------------
# Config layer
# ---------------------------------------------------------------------------


class ConfigError(InstasafarError):
    """Raised when the application configuration is invalid or incomplete.

    Examples:
        - ``API_BASE_URL`` is empty but the caller asked to fetch listings.
        - A listings file passed on the command line cannot be read.
    """


# ---------------------------------------------------------------------------
# Model layer
# ---------------------------------------------------------------------------


class ListingParseError(InstasafarError):
    """Raised when a raw record cannot be validated into a listing variant.

    Args:
        listing_id: The ``id`` found in the raw record, if any.
        message: Human-readable validation summary.
    """

    def __init__(self, listing_id: str | None, message: str) -> None:
        self.listing_id = listing_id
        label = listing_id if listing_id is not None else "<no id>"
        super().__init__(f"Invalid listing {label!r}: {message}")


# ---------------------------------------------------------------------------
# Storage layer
# ---------------------------------------------------------------------------


class StorageError(InstasafarError):
    """Raised when a persistence backend read or write fails."""


class AuthenticationRequiredError(StorageError):
    """Raised when an anonymous session tries to write user-scoped state.

    The wishlist is per user; without a signed-in user there is no key to
    persist under.  UI callers typically turn this into a "please log in"
    message.

    Args:
        action: Short description of what was attempted (e.g. ``"add to wishlist"``).
    """

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Authentication required to {action}")


# ---------------------------------------------------------------------------
# API layer
# ---------------------------------------------------------------------------


class ApiError(InstasafarError):
    """Base class for all REST API errors.

    Args:
        resource: Resource path segment (e.g. ``"hotels"``) or base URL.
        message: Human-readable error description.
    """

    def __init__(self, resource: str, message: str) -> None:
        self.resource = resource
        super().__init__(f"[{resource}] {message}")


class ApiRequestError(ApiError):
    """Raised when a request fails with a non-retryable status or after retries.

    Args:
        resource: Resource label.
        message: Human-readable error description.
        status_code: HTTP status code, if a response was received.
    """

    def __init__(self, resource: str, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(resource, message)


class ApiRateLimitError(ApiError):
    """Raised when the API answers HTTP 429.

    Args:
        resource: Resource label.
        retry_after: Recommended back-off interval in seconds, if known.
    """

    def __init__(self, resource: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        detail = f"retry after {retry_after}s" if retry_after is not None else "no retry hint"
        super().__init__(resource, f"Rate limited, {detail}")


class ApiResponseError(ApiError):
    """Raised when a 2xx response body is not the JSON shape we expect."""
