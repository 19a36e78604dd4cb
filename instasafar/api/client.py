"""Typed client for the InstaSafar CRUD endpoints.

The backend exposes one function per resource (``/hotels``, ``/packages``,
``/flights``, ``/transport``, ``/bookings``, ``/profiles``, ``/admin``).
Listing and booking rows come back as loose JSON; this client validates them
into the frozen models from :mod:`instasafar.core` so the search pipeline
only ever sees well-typed values.

Typical usage::

    settings = Settings()
    async with BookingApiClient(settings) as api:
        hotels = await api.list_hotels(city="Makkah")
        bookings = await api.list_bookings(UserRole.CUSTOMER, "u-42")
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Final

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from instasafar.api.http_client import ApiHttpClient
from instasafar.core.bookings import Booking
from instasafar.core.exceptions import ApiResponseError, ConfigError
from instasafar.core.models import Listing, ListingType, parse_listings
from instasafar.core.roles import UserRole, booking_scope, role_from_string
from instasafar.core.settings import Settings

__all__ = ["BookingApiClient", "AdminOverview", "Profile", "RESOURCE_FOR_TYPE"]

logger = logging.getLogger(__name__)

#: Listing variant -> endpoint path segment.
RESOURCE_FOR_TYPE: Final[dict[ListingType, str]] = {
    ListingType.HOTEL: "hotels",
    ListingType.PACKAGE: "packages",
    ListingType.FLIGHT: "flights",
    ListingType.TRANSPORT: "transport",
}


class AdminOverview(BaseModel):
    """Row counts shown on the admin dashboard."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    users_count: int = Field(0, alias="usersCount", ge=0)
    bookings_count: int = Field(0, alias="bookingsCount", ge=0)
    hotel_count: int = Field(0, alias="hotelCount", ge=0)
    package_count: int = Field(0, alias="packageCount", ge=0)
    flight_count: int = Field(0, alias="flightCount", ge=0)


class Profile(BaseModel):
    """A user profile row.  Unknown columns are kept as extra fields."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    full_name: str | None = None
    role: UserRole = UserRole.CUSTOMER
    company_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalise_role(cls, v: object) -> UserRole:
        return role_from_string(v if isinstance(v, str) else None)


def _resource_for(listing_type: ListingType | str) -> str:
    try:
        return RESOURCE_FOR_TYPE[ListingType(listing_type)]
    except ValueError:
        raise ValueError(f"Unknown listing type {listing_type!r}") from None


def _json_body(response: httpx.Response, resource: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ApiResponseError(resource, f"Response body is not JSON: {exc}") from exc


def _expect_list(body: Any, resource: str) -> list[dict[str, Any]]:
    if not isinstance(body, list):
        raise ApiResponseError(resource, f"Expected a JSON array, got {type(body).__name__}")
    return [row for row in body if isinstance(row, dict)]


def _expect_object(body: Any, resource: str) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise ApiResponseError(resource, f"Expected a JSON object, got {type(body).__name__}")
    return body


def _first_row(body: Any, resource: str) -> dict[str, Any]:
    if isinstance(body, dict):
        return body
    rows = _expect_list(body, resource)
    if not rows:
        raise ApiResponseError(resource, "Expected at least one row, got an empty array")
    return rows[0]


def _drop_none(params: dict[str, str | None]) -> dict[str, str] | None:
    cleaned = {k: v for k, v in params.items() if v}
    return cleaned or None


class BookingApiClient:
    """Client for listings, bookings, profiles and the admin overview.

    Args:
        settings: Application settings; supplies base URL, key, timeout and
            retry budget.
        http_client: Optional pre-built client (useful for testing).  When
            omitted one is created from *settings* and closed by :meth:`close`.

    Raises:
        ConfigError: If no *http_client* is given and ``API_BASE_URL`` is unset.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: ApiHttpClient | None = None,
    ) -> None:
        if http_client is None and not settings.api_configured:
            raise ConfigError("API_BASE_URL is not configured; cannot reach the backend.")
        self._settings = settings
        self._http = http_client or ApiHttpClient(
            base_url=settings.api_base_url,
            api_key=settings.api_key,
            timeout=settings.api_timeout,
            max_attempts=settings.api_max_attempts,
        )
        self._owns_http = http_client is None

    async def __aenter__(self) -> "BookingApiClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if it was created by this client."""
        if self._owns_http:
            await self._http.close()

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def list_hotels(self, city: str | None = None) -> list[Listing]:
        return await self._list_listings(ListingType.HOTEL, {"city": city})

    async def list_packages(self, package_type: str | None = None) -> list[Listing]:
        return await self._list_listings(ListingType.PACKAGE, {"type": package_type})

    async def list_flights(
        self,
        origin: str | None = None,
        destination: str | None = None,
    ) -> list[Listing]:
        return await self._list_listings(ListingType.FLIGHT, {"from": origin, "to": destination})

    async def list_transport(self, transport_type: str | None = None) -> list[Listing]:
        return await self._list_listings(ListingType.TRANSPORT, {"type": transport_type})

    async def list_listings(self, listing_type: ListingType | str) -> list[Listing]:
        """Fetch every listing of *listing_type* without server-side filters."""
        return await self._list_listings(ListingType(listing_type), {})

    async def create_listing(
        self,
        listing_type: ListingType | str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """Insert a listing row; returns the created row as stored."""
        resource = _resource_for(listing_type)
        response = await self._http.post(f"/{resource}", json=payload)
        created = _expect_object(_json_body(response, resource), resource)
        logger.info("Created %s %s", resource, created.get("id"))
        return created

    async def update_listing(
        self,
        listing_type: ListingType | str,
        listing_id: str,
        updates: dict[str, Any],
    ) -> dict[str, Any]:
        resource = _resource_for(listing_type)
        response = await self._http.patch(f"/{resource}/{listing_id}", json=updates)
        return _expect_object(_json_body(response, resource), resource)

    async def delete_listing(self, listing_type: ListingType | str, listing_id: str) -> None:
        resource = _resource_for(listing_type)
        await self._http.delete(f"/{resource}/{listing_id}")
        logger.info("Deleted %s %s", resource, listing_id)

    async def book(
        self,
        listing_type: ListingType | str,
        listing_id: str,
        payload: dict[str, Any],
    ) -> Booking:
        """Book a listing through its resource's ``/<id>/book`` endpoint.

        The backend attaches the listing id to the booking row itself.

        Raises:
            ValueError: If *listing_type* is not a listing variant.
            ApiResponseError: If the created booking row does not validate.
        """
        resource = _resource_for(listing_type)
        response = await self._http.post(f"/{resource}/{listing_id}/book", json=payload)
        row = _expect_object(_json_body(response, resource), resource)
        booking = self._parse_booking(row, resource)
        logger.info("Booked %s %s as booking %s", resource, listing_id, booking.id)
        return booking

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    async def list_bookings(self, role: UserRole, user_id: str) -> list[Booking]:
        """Fetch the bookings visible to *user_id* acting as *role*.

        Rows that fail validation are skipped and logged at ``DEBUG``.
        """
        response = await self._http.get("/bookings", params=booking_scope(role, user_id))
        rows = _expect_list(_json_body(response, "bookings"), "bookings")
        bookings: list[Booking] = []
        for row in rows:
            try:
                bookings.append(Booking.model_validate(row))
            except ValidationError as exc:
                logger.debug("Skipping booking row %r: %s", row.get("id"), exc)
        logger.info("Fetched %d booking(s) for %s %s", len(bookings), role, user_id)
        return bookings

    async def create_booking(self, payload: dict[str, Any]) -> Booking:
        response = await self._http.post("/bookings", json=payload)
        row = _expect_object(_json_body(response, "bookings"), "bookings")
        return self._parse_booking(row, "bookings")

    async def update_booking(self, booking_id: str, updates: dict[str, Any]) -> Booking:
        response = await self._http.patch(f"/bookings/{booking_id}", json=updates)
        row = _expect_object(_json_body(response, "bookings"), "bookings")
        return self._parse_booking(row, "bookings")

    async def delete_booking(self, booking_id: str) -> None:
        await self._http.delete(f"/bookings/{booking_id}")
        logger.info("Deleted booking %s", booking_id)

    # ------------------------------------------------------------------
    # Profiles and admin
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: str) -> Profile:
        response = await self._http.get(f"/profiles/{user_id}")
        row = _expect_object(_json_body(response, "profiles"), "profiles")
        return self._parse_profile(row)

    async def update_profile(self, user_id: str, updates: dict[str, Any]) -> Profile:
        response = await self._http.patch(f"/profiles/{user_id}", json=updates)
        row = _first_row(_json_body(response, "profiles"), "profiles")
        return self._parse_profile(row)

    async def admin_overview(self) -> AdminOverview:
        response = await self._http.get("/admin/overview")
        body = _expect_object(_json_body(response, "admin"), "admin")
        try:
            return AdminOverview.model_validate(body)
        except ValidationError as exc:
            raise ApiResponseError("admin", f"Malformed overview: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _list_listings(
        self,
        listing_type: ListingType,
        params: dict[str, str | None],
    ) -> list[Listing]:
        resource = RESOURCE_FOR_TYPE[listing_type]
        response = await self._http.get(f"/{resource}", params=_drop_none(params))
        rows = _expect_list(_json_body(response, resource), resource)
        listings = parse_listings(rows, listing_type)
        logger.info(
            "Fetched %d %s listing(s) (%d row(s))",
            len(listings),
            listing_type,
            len(rows),
            extra={"resource": resource},
        )
        return listings

    @staticmethod
    def _parse_booking(row: dict[str, Any], resource: str) -> Booking:
        try:
            return Booking.model_validate(row)
        except ValidationError as exc:
            raise ApiResponseError(resource, f"Malformed booking row: {exc}") from exc

    @staticmethod
    def _parse_profile(row: dict[str, Any]) -> Profile:
        try:
            return Profile.model_validate(row)
        except ValidationError as exc:
            raise ApiResponseError("profiles", f"Malformed profile row: {exc}") from exc
