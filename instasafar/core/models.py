"""InstaSafar listing models.

A *listing* is anything a pilgrim can book from a search page: a hotel, a
Hajj/Umrah package, a flight, or a transport option.  The four shapes share a
small common core (``id``, ``type``, ``price``, ``rating``, ``review_count``,
``name``) and differ in their type-specific payload, so they are modelled as a
tagged union discriminated on ``type`` rather than one bag of optional fields.

The search pipeline treats listings as read-only input; every model is
**frozen**.

Typical usage::

    from instasafar.core.models import ListingType, parse_listings

    rows = [{"id": "hotel-1", "name": "Elaf Kinda", "price_per_night": 280}]
    hotels = parse_listings(rows, ListingType.HOTEL)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Annotated, Any, Final, Literal

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter, ValidationError, field_validator

from instasafar.core.exceptions import ListingParseError

__all__ = [
    "ListingType",
    "PackageType",
    "ListingBase",
    "HotelListing",
    "PackageListing",
    "FlightListing",
    "TransportListing",
    "Listing",
    "parse_listing",
    "parse_listings",
]

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ListingType(StrEnum):
    """Discriminator values for every bookable listing kind."""

    HOTEL = "hotel"
    PACKAGE = "package"
    FLIGHT = "flight"
    TRANSPORT = "transport"


class PackageType(StrEnum):
    """Pilgrimage package categories as stored by the backend."""

    HAJJ = "hajj"
    UMRAH = "umrah"
    CUSTOM = "custom"


# ---------------------------------------------------------------------------
# Common base
# ---------------------------------------------------------------------------


class ListingBase(BaseModel):
    """Fields shared by every listing variant.

    Numeric fields are optional on purpose: the backend omits them for some
    rows, and the pipeline applies one explicit default-if-absent policy (see
    :mod:`instasafar.filters.normalise`) instead of guessing here.

    Attributes:
        id: Opaque, unique listing identifier (e.g. ``"hotel-1"`` or a UUID).
        type: Variant tag.
        name: Display label (hotel name, package title).  May be empty.
        price: Non-negative price; per night for hotels.  ``None`` if absent.
        rating: Average rating in ``[0, 5]``; ``None`` if unrated.
        review_count: Number of reviews, used as the popularity signal.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    id: str = Field(..., min_length=1, description="Opaque unique identifier.")
    name: str = Field(
        default="",
        validation_alias=AliasChoices("name", "title"),
        description="Display label.",
    )
    price: float | None = Field(None, ge=0, description="Price; None if absent.")
    rating: float | None = Field(None, ge=0, le=5, description="Rating 0-5; None if unrated.")
    review_count: int | None = Field(None, ge=0, description="Review / popularity count.")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: object) -> object:
        """Accept integer primary keys and strip whitespace around string ids."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str):
            return v.strip()
        return v


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class HotelListing(ListingBase):
    """A hotel near one of the Holy Mosques.

    ``price_per_night`` is accepted as an input alias for ``price`` because
    that is the column name the hotels table uses.
    """

    type: Literal["hotel"] = "hotel"
    price: float | None = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("price", "price_per_night"),
        description="Price per night; None if absent.",
    )
    amenities: tuple[str, ...] = ()
    distance_to_haram: str | None = None
    city: str | None = None
    address: str | None = None

    @field_validator("distance_to_haram", "city", "address", mode="before")
    @classmethod
    def _blank_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("amenities", mode="before")
    @classmethod
    def _none_amenities_to_empty(cls, v: object) -> object:
        return () if v is None else v


class PackageListing(ListingBase):
    """A bundled Hajj / Umrah journey."""

    type: Literal["package"] = "package"
    package_type: PackageType | None = None
    duration: str | None = None
    location: str | None = None
    includes: tuple[str, ...] = ()

    @field_validator("includes", mode="before")
    @classmethod
    def _none_includes_to_empty(cls, v: object) -> object:
        return () if v is None else v


class FlightListing(ListingBase):
    """A scheduled flight leg."""

    type: Literal["flight"] = "flight"
    airline: str | None = None
    departure_city: str | None = Field(
        None, validation_alias=AliasChoices("departure_city", "origin")
    )
    arrival_city: str | None = Field(
        None, validation_alias=AliasChoices("arrival_city", "destination")
    )
    departure_time: str | None = None
    arrival_time: str | None = None
    duration: str | None = None
    stops: int = Field(0, ge=0)
    is_internal: bool = False


class TransportListing(ListingBase):
    """A ground transport option (bus, private car, train)."""

    type: Literal["transport"] = "transport"
    transport_type: str | None = None
    from_city: str | None = None
    to_city: str | None = None
    capacity: int | None = Field(None, ge=0)


#: The tagged union consumed by the search pipeline.
Listing = Annotated[
    HotelListing | PackageListing | FlightListing | TransportListing,
    Field(discriminator="type"),
]

_LISTING_ADAPTER: Final[TypeAdapter[Any]] = TypeAdapter(Listing)

#: Backend rows for packages and transport reuse the ``type`` column for their
#: own sub-category; when tagging such rows the original value moves here.
_SUBTYPE_FIELD: Final[dict[ListingType, str]] = {
    ListingType.PACKAGE: "package_type",
    ListingType.TRANSPORT: "transport_type",
}


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _tag_record(raw: Mapping[str, Any], listing_type: ListingType) -> dict[str, Any]:
    """Return a copy of *raw* carrying ``type=listing_type``.

    A pre-existing ``type`` that is not a listing discriminator is preserved
    under the variant's sub-category field (``package_type`` /
    ``transport_type``) instead of being lost.
    """
    record = dict(raw)
    existing = record.get("type")
    if existing is not None and existing != listing_type:
        subtype_field = _SUBTYPE_FIELD.get(listing_type)
        if subtype_field is not None:
            record.setdefault(subtype_field, existing)
    record["type"] = str(listing_type)
    return record


def parse_listing(
    raw: Mapping[str, Any],
    listing_type: ListingType | str | None = None,
) -> HotelListing | PackageListing | FlightListing | TransportListing:
    """Validate a single raw record into the matching listing variant.

    Args:
        raw: Record as returned by the REST endpoints or a JSON fixture.
        listing_type: Variant to tag the record with.  Required when the
            record has no ``type`` key of its own.

    Returns:
        A frozen listing variant.

    Raises:
        ListingParseError: If the record does not validate.
    """
    record = _tag_record(raw, ListingType(listing_type)) if listing_type else dict(raw)
    try:
        return _LISTING_ADAPTER.validate_python(record)
    except ValidationError as exc:
        raw_id = record.get("id")
        raise ListingParseError(
            str(raw_id) if raw_id is not None else None,
            f"{exc.error_count()} validation error(s): {exc.errors()[0]['msg']}",
        ) from exc


def parse_listings(
    raw_items: Iterable[Mapping[str, Any]],
    listing_type: ListingType | str | None = None,
) -> list[HotelListing | PackageListing | FlightListing | TransportListing]:
    """Validate a batch of raw records, skipping the invalid ones.

    Invalid rows are logged at ``DEBUG`` and dropped so a single bad row never
    hides an otherwise usable result set.

    Args:
        raw_items: Records to validate.
        listing_type: Optional variant tag applied to every record.

    Returns:
        Parsed listings in input order.
    """
    listings: list[HotelListing | PackageListing | FlightListing | TransportListing] = []
    skipped = 0
    for raw in raw_items:
        try:
            listings.append(parse_listing(raw, listing_type))
        except ListingParseError as exc:
            skipped += 1
            logger.debug("Skipping record: %s", exc)

    if skipped:
        logger.info("Parsed %d listing(s), skipped %d invalid record(s)", len(listings), skipped)
    return listings
