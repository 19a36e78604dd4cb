"""Default-if-absent policy for listing numeric fields.

The backend leaves ``price``, ``rating``, ``review_count`` and
``distance_to_haram`` empty on some rows.  Instead of scattering ``or 0``
fallbacks through the predicate and sort code, every read goes through the
helpers in this module, which implement one named policy:

+----------------------+----------------------------------+-----------+
| Field                | Read as                          | If absent |
+======================+==================================+===========+
| price                | the number                       | ``0``     |
+----------------------+----------------------------------+-----------+
| rating               | the number                       | ``0``     |
+----------------------+----------------------------------+-----------+
| review_count         | the number                       | ``0``     |
+----------------------+----------------------------------+-----------+
| distance_to_haram    | leading number of the text       | ``0``     |
|                      | (``"200m"`` → 200, ``"0.1 km"``  |           |
|                      | → 0.1)                           |           |
+----------------------+----------------------------------+-----------+

Note the consequence for distance: a hotel whose distance is unknown (or
written as ``"N/A"``) reads as ``0`` and therefore sorts as the *closest*
hotel.  That is the established ranking behaviour and is kept deliberately;
change :data:`MISSING_NUMERIC_DEFAULT` handling here, not at call sites, if it
is ever revisited.
"""

from __future__ import annotations

import logging
import re
from typing import Final

from instasafar.core.models import HotelListing, ListingBase

__all__ = [
    "MISSING_NUMERIC_DEFAULT",
    "parse_leading_float",
    "effective_price",
    "effective_rating",
    "effective_review_count",
    "effective_distance",
]

logger = logging.getLogger(__name__)

#: Value substituted for every absent or unparseable numeric field.
MISSING_NUMERIC_DEFAULT: Final[float] = 0.0

# Optional sign, then digits with an optional fraction (or a bare fraction),
# then an optional exponent.  Anything after the match is ignored.
_LEADING_FLOAT_RE: Final[re.Pattern[str]] = re.compile(
    r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)


def parse_leading_float(text: str | None) -> float | None:
    """Parse the number at the start of *text*, ignoring any trailing unit.

    Examples::

        parse_leading_float("200m")    # → 200.0
        parse_leading_float(" 0.1 km") # → 0.1
        parse_leading_float("N/A")     # → None
        parse_leading_float(None)      # → None

    Args:
        text: Raw text such as a distance label.

    Returns:
        The parsed number, or ``None`` when *text* does not start with one.
    """
    if not text:
        return None
    match = _LEADING_FLOAT_RE.match(text)
    if match is None:
        return None
    return float(match.group(1))


def effective_price(listing: ListingBase) -> float:
    """Price used for filtering and sorting; absent → ``0``."""
    return MISSING_NUMERIC_DEFAULT if listing.price is None else float(listing.price)


def effective_rating(listing: ListingBase) -> float:
    """Rating used for filtering and sorting; absent → ``0``."""
    return MISSING_NUMERIC_DEFAULT if listing.rating is None else float(listing.rating)


def effective_review_count(listing: ListingBase) -> float:
    """Popularity used for sorting; absent → ``0``."""
    if listing.review_count is None:
        return MISSING_NUMERIC_DEFAULT
    return float(listing.review_count)


def effective_distance(listing: ListingBase) -> float:
    """Distance to the Haram used for sorting.

    Only hotels carry a distance.  Other variants, hotels without a distance,
    and distances that do not start with a number all read as ``0``.
    """
    if not isinstance(listing, HotelListing):
        return MISSING_NUMERIC_DEFAULT
    parsed = parse_leading_float(listing.distance_to_haram)
    if parsed is None:
        if listing.distance_to_haram is not None:
            logger.debug(
                "Unparseable distance %r on %s; reading as %s",
                listing.distance_to_haram,
                listing.id,
                MISSING_NUMERIC_DEFAULT,
            )
        return MISSING_NUMERIC_DEFAULT
    return parsed
