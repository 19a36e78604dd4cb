"""Sort evaluator for booking search results.

:func:`sort_listings` returns a new, stably ordered list for a
:class:`~instasafar.filters.state.SortKey`.  Python's sort is stable in both
directions, so listings with equal keys always keep their input order and
repeated sorts are deterministic.  Unknown keys return the input order
unchanged instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Final, TypeVar

from instasafar.core.models import ListingBase
from instasafar.filters.normalise import (
    effective_distance,
    effective_price,
    effective_rating,
    effective_review_count,
)
from instasafar.filters.state import SortKey

__all__ = ["sort_listings"]

logger = logging.getLogger(__name__)

L = TypeVar("L", bound=ListingBase)

#: ``key -> (key function, descending)``.
_ORDERINGS: Final[dict[SortKey, tuple[Callable[[ListingBase], float], bool]]] = {
    SortKey.PRICE_LOW: (effective_price, False),
    SortKey.PRICE_HIGH: (effective_price, True),
    SortKey.RATING: (effective_rating, True),
    SortKey.DISTANCE: (effective_distance, False),
    SortKey.POPULAR: (effective_review_count, True),
}


def sort_listings(listings: Iterable[L], sort_key: SortKey | str) -> list[L]:
    """Return *listings* ordered by *sort_key*; the input is never mutated.

    Args:
        listings: Listings to order.
        sort_key: One of the :class:`SortKey` values.  Any other value yields
            the input order unchanged.

    Returns:
        A new list.
    """
    items = list(listings)
    try:
        key_fn, descending = _ORDERINGS[SortKey(sort_key)]
    except ValueError:
        logger.debug("No ordering for sort key %r; keeping input order", sort_key)
        return items
    return sorted(items, key=key_fn, reverse=descending)
