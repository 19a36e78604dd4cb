"""Bounded comparison set for side-by-side listing comparison.

Users can pin up to three listings (hotels, packages, flights or transport)
to a comparison panel.  :class:`ComparisonSet` enforces the capacity and
identity rules; :func:`comparison_rows` turns the pinned listings into the
rows of the comparison table.
"""

from __future__ import annotations

import logging
from typing import Final

from instasafar.core.models import ListingBase
from instasafar.filters.normalise import effective_price, effective_rating

__all__ = ["DEFAULT_COMPARISON_CAPACITY", "ComparisonSet", "comparison_rows"]

logger = logging.getLogger(__name__)

DEFAULT_COMPARISON_CAPACITY: Final[int] = 3


class ComparisonSet:
    """Ordered, identity-unique selection of at most ``capacity`` listings.

    ``add`` reports failure through its return value rather than raising, so
    the caller decides whether to show a "comparison limit reached" message.
    The panel visibility flag is independent of the contents: the panel can
    be hidden without losing the selection.

    Args:
        capacity: Maximum number of listings held at once.

    Raises:
        ValueError: If *capacity* is less than 1.
    """

    def __init__(self, capacity: int = DEFAULT_COMPARISON_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be ≥ 1, got {capacity!r}")
        self._capacity = capacity
        self._items: list[ListingBase] = []
        self._visible = False

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def items(self) -> tuple[ListingBase, ...]:
        return tuple(self._items)

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(item.id for item in self._items)

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self._capacity

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, listing_id: object) -> bool:
        return any(item.id == listing_id for item in self._items)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, listing: ListingBase) -> bool:
        """Append *listing* and show the panel.

        Returns:
            ``False`` with no state change when the set is full or already
            holds a listing with the same ``id``; ``True`` otherwise.
        """
        if self.is_full:
            logger.debug("Comparison full (%d); rejecting %s", self._capacity, listing.id)
            return False
        if listing.id in self:
            logger.debug("Listing %s already in comparison", listing.id)
            return False
        self._items.append(listing)
        self._visible = True
        return True

    def remove(self, listing_id: str) -> None:
        """Remove the listing with *listing_id*; no-op when absent."""
        self._items = [item for item in self._items if item.id != listing_id]

    def clear(self) -> None:
        """Empty the set and hide the panel."""
        self._items.clear()
        self._visible = False

    def toggle_visibility(self) -> bool:
        """Flip panel visibility without touching the contents; returns the new flag."""
        self._visible = not self._visible
        return self._visible


def comparison_rows(items: tuple[ListingBase, ...] | list[ListingBase]) -> list[tuple[str, list[str]]]:
    """Build the rows of the comparison table.

    One row per common attribute, one cell per compared listing, in the order
    the listings were added.  Absent values render as ``"-"``.

    Args:
        items: Listings currently being compared.

    Returns:
        ``[(label, [cell, ...]), ...]``.
    """
    return [
        ("Name", [item.name or item.id for item in items]),
        ("Type", [str(getattr(item, "type", "-")) for item in items]),
        ("Price", [f"{effective_price(item):g}" if item.price is not None else "-" for item in items]),
        (
            "Rating",
            [f"{effective_rating(item):.1f}" if item.rating is not None else "-" for item in items],
        ),
        ("Reviews", [str(item.review_count) if item.review_count is not None else "-" for item in items]),
    ]
