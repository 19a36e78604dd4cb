"""Filter state for one booking search session.

:class:`FilterState` is an immutable snapshot of everything the user has
narrowed or toggled on a results page.  :class:`FilterStateStore` owns the
current snapshot and exposes one named operation per user action; each
operation replaces only its own field and keeps every other field as-is.

No store operation raises.  Inputs outside a field's domain are normalised
(inverted price bounds are swapped, negative ratings clamp to ``0``) or, for
enumerated fields, ignored with a warning so the state always stays valid.

Typical usage::

    store = FilterStateStore.for_listings(hotels)
    store.set_price_range(0, 400)
    store.toggle_amenity("Free WiFi")
    store.set_sort_key(SortKey.RATING)
    store.active_filter_count   # → 2
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

from instasafar.core.models import ListingBase
from instasafar.filters.normalise import effective_price

__all__ = [
    "SortKey",
    "ViewMode",
    "FilterState",
    "FilterStateStore",
    "active_filter_count",
]

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class SortKey(StrEnum):
    """Orderings offered on every results page."""

    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    RATING = "rating"
    DISTANCE = "distance"
    POPULAR = "popular"


class ViewMode(StrEnum):
    GRID = "grid"
    LIST = "list"


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class FilterState(BaseModel):
    """Immutable snapshot of the user's narrowing criteria.

    Attributes:
        price_range: Inclusive ``(lower, upper)`` price bounds, lower ≤ upper.
        selected_amenities: Amenities a hotel must all offer.  Empty means no
            amenity constraint.
        min_rating: Minimum rating; ``0`` means unset.
        sort_key: Ordering applied to the filtered results.
        view_mode: Grid or list layout of the results.
        show_map: Whether the map panel is open.
    """

    model_config = {"frozen": True}

    price_range: tuple[float, float] = (0.0, 0.0)
    selected_amenities: frozenset[str] = frozenset()
    min_rating: float = Field(0.0, ge=0)
    sort_key: SortKey = SortKey.PRICE_LOW
    view_mode: ViewMode = ViewMode.GRID
    show_map: bool = False

    @model_validator(mode="after")
    def _validate_price_range(self) -> FilterState:
        lower, upper = self.price_range
        if lower > upper:
            raise ValueError(f"price_range lower ({lower}) must be ≤ upper ({upper})")
        return self

    @classmethod
    def default(cls, max_price: float) -> FilterState:
        """Return the state a fresh (or reset) session starts from."""
        return cls(price_range=(0.0, float(max_price)))


def active_filter_count(state: FilterState, max_price: float) -> int:
    """Count the narrowing dimensions that differ from their defaults.

    One each for a narrowed price range, any selected amenity (regardless of
    how many), and a non-zero rating threshold.  Sort order, view mode and the
    map toggle never count.  Used for the filter badge only.

    Args:
        state: Snapshot to inspect.
        max_price: Upper bound of the default price range.

    Returns:
        A value between 0 and 3.
    """
    count = 0
    if tuple(state.price_range) != (0.0, float(max_price)):
        count += 1
    if state.selected_amenities:
        count += 1
    if state.min_rating > 0:
        count += 1
    return count


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class FilterStateStore:
    """Owner of the current :class:`FilterState` for one search session.

    Every update method returns the new snapshot for convenience.

    Args:
        max_price: Upper bound of the default price range, normally the
            highest price in the listing set being searched.
    """

    def __init__(self, max_price: float) -> None:
        self._max_price = max(0.0, float(max_price))
        self._state = FilterState.default(self._max_price)

    @classmethod
    def for_listings(cls, listings: Iterable[ListingBase]) -> FilterStateStore:
        """Build a store whose default price range spans every listing."""
        max_price = max((effective_price(listing) for listing in listings), default=0.0)
        return cls(max_price)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def max_price(self) -> float:
        return self._max_price

    @property
    def active_filter_count(self) -> int:
        """Badge count, recomputed from the current state on every read."""
        return active_filter_count(self._state, self._max_price)

    # ------------------------------------------------------------------
    # Update operations
    # ------------------------------------------------------------------

    def set_price_range(self, lower: float, upper: float) -> FilterState:
        """Replace the price bounds, swapping them if given inverted."""
        if lower > upper:
            logger.debug("Swapping inverted price range (%s, %s)", lower, upper)
            lower, upper = upper, lower
        return self._update(price_range=(float(lower), float(upper)))

    def toggle_amenity(self, amenity: str) -> FilterState:
        """Add *amenity* to the selection, or remove it if already selected."""
        return self._update(selected_amenities=self._state.selected_amenities ^ {amenity})

    def set_rating(self, rating: float) -> FilterState:
        """Set the minimum rating; values below zero clamp to ``0`` (unset)."""
        return self._update(min_rating=max(0.0, float(rating)))

    def set_sort_key(self, sort_key: SortKey | str) -> FilterState:
        """Change the ordering.  Unknown keys leave the state untouched."""
        try:
            key = SortKey(sort_key)
        except ValueError:
            logger.warning("Ignoring unknown sort key %r", sort_key)
            return self._state
        return self._update(sort_key=key)

    def set_view_mode(self, view_mode: ViewMode | str) -> FilterState:
        """Switch between grid and list layout.  Unknown modes are ignored."""
        try:
            mode = ViewMode(view_mode)
        except ValueError:
            logger.warning("Ignoring unknown view mode %r", view_mode)
            return self._state
        return self._update(view_mode=mode)

    def toggle_map(self) -> FilterState:
        return self._update(show_map=not self._state.show_map)

    def reset(self) -> FilterState:
        """Restore every field to its default, price range to ``(0, max_price)``."""
        self._state = FilterState.default(self._max_price)
        logger.debug("Filter state reset (max_price=%s)", self._max_price)
        return self._state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _update(self, **changes: object) -> FilterState:
        self._state = self._state.model_copy(update=changes)
        return self._state
