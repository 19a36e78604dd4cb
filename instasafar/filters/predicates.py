"""Predicate evaluator for booking search results.

Narrows a listing set to the listings that satisfy every *active* predicate
of a :class:`~instasafar.filters.state.FilterState`:

* **Price**: effective price within ``price_range``, both ends inclusive.
* **Rating**: only when ``min_rating > 0``, effective rating ≥ threshold.
* **Amenities**: only for hotels, and only when amenities are selected:
  the hotel must offer *every* selected amenity (exact name match).

Predicates are independent, so the order they are checked in never changes
which listings pass; it only decides which reason is reported for a drop.
Missing numeric fields follow :mod:`instasafar.filters.normalise`.

Typical usage::

    from instasafar.filters.predicates import apply_filters

    visible = apply_filters(listings, store.state)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from instasafar.core.models import HotelListing, ListingBase
from instasafar.filters.normalise import effective_price, effective_rating
from instasafar.filters.state import FilterState

__all__ = ["PredicateResult", "PredicateEvaluator", "evaluate", "apply_filters"]

logger = logging.getLogger(__name__)

L = TypeVar("L", bound=ListingBase)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PredicateResult:
    """Outcome of evaluating one listing.

    Attributes:
        passed: ``True`` if the listing satisfies every active predicate.
        reason: Empty when passed; otherwise the first failed predicate.
        listing_id: ``id`` of the evaluated listing.
    """

    passed: bool
    reason: str
    listing_id: str


# ---------------------------------------------------------------------------
# Pure functions
# ---------------------------------------------------------------------------


def evaluate(listing: ListingBase, state: FilterState) -> PredicateResult:
    """Evaluate *listing* against every active predicate in *state*."""
    lower, upper = state.price_range
    price = effective_price(listing)
    if price < lower or price > upper:
        return PredicateResult(False, f"price {price:g} outside [{lower:g}, {upper:g}]", listing.id)

    if state.min_rating > 0:
        rating = effective_rating(listing)
        if rating < state.min_rating:
            return PredicateResult(
                False, f"rating {rating:g} below {state.min_rating:g}", listing.id
            )

    if state.selected_amenities and isinstance(listing, HotelListing):
        missing = state.selected_amenities.difference(listing.amenities)
        if missing:
            return PredicateResult(
                False, f"missing amenities {sorted(missing)}", listing.id
            )

    return PredicateResult(True, "", listing.id)


def apply_filters(listings: Iterable[L], state: FilterState) -> list[L]:
    """Return the listings that pass every active predicate, in input order."""
    return [listing for listing in listings if evaluate(listing, state).passed]


# ---------------------------------------------------------------------------
# Logging wrapper
# ---------------------------------------------------------------------------


class PredicateEvaluator:
    """Applies one :class:`FilterState` to batches of listings with an audit trail.

    Stateless apart from the snapshot it was built with, so a new evaluator
    is cheap to create whenever the filter state changes.

    Args:
        state: The filter snapshot to apply.
    """

    def __init__(self, state: FilterState) -> None:
        self._state = state

    @property
    def state(self) -> FilterState:
        return self._state

    def evaluate(self, listing: ListingBase) -> PredicateResult:
        """Evaluate one listing, logging drops at ``DEBUG``."""
        result = evaluate(listing, self._state)
        if not result.passed:
            logger.debug(
                "DROP  %s:%s: %s",
                listing.type,
                listing.id,
                result.reason,
                extra={"listing_id": listing.id, "listing_type": str(listing.type)},
            )
        return result

    def filter_many(self, listings: Sequence[L]) -> tuple[list[L], list[PredicateResult]]:
        """Evaluate a batch and return the passing listings separately.

        Args:
            listings: Listings to evaluate.  May be empty.

        Returns:
            ``(passing, results)`` where ``results`` has the same length and
            order as the input.
        """
        if not listings:
            return [], []

        results = [self.evaluate(listing) for listing in listings]
        passing = [listing for listing, result in zip(listings, results) if result.passed]

        logger.info("Predicate filter: %d/%d listings passed", len(passing), len(listings))
        return passing, results
