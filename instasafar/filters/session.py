"""One booking search session: filter state, results, and comparison panel.

:class:`SearchSession` is what a results page holds on to.  It owns exactly
one :class:`~instasafar.filters.state.FilterStateStore` and one
:class:`~instasafar.filters.comparison.ComparisonSet`; results are derived on
demand by running the predicate evaluator and then the sort evaluator over
the latest listing snapshot.  Nothing is cached, so a fresh snapshot (e.g.
after a new fetch completes) simply supersedes the previous one.

Typical usage::

    session = SearchSession.for_listings(hotels)
    session.filters.set_rating(4)
    session.filters.set_sort_key("distance")
    for hotel in session.results():
        ...
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence

from instasafar.core.logging_config import session_context
from instasafar.core.models import ListingBase
from instasafar.filters.comparison import DEFAULT_COMPARISON_CAPACITY, ComparisonSet
from instasafar.filters.normalise import effective_price
from instasafar.filters.predicates import PredicateEvaluator
from instasafar.filters.sorting import sort_listings
from instasafar.filters.state import FilterStateStore

__all__ = ["SearchSession"]

logger = logging.getLogger(__name__)


class SearchSession:
    """Filter + sort + compare pipeline for one search.

    Args:
        max_price: Upper bound of the default price range.
        listings: Initial listing snapshot.
        comparison_capacity: Size limit of the comparison panel.
        session_id: Identifier used to tag log lines; generated if omitted.
    """

    def __init__(
        self,
        max_price: float,
        listings: Iterable[ListingBase] = (),
        *,
        comparison_capacity: int = DEFAULT_COMPARISON_CAPACITY,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self.filters = FilterStateStore(max_price)
        self.comparison = ComparisonSet(comparison_capacity)
        self._listings: list[ListingBase] = list(listings)

    @classmethod
    def for_listings(
        cls,
        listings: Iterable[ListingBase],
        *,
        comparison_capacity: int = DEFAULT_COMPARISON_CAPACITY,
        session_id: str | None = None,
    ) -> SearchSession:
        """Build a session whose default price range spans *listings*."""
        snapshot = list(listings)
        max_price = max((effective_price(listing) for listing in snapshot), default=0.0)
        return cls(
            max_price,
            snapshot,
            comparison_capacity=comparison_capacity,
            session_id=session_id,
        )

    @property
    def listings(self) -> tuple[ListingBase, ...]:
        return tuple(self._listings)

    @property
    def active_filter_count(self) -> int:
        return self.filters.active_filter_count

    def replace_listings(self, listings: Iterable[ListingBase]) -> None:
        """Swap in a fresh snapshot.  Filter state and comparison are kept."""
        self._listings = list(listings)
        logger.debug("Session %s: listing snapshot replaced (%d)", self.session_id, len(self._listings))

    def results(self, listings: Sequence[ListingBase] | None = None) -> list[ListingBase]:
        """Return the filtered, sorted listings for the current filter state.

        Args:
            listings: Snapshot to evaluate instead of the session's own.

        Returns:
            A new list; neither the snapshot nor the state is modified.
        """
        snapshot = self._listings if listings is None else list(listings)
        state = self.filters.state
        with session_context(self.session_id):
            passing, _ = PredicateEvaluator(state).filter_many(snapshot)
            return sort_listings(passing, state.sort_key)
