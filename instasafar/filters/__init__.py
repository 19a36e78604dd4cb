"""Booking search pipeline: filter state, predicates, sorting, comparison."""

from instasafar.filters.comparison import ComparisonSet, comparison_rows
from instasafar.filters.predicates import PredicateEvaluator, PredicateResult, apply_filters
from instasafar.filters.session import SearchSession
from instasafar.filters.sorting import sort_listings
from instasafar.filters.state import (
    FilterState,
    FilterStateStore,
    SortKey,
    ViewMode,
    active_filter_count,
)

__all__ = [
    "FilterState",
    "FilterStateStore",
    "SortKey",
    "ViewMode",
    "active_filter_count",
    "PredicateEvaluator",
    "PredicateResult",
    "apply_filters",
    "sort_listings",
    "ComparisonSet",
    "comparison_rows",
    "SearchSession",
]
