"""Unit tests for the filter layer.

Covers:
- :mod:`instasafar.filters.normalise` default-if-absent policy and the
  leading-number parser.
- :class:`~instasafar.filters.state.FilterState` /
  :class:`~instasafar.filters.state.FilterStateStore` updates and the
  active-filter badge count.
- :mod:`instasafar.filters.predicates` price, rating and amenity predicates.
"""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from instasafar.core.models import FlightListing, HotelListing, PackageListing
from instasafar.filters.normalise import (
    MISSING_NUMERIC_DEFAULT,
    effective_distance,
    effective_price,
    effective_rating,
    effective_review_count,
    parse_leading_float,
)
from instasafar.filters.predicates import PredicateEvaluator, apply_filters, evaluate
from instasafar.filters.state import (
    FilterState,
    FilterStateStore,
    SortKey,
    ViewMode,
    active_filter_count,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _make_hotel(
    *,
    id: str = "h1",
    name: str = "Hilton Suites Makkah",
    price: float | None = 100.0,
    rating: float | None = 4.0,
    review_count: int | None = 10,
    amenities: tuple[str, ...] = ("wifi", "parking"),
    distance_to_haram: str | None = "200m",
) -> HotelListing:
    """Return a valid :class:`HotelListing` with sensible defaults."""
    return HotelListing(
        id=id,
        name=name,
        price=price,
        rating=rating,
        review_count=review_count,
        amenities=amenities,
        distance_to_haram=distance_to_haram,
    )


def _make_package(*, id: str = "p1", price: float | None = 5000.0, rating: float | None = 4.5) -> PackageListing:
    return PackageListing(id=id, name="Umrah Standard", price=price, rating=rating)


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


class TestParseLeadingFloat:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("200m", 200.0),
            ("0.5 km", 0.5),
            (" 1200 meters", 1200.0),
            ("-3", -3.0),
            (".75km", 0.75),
            ("1e3m", 1000.0),
        ],
    )
    def test_parses_leading_number(self, text: str, expected: float) -> None:
        assert parse_leading_float(text) == expected

    @pytest.mark.parametrize("text", [None, "", "N/A", "km 5", "walking distance"])
    def test_returns_none_without_leading_number(self, text: str | None) -> None:
        assert parse_leading_float(text) is None


class TestEffectiveValues:
    def test_absent_values_read_as_default(self) -> None:
        hotel = _make_hotel(price=None, rating=None, review_count=None, distance_to_haram=None)
        assert effective_price(hotel) == MISSING_NUMERIC_DEFAULT
        assert effective_rating(hotel) == MISSING_NUMERIC_DEFAULT
        assert effective_review_count(hotel) == MISSING_NUMERIC_DEFAULT
        assert effective_distance(hotel) == MISSING_NUMERIC_DEFAULT

    def test_unparseable_distance_reads_as_default(self) -> None:
        assert effective_distance(_make_hotel(distance_to_haram="N/A")) == 0.0

    def test_distance_parsed_from_label(self) -> None:
        assert effective_distance(_make_hotel(distance_to_haram="350m walk")) == 350.0

    def test_non_hotels_have_no_distance(self) -> None:
        assert effective_distance(_make_package()) == 0.0


# ---------------------------------------------------------------------------
# Filter state
# ---------------------------------------------------------------------------


class TestFilterState:
    def test_default_spans_max_price(self) -> None:
        state = FilterState.default(750)
        assert state.price_range == (0.0, 750.0)
        assert state.selected_amenities == frozenset()
        assert state.min_rating == 0
        assert state.sort_key is SortKey.PRICE_LOW
        assert state.view_mode is ViewMode.GRID
        assert state.show_map is False

    def test_inverted_range_rejected_by_model(self) -> None:
        with pytest.raises(ValidationError):
            FilterState(price_range=(500.0, 100.0))

    def test_negative_rating_rejected_by_model(self) -> None:
        with pytest.raises(ValidationError):
            FilterState(min_rating=-1)


class TestActiveFilterCount:
    def test_default_state_counts_zero(self) -> None:
        assert active_filter_count(FilterState.default(1000), 1000) == 0

    def test_each_dimension_counts_once(self) -> None:
        state = FilterState(
            price_range=(0.0, 500.0),
            selected_amenities=frozenset({"wifi", "pool", "spa"}),
            min_rating=3,
        )
        assert active_filter_count(state, 1000) == 3

    def test_sort_view_and_map_never_count(self) -> None:
        state = FilterState(
            price_range=(0.0, 1000.0),
            sort_key=SortKey.RATING,
            view_mode=ViewMode.LIST,
            show_map=True,
        )
        assert active_filter_count(state, 1000) == 0

    def test_raised_lower_bound_counts(self) -> None:
        state = FilterState(price_range=(100.0, 1000.0))
        assert active_filter_count(state, 1000) == 1


class TestFilterStateStore:
    def test_for_listings_uses_highest_price(self) -> None:
        store = FilterStateStore.for_listings([_make_hotel(price=80), _make_hotel(id="h2", price=300)])
        assert store.max_price == 300.0
        assert store.state.price_range == (0.0, 300.0)

    def test_for_empty_listings(self) -> None:
        store = FilterStateStore.for_listings([])
        assert store.state.price_range == (0.0, 0.0)

    def test_set_price_range_swaps_inverted_bounds(self) -> None:
        store = FilterStateStore(1000)
        state = store.set_price_range(600, 200)
        assert state.price_range == (200.0, 600.0)

    def test_updates_return_new_snapshots(self) -> None:
        store = FilterStateStore(1000)
        before = store.state
        after = store.set_rating(4)
        assert before is not after
        assert before.min_rating == 0
        assert after.min_rating == 4

    def test_toggle_amenity_on_then_off(self) -> None:
        store = FilterStateStore(1000)
        store.toggle_amenity("wifi")
        assert store.state.selected_amenities == frozenset({"wifi"})
        store.toggle_amenity("wifi")
        assert store.state.selected_amenities == frozenset()

    def test_negative_rating_clamps_to_zero(self) -> None:
        store = FilterStateStore(1000)
        assert store.set_rating(-2).min_rating == 0

    def test_unknown_sort_key_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        store = FilterStateStore(1000)
        store.set_sort_key("rating")
        with caplog.at_level("WARNING"):
            state = store.set_sort_key("cheapest")
        assert state.sort_key is SortKey.RATING
        assert "cheapest" in caplog.text

    def test_unknown_view_mode_ignored(self) -> None:
        store = FilterStateStore(1000)
        assert store.set_view_mode("carousel").view_mode is ViewMode.GRID
        assert store.set_view_mode("list").view_mode is ViewMode.LIST

    def test_toggle_map(self) -> None:
        store = FilterStateStore(1000)
        assert store.toggle_map().show_map is True
        assert store.toggle_map().show_map is False

    def test_reset_restores_defaults(self) -> None:
        store = FilterStateStore(1000)
        store.set_price_range(100, 200)
        store.toggle_amenity("pool")
        store.set_rating(3)
        store.set_sort_key(SortKey.DISTANCE)
        store.toggle_map()
        assert store.active_filter_count == 3

        state = store.reset()
        assert state == FilterState.default(1000)
        assert store.active_filter_count == 0

    def test_reset_then_filter_returns_every_listing(self) -> None:
        listings = [
            _make_hotel(id="h1", price=450, rating=2.0, amenities=()),
            _make_hotel(id="h2", price=None, rating=None, amenities=("wifi",)),
            _make_package(id="p1", price=900, rating=4.5),
            FlightListing(id="f1", price=1200),
        ]
        store = FilterStateStore.for_listings(listings)
        store.set_price_range(500, 1000)
        store.toggle_amenity("pool")
        store.set_rating(4)
        assert apply_filters(listings, store.state) != listings

        store.reset()
        assert apply_filters(listings, store.state) == listings


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


class TestPricePredicate:
    def test_bounds_are_inclusive(self) -> None:
        state = FilterState(price_range=(100.0, 200.0))
        assert evaluate(_make_hotel(price=100), state).passed
        assert evaluate(_make_hotel(price=200), state).passed
        assert not evaluate(_make_hotel(price=200.01), state).passed

    def test_missing_price_treated_as_zero(self) -> None:
        assert evaluate(_make_hotel(price=None), FilterState(price_range=(0.0, 50.0))).passed
        assert not evaluate(_make_hotel(price=None), FilterState(price_range=(10.0, 50.0))).passed

    def test_reason_mentions_price(self) -> None:
        result = evaluate(_make_hotel(id="h9", price=900), FilterState(price_range=(0.0, 500.0)))
        assert not result.passed
        assert result.listing_id == "h9"
        assert "price" in result.reason


class TestRatingPredicate:
    def test_zero_threshold_is_inactive(self) -> None:
        state = FilterState(price_range=(0.0, 1000.0), min_rating=0)
        assert evaluate(_make_hotel(rating=None), state).passed

    def test_threshold_is_inclusive(self) -> None:
        state = FilterState(price_range=(0.0, 1000.0), min_rating=4)
        assert evaluate(_make_hotel(rating=4.0), state).passed
        assert not evaluate(_make_hotel(rating=3.9), state).passed

    def test_unrated_fails_active_threshold(self) -> None:
        state = FilterState(price_range=(0.0, 1000.0), min_rating=1)
        assert not evaluate(_make_hotel(rating=None), state).passed


class TestAmenityPredicate:
    def test_hotel_must_offer_every_selected_amenity(self) -> None:
        state = FilterState(price_range=(0.0, 1000.0), selected_amenities=frozenset({"wifi", "pool"}))
        assert not evaluate(_make_hotel(amenities=("wifi",)), state).passed
        assert evaluate(_make_hotel(amenities=("pool", "wifi", "spa")), state).passed

    def test_match_is_exact(self) -> None:
        state = FilterState(price_range=(0.0, 1000.0), selected_amenities=frozenset({"wifi"}))
        assert not evaluate(_make_hotel(amenities=("WiFi",)), state).passed

    def test_non_hotels_ignore_amenities(self) -> None:
        state = FilterState(price_range=(0.0, 10000.0), selected_amenities=frozenset({"wifi"}))
        assert evaluate(_make_package(), state).passed
        assert evaluate(FlightListing(id="f1", price=900), state).passed


class TestApplyFilters:
    def test_scenario_price_range_keeps_input_order(self) -> None:
        listings = [
            _make_hotel(id="A", price=100, rating=4),
            _make_hotel(id="B", price=50, rating=5),
            _make_hotel(id="C", price=200, rating=3),
        ]
        result = apply_filters(listings, FilterState(price_range=(0.0, 150.0)))
        assert [listing.id for listing in result] == ["A", "B"]

    def test_amenity_toggle_round_trip_leaves_result_unchanged(self) -> None:
        listings = [
            _make_hotel(id="A", amenities=("wifi",)),
            _make_hotel(id="B", amenities=()),
        ]
        store = FilterStateStore.for_listings(listings)
        before = apply_filters(listings, store.state)
        store.toggle_amenity("wifi")
        assert [listing.id for listing in apply_filters(listings, store.state)] == ["A"]
        store.toggle_amenity("wifi")
        assert apply_filters(listings, store.state) == before

    def test_input_not_mutated(self) -> None:
        listings = [_make_hotel(id="A", price=10), _make_hotel(id="B", price=9999)]
        snapshot = list(listings)
        apply_filters(listings, FilterState(price_range=(0.0, 100.0)))
        assert listings == snapshot


class TestPredicateEvaluator:
    def test_filter_many_returns_results_for_every_input(self) -> None:
        listings = [_make_hotel(id="A", price=10), _make_hotel(id="B", price=9999)]
        passing, results = PredicateEvaluator(FilterState(price_range=(0.0, 100.0))).filter_many(listings)
        assert [listing.id for listing in passing] == ["A"]
        assert [r.listing_id for r in results] == ["A", "B"]
        assert [r.passed for r in results] == [True, False]

    def test_filter_many_empty(self) -> None:
        assert PredicateEvaluator(FilterState()).filter_many([]) == ([], [])

    def test_drops_logged_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        evaluator = PredicateEvaluator(FilterState(price_range=(0.0, 10.0)))
        with caplog.at_level("DEBUG", logger="instasafar.filters.predicates"):
            evaluator.evaluate(_make_hotel(id="pricey", price=500))
        assert "hotel:pricey" in caplog.text
