"""InstaSafar command-line entry-point.

Usage:
    python -m instasafar search (--listings FILE | --fetch TYPE) [filters...]

``search`` runs the same filter + sort pipeline as the results page over a
listing snapshot taken either from a JSON file (an array of listing records)
or from the REST backend, and prints one line per result followed by the
number of active filters.  ``--json`` prints the results as a JSON document
instead.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from instasafar.core import configure_logging
from instasafar.core.exceptions import ApiError, ConfigError
from instasafar.core.models import ListingBase, ListingType, parse_listings
from instasafar.core.settings import Settings
from instasafar.filters.normalise import effective_price, effective_rating
from instasafar.filters.session import SearchSession
from instasafar.filters.state import SortKey

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="instasafar",
        description="Search and rank Hajj / Umrah travel listings.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        metavar="LEVEL",
        help="Override LOG_LEVEL env var (DEBUG|INFO|WARNING|ERROR).",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        metavar="FORMAT",
        help="Override LOG_FORMAT env var (text|json).",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    search = sub.add_parser("search", help="Filter and sort a listing snapshot.")

    source = search.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--listings",
        type=Path,
        metavar="FILE",
        help="JSON file holding an array of listing records.",
    )
    source.add_argument(
        "--fetch",
        choices=[t.value for t in ListingType],
        metavar="TYPE",
        help="Fetch listings of TYPE (hotel|package|flight|transport) from the API.",
    )
    search.add_argument(
        "--type",
        dest="listing_type",
        choices=[t.value for t in ListingType],
        default=None,
        help="Tag every record in --listings with this listing type.",
    )
    search.add_argument("--price-min", type=float, default=None, metavar="AMOUNT")
    search.add_argument("--price-max", type=float, default=None, metavar="AMOUNT")
    search.add_argument(
        "--amenity",
        action="append",
        default=[],
        metavar="NAME",
        help="Required hotel amenity; repeat for several.",
    )
    search.add_argument("--min-rating", type=float, default=0.0, metavar="STARS")
    search.add_argument(
        "--sort",
        choices=[k.value for k in SortKey],
        default=SortKey.PRICE_LOW.value,
    )
    search.add_argument("--json", action="store_true", help="Print results as JSON.")
    return parser


def _read_listings_file(path: Path, listing_type: str | None) -> list[ListingBase]:
    """Load and validate listing records from *path*.

    Raises:
        ConfigError: If the file cannot be read or is not a JSON array.
    """
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read listings file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Listings file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise ConfigError(f"Listings file {path} must contain a JSON array.")
    records = [item for item in payload if isinstance(item, dict)]
    return parse_listings(records, listing_type)


async def _fetch_listings(settings: Settings, listing_type: str) -> list[ListingBase]:
    # Lazy import keeps httpx off the path for file-based searches.
    from instasafar.api.client import BookingApiClient  # noqa: PLC0415

    async with BookingApiClient(settings) as api:
        return await api.list_listings(listing_type)


def _run_search(args: argparse.Namespace, settings: Settings) -> None:
    if args.listings is not None:
        listings = _read_listings_file(args.listings, args.listing_type)
    else:
        listings = asyncio.run(_fetch_listings(settings, args.fetch))

    session = SearchSession.for_listings(
        listings,
        comparison_capacity=settings.comparison_capacity,
    )
    store = session.filters
    if args.price_min is not None or args.price_max is not None:
        lower = args.price_min if args.price_min is not None else 0.0
        upper = args.price_max if args.price_max is not None else store.max_price
        store.set_price_range(lower, upper)
    for amenity in args.amenity:
        store.toggle_amenity(amenity)
    store.set_rating(args.min_rating)
    store.set_sort_key(args.sort)

    results = session.results()
    logger.info(
        "Search %s: %d of %d listing(s) shown", session.session_id, len(results), len(listings)
    )

    if args.json:
        document = {
            "active_filters": session.active_filter_count,
            "results": [listing.model_dump(mode="json") for listing in results],
        }
        print(json.dumps(document, ensure_ascii=False, indent=2))  # noqa: T201
        return

    for listing in results:
        print(  # noqa: T201
            f"{listing.type:<9} {listing.id:<14} "
            f"{effective_price(listing):>10.2f} {settings.default_currency}  "
            f"{effective_rating(listing):.1f}*  {listing.name}"
        )
    print(  # noqa: T201
        f"{len(results)} result(s), {session.active_filter_count} active filter(s)"
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry-point registered in ``pyproject.toml``."""
    args = _build_parser().parse_args(argv)

    try:
        configure_logging(level=args.log_level, fmt=args.log_format)
    except ValueError as exc:
        print(f"instasafar: configuration error: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    settings = Settings()

    try:
        if args.command == "search":
            _run_search(args, settings)
    except ConfigError as exc:
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)
    except ApiError as exc:
        logger.error("API request failed: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting.")
        sys.exit(0)


if __name__ == "__main__":
    main()
