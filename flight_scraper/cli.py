"""Command-line interface for the flight scraper"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Union

import orjson
from loguru import logger

from . import __version__
from .config import (
    DEFAULT_CACHE_TTL,
    DEFAULT_IMPERSONATE,
    DEFAULT_MAX_REQUESTS,
    DEFAULT_MIN_DELAY,
    ScraperConfig,
)
from .exceptions import ScraperError
from .logging_config import setup_logging
from .models import (
    LIMIT_ALL,
    CabinClass,
    FlightFilters,
    Passengers,
    SearchRequest,
    SearchResult,
    SortOption,
    TripType,
)
from .scraper import FlightScraper
from .storage import build_result_document, save_search_result


def limit_type(value: str) -> Union[int, str]:
    """argparse type for --limit: a positive integer or 'all'"""
    if value.lower() == LIMIT_ALL:
        return LIMIT_ALL
    try:
        limit = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid limit '{value}' (use a number or 'all')")
    if limit < 1:
        raise argparse.ArgumentTypeError("limit must be positive")
    return limit


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flight-scraper",
        description="Google Flights scraper (no browser, protobuf-encoded search URLs)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Flight search
    search_group = parser.add_argument_group("Flight Search")
    search_group.add_argument("--origin", type=str, required=True, help="Origin airport code")
    search_group.add_argument(
        "--destination", type=str, required=True, help="Destination airport code"
    )
    search_group.add_argument(
        "--date", type=str, required=True, help="Departure date (YYYY-MM-DD)"
    )
    search_group.add_argument("--return-date", type=str, help="Return date (YYYY-MM-DD)")
    search_group.add_argument(
        "--trip-type",
        type=str,
        default=TripType.ONE_WAY.value,
        choices=[t.value for t in TripType],
        help="Trip type",
    )
    search_group.add_argument(
        "--cabin",
        type=str,
        default=CabinClass.ECONOMY.value,
        choices=[c.value for c in CabinClass],
        help="Cabin class",
    )
    search_group.add_argument("--adults", type=int, default=1, help="Adult passengers")
    search_group.add_argument("--children", type=int, default=0, help="Child passengers")
    search_group.add_argument(
        "--infants-in-seat", type=int, default=0, help="Infants with their own seat"
    )
    search_group.add_argument("--infants-on-lap", type=int, default=0, help="Lap infants")
    search_group.add_argument("--currency", type=str, default="", help="Currency code, e.g. USD")

    # Filtering and sorting
    filter_group = parser.add_argument_group("Filters & Sorting")
    filter_group.add_argument(
        "--sort",
        type=str,
        default=SortOption.NONE.value,
        choices=[s.value for s in SortOption],
        help="Sort order",
    )
    filter_group.add_argument("--max-price", type=float, help="Maximum price")
    filter_group.add_argument("--min-price", type=float, help="Minimum price")
    filter_group.add_argument("--max-duration", type=int, help="Maximum duration in minutes")
    filter_group.add_argument("--airlines", type=str, nargs="+", help="Allowed airlines")
    filter_group.add_argument("--nonstop", action="store_true", help="Nonstop flights only")
    filter_group.add_argument(
        "--max-stops", type=int, choices=[0, 1, 2], help="Maximum number of stops"
    )
    filter_group.add_argument(
        "--limit", type=limit_type, help="Maximum number of results, or 'all'"
    )

    # Configuration
    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument(
        "--production",
        action="store_true",
        help=f"Enable cache ({DEFAULT_CACHE_TTL}s TTL), rate limiting "
        f"({DEFAULT_MAX_REQUESTS} req/min, {DEFAULT_MIN_DELAY}s spacing) and retries",
    )
    config_group.add_argument(
        "--impersonate",
        nargs="?",
        const=DEFAULT_IMPERSONATE,
        default="",
        help=f"Fetch with curl_cffi browser impersonation (default: {DEFAULT_IMPERSONATE})",
    )
    config_group.add_argument("--output", type=str, help="Write results to this JSON file")
    config_group.add_argument("--verbose", action="store_true", help="Debug logging")
    config_group.add_argument(
        "--quiet", action="store_true", help="Only warnings and errors on the console"
    )
    config_group.add_argument("--log-file", type=str, help="Log file path")
    config_group.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    return parser


def build_request(args: argparse.Namespace) -> SearchRequest:
    return SearchRequest(
        origin=args.origin.upper(),
        destination=args.destination.upper(),
        depart_date=args.date,
        trip_type=TripType(args.trip_type),
        return_date=args.return_date,
        cabin_class=CabinClass(args.cabin),
        passengers=Passengers(
            adults=args.adults,
            children=args.children,
            infants_in_seat=args.infants_in_seat,
            infants_on_lap=args.infants_on_lap,
        ),
        currency=args.currency,
        sort_option=SortOption(args.sort),
        filters=FlightFilters(
            max_price=args.max_price,
            min_price=args.min_price,
            max_duration_minutes=args.max_duration,
            airlines=tuple(args.airlines or ()),
            nonstop_only=args.nonstop,
            max_stops=args.max_stops,
            limit=args.limit,
        ),
    )


def build_config(args: argparse.Namespace) -> ScraperConfig:
    if args.production:
        return ScraperConfig.production(impersonate=args.impersonate)
    return ScraperConfig(impersonate=args.impersonate)


def log_summary(result: SearchResult, fallback_url: str) -> None:
    logger.info("=" * 60)
    if result.current_price:
        logger.info(f"Prices are currently {result.current_price.value}")
    for flight in result.flights:
        marker = "⭐" if flight.is_best else "  "
        ahead = f" ({flight.arrival_time_ahead})" if flight.arrival_time_ahead else ""
        logger.info(
            f"{marker} {flight.name}: {flight.departure} → {flight.arrival}{ahead}, "
            f"{flight.duration}, {flight.stops} stop(s), {flight.price}"
        )
        logger.debug(f"   {flight.deep_link or fallback_url}")
    logger.info(f"Total: {len(result.flights)} flights")
    logger.info("=" * 60)


async def run_search(args: argparse.Namespace) -> int:
    request = build_request(args)

    async with FlightScraper(build_config(args)) as scraper:
        try:
            result = await scraper.scrape_request(request)
        except ScraperError as e:
            logger.error(f"[{e.reason.value}] {e.message}")
            return 1

        log_summary(result, fallback_url=scraper.build_search_url(request))

    if args.output:
        await save_search_result(result, Path(args.output), request)
    else:
        document = build_result_document(result, request)
        sys.stdout.write(orjson.dumps(document, option=orjson.OPT_INDENT_2).decode() + "\n")

    return 0


def main() -> None:
    """Main CLI entry point"""
    args = build_parser().parse_args()

    log_file = Path(args.log_file) if args.log_file else None
    setup_logging(verbose=args.verbose, log_file=log_file, quiet=args.quiet)

    sys.exit(asyncio.run(run_search(args)))


if __name__ == "__main__":
    main()
