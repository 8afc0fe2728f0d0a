"""Filtering, sorting and limiting of extracted flights (pure functions)"""

import math
import re
from typing import Iterable, List, Optional, Union

from .models import LIMIT_ALL, FlightFilters, FlightOption, SearchResult, SortOption

_NON_NUMERIC = re.compile(r"[^0-9.-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")
_HOURS = re.compile(r"(\d+)\s*hr")
_MINUTES = re.compile(r"(\d+)\s*min")


def parse_price(price: str) -> float:
    """
    Numeric value of a display price ("$1234" -> 1234.0).

    Unparseable prices ("N/A") come back as infinity so they fail a
    max-price filter, pass a min-price filter and sort last.
    """
    match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", price or ""))
    if not match:
        return math.inf
    value = float(match.group(0))
    return value if math.isfinite(value) else math.inf


def parse_duration_minutes(duration: str) -> int:
    """Convert '2 hr 30 min' style strings to minutes; missing parts count as 0"""
    hours = _HOURS.search(duration or "")
    minutes = _MINUTES.search(duration or "")
    return (int(hours.group(1)) if hours else 0) * 60 + (int(minutes.group(1)) if minutes else 0)


def _matches(flight: FlightOption, filters: FlightFilters) -> bool:
    price = parse_price(flight.price)

    if filters.max_price is not None and price > filters.max_price:
        return False
    if filters.min_price is not None and price < filters.min_price:
        return False

    if (
        filters.max_duration_minutes is not None
        and parse_duration_minutes(flight.duration) > filters.max_duration_minutes
    ):
        return False

    if filters.airlines:
        name = flight.name.lower()
        if not any(airline.lower() in name for airline in filters.airlines):
            return False

    if filters.nonstop_only and flight.stops != 0:
        return False
    if filters.max_stops is not None and flight.stops > filters.max_stops:
        return False

    return True


def filter_flights(flights: Iterable[FlightOption], filters: FlightFilters) -> List[FlightOption]:
    return [flight for flight in flights if _matches(flight, filters)]


def _price_desc_key(flight: FlightOption):
    price = parse_price(flight.price)
    # Unparseable prices stay last even when descending
    return (math.isinf(price), -price if not math.isinf(price) else 0.0)


def sort_flights(
    flights: Iterable[FlightOption], sort_option: Union[SortOption, str]
) -> List[FlightOption]:
    """Stable sort; SortOption.NONE keeps extraction order"""
    option = SortOption(sort_option)
    flights = list(flights)

    if option is SortOption.PRICE_ASC:
        return sorted(flights, key=lambda f: parse_price(f.price))
    if option is SortOption.PRICE_DESC:
        return sorted(flights, key=_price_desc_key)
    if option is SortOption.DURATION_ASC:
        return sorted(flights, key=lambda f: parse_duration_minutes(f.duration))
    if option is SortOption.DURATION_DESC:
        return sorted(flights, key=lambda f: parse_duration_minutes(f.duration), reverse=True)
    if option is SortOption.AIRLINE:
        return sorted(flights, key=lambda f: f.name.casefold())
    return flights


def limit_flights(
    flights: List[FlightOption], limit: Optional[Union[int, str]]
) -> List[FlightOption]:
    if limit is None or limit == LIMIT_ALL:
        return list(flights)
    return list(flights[:limit])


def apply_filters_and_sort(
    result: SearchResult,
    filters: Optional[FlightFilters] = None,
    sort_option: Union[SortOption, str] = SortOption.NONE,
) -> SearchResult:
    """Filter, then sort, then limit; the price indicator is carried over"""
    filters = filters or FlightFilters()
    flights = filter_flights(result.flights, filters)
    flights = sort_flights(flights, sort_option)
    flights = limit_flights(flights, filters.limit)
    return SearchResult(current_price=result.current_price, flights=tuple(flights))
