"""Google Flights Scraper
Async HTTP scraper with protobuf search tokens, caching, rate limiting and retries
"""

__version__ = "0.1.0"

from .cache import DisabledCache, ResultCache, create_cache_key
from .config import ScraperConfig
from .exceptions import (
    InvalidInputError,
    NavigationFailedError,
    ParsingError,
    RateLimitError,
    ScrapeTimeoutError,
    ScraperError,
    UnknownScraperError,
)
from .models import (
    BookingSegment,
    CabinClass,
    ErrorReason,
    FlightFilters,
    FlightLeg,
    FlightOption,
    FlightSegment,
    Passengers,
    PriceLevel,
    RetryPolicy,
    SearchRequest,
    SearchResult,
    SortOption,
    TripType,
)
from .parser import GoogleFlightsParser, SelectorSet
from .pipeline import apply_filters_and_sort, filter_flights, sort_flights
from .rate_limiter import DisabledRateLimiter, SlidingWindowRateLimiter
from .retry import retry_with_backoff
from .scraper import FlightScraper
from .token_encoder import (
    build_booking_url,
    build_search_url,
    encode_booking_token,
    encode_search_token,
)
from .transport import CurlTransport, HttpxTransport

__all__ = [
    "__version__",
    "FlightScraper",
    "ScraperConfig",
    "ResultCache",
    "DisabledCache",
    "create_cache_key",
    "SlidingWindowRateLimiter",
    "DisabledRateLimiter",
    "retry_with_backoff",
    "GoogleFlightsParser",
    "SelectorSet",
    "HttpxTransport",
    "CurlTransport",
    "apply_filters_and_sort",
    "filter_flights",
    "sort_flights",
    "encode_search_token",
    "encode_booking_token",
    "build_search_url",
    "build_booking_url",
    "ScraperError",
    "InvalidInputError",
    "NavigationFailedError",
    "ScrapeTimeoutError",
    "ParsingError",
    "RateLimitError",
    "UnknownScraperError",
    "BookingSegment",
    "CabinClass",
    "ErrorReason",
    "FlightFilters",
    "FlightLeg",
    "FlightOption",
    "FlightSegment",
    "Passengers",
    "PriceLevel",
    "RetryPolicy",
    "SearchRequest",
    "SearchResult",
    "SortOption",
    "TripType",
]
