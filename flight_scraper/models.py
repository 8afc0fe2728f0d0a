"""Data models and enums for the flight scraper"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class TripType(Enum):
    """Trip shapes understood by the search endpoint"""

    ONE_WAY = "one-way"
    ROUND_TRIP = "round-trip"
    MULTI_CITY = "multi-city"


class CabinClass(Enum):
    """Fare class tiers"""

    ECONOMY = "economy"
    PREMIUM_ECONOMY = "premium-economy"
    BUSINESS = "business"
    FIRST = "first"


class SortOption(Enum):
    """Result orderings"""

    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    DURATION_ASC = "duration-asc"
    DURATION_DESC = "duration-desc"
    AIRLINE = "airline"
    NONE = "none"  # Keep extraction order


class PriceLevel(Enum):
    """Coarse price indicator shown in the results banner"""

    LOW = "low"
    TYPICAL = "typical"
    HIGH = "high"


class ErrorReason(Enum):
    """Stable machine-readable error tags"""

    INVALID_INPUT = "InvalidInput"
    NAVIGATION_FAILED = "NavigationFailed"  # Retry
    TIMEOUT = "Timeout"  # Retry
    PARSING_ERROR = "ParsingError"
    RATE_LIMIT_EXCEEDED = "RateLimitExceeded"
    UNKNOWN = "Unknown"


LIMIT_ALL = "all"


@dataclass(frozen=True)
class Passengers:
    adults: int = 1
    children: int = 0
    infants_in_seat: int = 0
    infants_on_lap: int = 0

    @property
    def total(self) -> int:
        return self.adults + self.children + self.infants_in_seat + self.infants_on_lap


@dataclass(frozen=True)
class FlightSegment:
    """One leg of a search: date plus origin/destination airports"""

    date: str
    from_airport: str
    to_airport: str
    max_stops: Optional[int] = None
    airlines: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FlightLeg:
    """A single operated flight inside a booking segment"""

    origin: str
    date: str
    destination: str
    carrier: str
    flight_number: str


@dataclass(frozen=True)
class BookingSegment:
    date: str
    legs: Tuple[FlightLeg, ...]


@dataclass(frozen=True)
class FlightFilters:
    """
    Post-extraction filters. All set criteria must hold (AND).

    limit is a positive int or "all"; it is applied after sorting.
    """

    max_price: Optional[float] = None
    min_price: Optional[float] = None
    max_duration_minutes: Optional[int] = None
    airlines: Tuple[str, ...] = ()
    nonstop_only: bool = False
    max_stops: Optional[int] = None
    limit: Optional[Union[int, str]] = None


@dataclass(frozen=True)
class FlightOption:
    """One itinerary candidate as shown on the results page"""

    name: str  # Airline name(s)
    departure: str
    arrival: str
    duration: str
    stops: int
    price: str  # Display string, "N/A" when missing
    is_best: bool = False
    arrival_time_ahead: Optional[str] = None  # e.g. "+1"
    delay: Optional[str] = None
    deep_link: Optional[str] = None


@dataclass(frozen=True)
class SearchResult:
    current_price: Optional[PriceLevel] = None
    flights: Tuple[FlightOption, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_price": self.current_price.value if self.current_price else None,
            "flights": [asdict(flight) for flight in self.flights],
        }


@dataclass(frozen=True)
class SearchRequest:
    origin: str
    destination: str
    depart_date: str
    trip_type: TripType = TripType.ONE_WAY
    return_date: Optional[str] = None
    cabin_class: CabinClass = CabinClass.ECONOMY
    passengers: Passengers = field(default_factory=Passengers)
    currency: str = ""
    sort_option: SortOption = SortOption.NONE
    filters: FlightFilters = field(default_factory=FlightFilters)


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff settings; delays are in seconds"""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0
