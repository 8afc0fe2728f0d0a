"""Input validation for search requests"""

import re
from dataclasses import replace
from datetime import date
from typing import Optional

from dateutil.parser import parse as parse_date

from .exceptions import InvalidInputError
from .models import (
    LIMIT_ALL,
    CabinClass,
    FlightFilters,
    Passengers,
    SearchRequest,
    SortOption,
    TripType,
)

_AIRPORT_CODE = re.compile(r"^[A-Z]{3}$")
_DATE_STRING = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


def validate_airport_code(field: str, code: str) -> str:
    normalized = (code or "").strip().upper()
    if not _AIRPORT_CODE.match(normalized):
        raise InvalidInputError(field, f"'{code}' is not a 3-letter IATA airport code")
    return normalized


def validate_date(field: str, value: str) -> date:
    """Check YYYY-MM-DD format and that the date exists on the calendar"""
    if not value or not _DATE_STRING.match(value):
        raise InvalidInputError(field, f"'{value}' is not in YYYY-MM-DD format")
    try:
        return parse_date(value).date()
    except (ValueError, OverflowError) as e:
        raise InvalidInputError(field, f"'{value}' is not a valid date ({e})")


def validate_round_trip(trip_type: TripType, return_date: Optional[str]) -> None:
    if trip_type is TripType.ROUND_TRIP and not return_date:
        raise InvalidInputError("returnDate", "Return date is required for round-trip flights")


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_passengers(passengers: Passengers) -> None:
    if not _is_count(passengers.adults) or passengers.adults < 1:
        raise InvalidInputError("passengers.adults", "at least one adult is required")
    for name in ("children", "infants_in_seat", "infants_on_lap"):
        count = getattr(passengers, name)
        if not _is_count(count) or count < 0:
            raise InvalidInputError(f"passengers.{name}", "must be a non-negative integer")


def validate_filters(filters: FlightFilters) -> None:
    for name in ("max_price", "min_price", "max_duration_minutes"):
        value = getattr(filters, name)
        if value is not None and value <= 0:
            raise InvalidInputError(name, "must be a positive number")

    if (
        filters.max_price is not None
        and filters.min_price is not None
        and filters.min_price > filters.max_price
    ):
        raise InvalidInputError("min_price", "must not be greater than max_price")

    if filters.max_stops is not None and (
        not _is_count(filters.max_stops) or not 0 <= filters.max_stops <= 2
    ):
        raise InvalidInputError("max_stops", "must be 0, 1 or 2")

    limit = filters.limit
    if limit is not None and limit != LIMIT_ALL and (not _is_count(limit) or limit < 1):
        raise InvalidInputError("limit", "must be a positive integer or 'all'")


def _coerce_enum(field: str, enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(field, f"'{value}' is not one of: {choices}")


def validate_search_request(request: SearchRequest) -> SearchRequest:
    """
    Validate a request and return its normalized form.

    Airport and currency codes are upper-cased, string enum values are
    coerced to their Enum members and the return date is dropped for
    anything but round trips.

    Raises:
        InvalidInputError: On the first violated constraint
    """
    origin = validate_airport_code("origin", request.origin)
    destination = validate_airport_code("destination", request.destination)
    if origin == destination:
        raise InvalidInputError("destination", "must differ from origin")

    trip_type = _coerce_enum("tripType", TripType, request.trip_type)
    cabin_class = _coerce_enum("seat", CabinClass, request.cabin_class)
    sort_option = _coerce_enum("sortOption", SortOption, request.sort_option)

    departure = validate_date("departDate", request.depart_date)
    validate_round_trip(trip_type, request.return_date)
    if request.return_date:
        returning = validate_date("returnDate", request.return_date)
        if returning < departure:
            raise InvalidInputError("returnDate", "must not be before the departure date")

    validate_passengers(request.passengers)
    validate_filters(request.filters)

    currency = (request.currency or "").strip().upper()
    if currency and not _CURRENCY_CODE.match(currency):
        raise InvalidInputError("currency", f"'{request.currency}' is not a 3-letter currency code")

    return replace(
        request,
        origin=origin,
        destination=destination,
        trip_type=trip_type,
        return_date=request.return_date if trip_type is TripType.ROUND_TRIP else None,
        cabin_class=cabin_class,
        sort_option=sort_option,
        currency=currency,
    )
