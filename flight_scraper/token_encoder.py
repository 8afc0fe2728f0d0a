"""
Search and booking token encoding for the Google Flights ``tfs`` parameter.

The search token is a protobuf message following the upstream's
undocumented schema. The booking token has no usable schema, so its bytes
are packed by hand.
"""

import base64
from typing import Iterable, List, Sequence, Union
from urllib.parse import urlencode

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from .config import (
    BOOKING_BASE_URL,
    DEFAULT_CURRENCY,
    DEFAULT_LANGUAGE,
    SEARCH_BASE_URL,
    SEARCH_TFU,
)
from .exceptions import ParsingError
from .models import (
    BookingSegment,
    CabinClass,
    FlightSegment,
    Passengers,
    SearchRequest,
    TripType,
)

SEAT_VALUES = {
    CabinClass.ECONOMY: 1,
    CabinClass.PREMIUM_ECONOMY: 2,
    CabinClass.BUSINESS: 3,
    CabinClass.FIRST: 4,
}

TRIP_VALUES = {
    TripType.ROUND_TRIP: 1,
    TripType.ONE_WAY: 2,
    TripType.MULTI_CITY: 3,
}

ADULT, CHILD, INFANT_IN_SEAT, INFANT_ON_LAP = 1, 2, 3, 4

# Reverse-engineered booking constants. Meaning unknown; the upstream
# rejects links without them. Re-verify when booking links stop resolving.
BOOKING_PASSENGER_COUNT = 1
BOOKING_SENTINEL_FIELD = 14
BOOKING_SENTINEL_VALUE = 1
BOOKING_SENTINEL_MESSAGE_FIELD = 16
BOOKING_SENTINEL_MESSAGE_VALUE = -1

_Field = descriptor_pb2.FieldDescriptorProto


def _build_search_message_class():
    """Build the ``Info`` message class from a descriptor (no generated code)"""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="flight_scraper/flights.proto",
        package="flight_scraper",
        syntax="proto2",
    )

    enums = {
        "Seat": [("UNKNOWN_SEAT", 0), ("ECONOMY", 1), ("PREMIUM_ECONOMY", 2),
                 ("BUSINESS", 3), ("FIRST", 4)],
        "Trip": [("UNKNOWN_TRIP", 0), ("ROUND_TRIP", 1), ("ONE_WAY", 2),
                 ("MULTI_CITY", 3)],
        "Passenger": [("UNKNOWN_PASSENGER", 0), ("ADULT", 1), ("CHILD", 2),
                      ("INFANT_IN_SEAT", 3), ("INFANT_ON_LAP", 4)],
    }
    for enum_name, values in enums.items():
        enum_proto = file_proto.enum_type.add(name=enum_name)
        for value_name, number in values:
            enum_proto.value.add(name=value_name, number=number)

    airport = file_proto.message_type.add(name="Airport")
    airport.field.add(name="airport", number=2, label=_Field.LABEL_OPTIONAL,
                      type=_Field.TYPE_STRING)

    flight_data = file_proto.message_type.add(name="FlightData")
    flight_data.field.add(name="date", number=2, label=_Field.LABEL_OPTIONAL,
                          type=_Field.TYPE_STRING)
    flight_data.field.add(name="max_stops", number=5, label=_Field.LABEL_OPTIONAL,
                          type=_Field.TYPE_INT32)
    flight_data.field.add(name="airlines", number=6, label=_Field.LABEL_REPEATED,
                          type=_Field.TYPE_STRING)
    flight_data.field.add(name="from_flight", number=13, label=_Field.LABEL_OPTIONAL,
                          type=_Field.TYPE_MESSAGE, type_name=".flight_scraper.Airport")
    flight_data.field.add(name="to_flight", number=14, label=_Field.LABEL_OPTIONAL,
                          type=_Field.TYPE_MESSAGE, type_name=".flight_scraper.Airport")

    info = file_proto.message_type.add(name="Info")
    info.field.add(name="data", number=3, label=_Field.LABEL_REPEATED,
                   type=_Field.TYPE_MESSAGE, type_name=".flight_scraper.FlightData")
    passengers = info.field.add(name="passengers", number=8, label=_Field.LABEL_REPEATED,
                                type=_Field.TYPE_ENUM, type_name=".flight_scraper.Passenger")
    passengers.options.packed = True
    info.field.add(name="seat", number=9, label=_Field.LABEL_OPTIONAL,
                   type=_Field.TYPE_ENUM, type_name=".flight_scraper.Seat")
    info.field.add(name="trip", number=19, label=_Field.LABEL_OPTIONAL,
                   type=_Field.TYPE_ENUM, type_name=".flight_scraper.Trip")

    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    return message_factory.GetMessageClass(pool.FindMessageTypeByName("flight_scraper.Info"))


SearchInfo = _build_search_message_class()


def _passenger_types(passengers: Passengers) -> List[int]:
    """One enum value per traveller: adults, children, infants in seat, on lap"""
    counts = [
        ("adults", passengers.adults, ADULT),
        ("children", passengers.children, CHILD),
        ("infants_in_seat", passengers.infants_in_seat, INFANT_IN_SEAT),
        ("infants_on_lap", passengers.infants_on_lap, INFANT_ON_LAP),
    ]
    types = []
    for name, count, value in counts:
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(f"{name} must be a non-negative integer, got {count!r}")
        types.extend([value] * count)
    if passengers.adults < 1:
        raise ValueError("at least one adult passenger is required")
    return types


def _url_safe(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii").replace("+", "-").replace("/", "_").rstrip("=")


def encode_search_token(
    segments: Sequence[FlightSegment],
    trip_type: Union[TripType, str],
    cabin_class: Union[CabinClass, str],
    passengers: Passengers,
) -> str:
    """
    Encode search parameters into the URL-safe ``tfs`` token.

    Raises:
        ParsingError: On an unsupported enum value, invalid passenger counts
            or a serialization failure
    """
    try:
        message = SearchInfo()
        for segment in segments:
            data = message.data.add()
            data.date = segment.date.replace("-", "")
            data.from_flight.airport = segment.from_airport
            data.to_flight.airport = segment.to_airport
            if segment.max_stops is not None:
                data.max_stops = segment.max_stops
            data.airlines.extend(segment.airlines)

        message.passengers.extend(_passenger_types(passengers))
        message.seat = SEAT_VALUES[CabinClass(cabin_class)]
        message.trip = TRIP_VALUES[TripType(trip_type)]

        return _url_safe(message.SerializeToString())
    except Exception as e:
        raise ParsingError(f"Failed to encode flight search: {e}") from e


def decode_search_token(token: str):
    """Inverse of encode_search_token, for inspecting captured URLs"""
    padded = token + "=" * (-len(token) % 4)
    return SearchInfo.FromString(base64.urlsafe_b64decode(padded))


class WireWriter:
    """Minimal protobuf wire-format writer for hand-packed messages"""

    VARINT = 0
    LENGTH_DELIMITED = 2

    def __init__(self):
        self._buffer = bytearray()

    def write_varint(self, value: int) -> "WireWriter":
        # Negative numbers go out as 64-bit two's complement (10 bytes)
        value &= 0xFFFFFFFFFFFFFFFF
        while True:
            byte = value & 0x7F
            value >>= 7
            if value:
                self._buffer.append(byte | 0x80)
            else:
                self._buffer.append(byte)
                return self

    def write_tag(self, field_number: int, wire_type: int) -> "WireWriter":
        return self.write_varint((field_number << 3) | wire_type)

    def varint_field(self, field_number: int, value: int) -> "WireWriter":
        self.write_tag(field_number, self.VARINT)
        return self.write_varint(value)

    def bytes_field(self, field_number: int, data: bytes) -> "WireWriter":
        self.write_tag(field_number, self.LENGTH_DELIMITED)
        self.write_varint(len(data))
        self._buffer.extend(data)
        return self

    def string_field(self, field_number: int, text: str) -> "WireWriter":
        return self.bytes_field(field_number, text.encode("utf-8"))

    def message_field(self, field_number: int, message: "WireWriter") -> "WireWriter":
        return self.bytes_field(field_number, message.getvalue())

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


def _segment_endpoints(index, segment, origin_airport, dest_airport, trip):
    if index == 0:
        return origin_airport, dest_airport
    if index == 1 and trip is TripType.ROUND_TRIP:
        return dest_airport, origin_airport
    if not segment.legs:
        raise ValueError(f"booking segment {index} has no legs")
    return segment.legs[0].origin, segment.legs[-1].destination


def encode_booking_token(
    segments: Sequence[BookingSegment],
    origin_airport: str,
    dest_airport: str,
    trip_type: Union[TripType, str],
    cabin_class: Union[CabinClass, str],
    passengers: Passengers,
) -> str:
    """
    Encode a booking deep-link token.

    Layout: trip (2), one segment message per segment (3), fixed passenger
    count (8), cabin (9), then the two sentinel fields (14, 16).

    Raises:
        ParsingError: On an unsupported enum value or invalid passengers
    """
    try:
        trip = TripType(trip_type)
        seat = SEAT_VALUES[CabinClass(cabin_class)]
        _passenger_types(passengers)

        writer = WireWriter()
        writer.varint_field(2, TRIP_VALUES[trip])

        for index, segment in enumerate(segments):
            seg_origin, seg_dest = _segment_endpoints(
                index, segment, origin_airport, dest_airport, trip
            )
            seg = WireWriter().string_field(2, segment.date)
            for leg in segment.legs:
                seg.message_field(
                    4,
                    WireWriter()
                    .string_field(1, leg.origin)
                    .string_field(2, leg.date)
                    .string_field(3, leg.destination)
                    .string_field(5, leg.carrier)
                    .string_field(6, leg.flight_number),
                )
            seg.message_field(13, WireWriter().string_field(2, seg_origin))
            seg.message_field(14, WireWriter().string_field(2, seg_dest))
            writer.message_field(3, seg)

        writer.varint_field(8, BOOKING_PASSENGER_COUNT)
        writer.varint_field(9, seat)
        writer.varint_field(BOOKING_SENTINEL_FIELD, BOOKING_SENTINEL_VALUE)
        writer.message_field(
            BOOKING_SENTINEL_MESSAGE_FIELD,
            WireWriter().varint_field(1, BOOKING_SENTINEL_MESSAGE_VALUE),
        )

        return _url_safe(writer.getvalue())
    except Exception as e:
        raise ParsingError(f"Failed to encode booking token: {e}") from e


def segments_for_request(
    request: SearchRequest, upstream_filters: bool = True
) -> List[FlightSegment]:
    """
    Outbound segment, plus the reversed return segment for round trips.

    With ``upstream_filters`` off, max stops and airlines are left out of the
    token so the fetched page is unfiltered.
    """
    filters = request.filters
    max_stops = filters.max_stops if upstream_filters else None
    airlines = tuple(filters.airlines) if upstream_filters else ()
    segments = [
        FlightSegment(
            date=request.depart_date,
            from_airport=request.origin,
            to_airport=request.destination,
            max_stops=max_stops,
            airlines=airlines,
        )
    ]
    if request.trip_type is TripType.ROUND_TRIP and request.return_date:
        segments.append(
            FlightSegment(
                date=request.return_date,
                from_airport=request.destination,
                to_airport=request.origin,
                max_stops=max_stops,
                airlines=airlines,
            )
        )
    return segments


def build_search_url(
    segments: Iterable[FlightSegment],
    trip_type: Union[TripType, str],
    cabin_class: Union[CabinClass, str],
    passengers: Passengers,
    currency: str = "",
    base_url: str = SEARCH_BASE_URL,
) -> str:
    tfs = encode_search_token(list(segments), trip_type, cabin_class, passengers)
    params = {"tfs": tfs, "hl": DEFAULT_LANGUAGE, "tfu": SEARCH_TFU}
    if currency:
        params["curr"] = currency
    return f"{base_url}?{urlencode(params)}"


def build_booking_url(
    segments: Sequence[BookingSegment],
    origin_airport: str,
    dest_airport: str,
    trip_type: Union[TripType, str],
    cabin_class: Union[CabinClass, str],
    passengers: Passengers,
    currency: str = DEFAULT_CURRENCY,
    base_url: str = BOOKING_BASE_URL,
) -> str:
    tfs = encode_booking_token(
        segments, origin_airport, dest_airport, trip_type, cabin_class, passengers
    )
    params = {"tfs": tfs, "hl": DEFAULT_LANGUAGE, "curr": currency or DEFAULT_CURRENCY}
    return f"{base_url}?{urlencode(params)}"
