"""Flight data parser for Google Flights result pages"""

import re
from dataclasses import dataclass
from typing import List, Optional, Protocol
from urllib.parse import quote, urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag
from loguru import logger

from .config import BASE_URL, BOOKING_BASE_URL
from .exceptions import ParsingError
from .models import FlightOption, PriceLevel, SearchResult

UNKNOWN_AIRLINE = "Unknown"
NOT_AVAILABLE = "N/A"

_WHITESPACE = re.compile(r"\s+")
_LEADING_INT = re.compile(r"^(\d+)")
_TFS_PARAM = re.compile(r"tfs=([^&\s;]+)")
_BOOKING_PATH = re.compile(r"/travel/flights/booking\?[^'\"]+")


class FlightExtractor(Protocol):
    """Anything that turns a fetched page into a SearchResult"""

    def extract(self, markup: str) -> SearchResult:
        ...


@dataclass(frozen=True)
class SelectorSet:
    """
    CSS selectors for the results page.

    The upstream class names are obfuscated and change without notice;
    re-tune them here rather than in the parsing code.
    """

    containers: str = 'div[jsname="IWWDBc"], div[jsname="YdtKid"]'
    items: str = "ul.Rk10dc li"
    airline: str = "div.sSHqwe.tPgKwe.ogfYpf span"
    times: str = "span.mv1WYe div"
    arrival_ahead: str = "span.bOzv6"
    duration: str = "div.gvkrdb, li div.Ak5kof div"
    stops: str = ".BbR8Ec .ogfYpf"
    delay: str = ".GsCCve"
    price: str = ".YMlIz.FpEdX"
    price_banner: str = "span.gOatQ"

    booking_href: str = 'a[href*="/travel/flights/booking"], a[href*="tfs="]'
    booking_data: str = 'a[data-tfs], a[data-url*="booking"]'
    booking_jsdata: str = '[jsdata*="tfs"], [data-flt-ve]'
    booking_action: str = '[onclick*="booking"], [jsaction*="select"]'


DEFAULT_SELECTORS = SelectorSet()


def _text(element: Optional[Tag]) -> str:
    return element.get_text().strip() if element is not None else ""


def _normalize_ws(text: str) -> str:
    return _WHITESPACE.sub(" ", text.strip())


def _absolute(url: str) -> str:
    return url if url.startswith("http") else urljoin(BASE_URL, url)


class GoogleFlightsParser:
    """Parse a Google Flights results page into a SearchResult"""

    def __init__(self, selectors: SelectorSet = DEFAULT_SELECTORS, features: str = "lxml"):
        self.selectors = selectors
        self.features = features

    def extract(self, markup: str) -> SearchResult:
        """
        Extract flights and the price indicator from markup.

        Raises:
            ParsingError: If the document cannot be walked
        """
        try:
            return self._parse(markup)
        except ParsingError:
            raise
        except Exception as e:
            logger.error(f"Failed to parse results page: {e}")
            raise ParsingError(f"Failed to parse HTML: {e}") from e

    def _parse(self, markup: str) -> SearchResult:
        soup = BeautifulSoup(markup, self.features)
        flights: List[FlightOption] = []

        for container_index, container in enumerate(soup.select(self.selectors.containers)):
            is_best_section = container_index == 0

            for item_index, item in enumerate(container.select(self.selectors.items)):
                flight = self.parse_item(item, is_best=is_best_section and item_index == 0)
                if flight is not None:
                    flights.append(flight)

        current_price = self.parse_price_level(soup)
        logger.debug(
            f"Parsed {len(flights)} flights (price level: "
            f"{current_price.value if current_price else 'n/a'})"
        )
        return SearchResult(current_price=current_price, flights=tuple(flights))

    def parse_item(self, item: Tag, is_best: bool = False) -> Optional[FlightOption]:
        """Parse one itinerary list item; None when no airline name is found"""
        sel = self.selectors

        name = _text(item.select_one(sel.airline)) or UNKNOWN_AIRLINE
        if name == UNKNOWN_AIRLINE:
            return None

        time_nodes = item.select(sel.times)
        departure = _normalize_ws(time_nodes[0].get_text()) if len(time_nodes) > 0 else ""
        arrival = _normalize_ws(time_nodes[1].get_text()) if len(time_nodes) > 1 else ""

        return FlightOption(
            name=name,
            departure=departure,
            arrival=arrival,
            duration=_text(item.select_one(sel.duration)) or NOT_AVAILABLE,
            stops=parse_stops(_text(item.select_one(sel.stops))),
            price=normalize_price(_text(item.select_one(sel.price))),
            is_best=is_best,
            arrival_time_ahead=_text(item.select_one(sel.arrival_ahead)) or None,
            delay=_text(item.select_one(sel.delay)) or None,
            deep_link=self.extract_deep_link(item),
        )

    def extract_deep_link(self, item: Tag) -> Optional[str]:
        """Try each booking-link strategy in order of reliability"""
        sel = self.selectors

        # 1. Direct booking href
        link = item.select_one(sel.booking_href)
        if link is not None and link.get("href"):
            return _absolute(link["href"])

        # 2. Raw token or partial URL in data attributes
        link = item.select_one(sel.booking_data)
        if link is not None:
            data_tfs = link.get("data-tfs")
            if data_tfs:
                return f"{BOOKING_BASE_URL}?tfs={quote(data_tfs, safe='')}"
            data_url = link.get("data-url")
            if data_url:
                return _absolute(data_url)

        # 3. tfs parameter embedded in jsdata
        element = item.select_one(sel.booking_jsdata)
        if element is not None:
            match = _TFS_PARAM.search(element.get("jsdata") or "")
            if match:
                return f"{BOOKING_BASE_URL}?tfs={match.group(1)}"

        # 4. Booking path inside onclick / jsaction
        element = item.select_one(sel.booking_action)
        if element is not None:
            action = element.get("onclick") or element.get("jsaction") or ""
            match = _BOOKING_PATH.search(action)
            if match:
                return f"{BASE_URL}{match.group(0)}"

        return None

    def parse_price_level(self, soup: BeautifulSoup) -> Optional[PriceLevel]:
        banner = "".join(el.get_text() for el in soup.select(self.selectors.price_banner))
        banner = banner.strip().lower()
        for level in (PriceLevel.LOW, PriceLevel.TYPICAL, PriceLevel.HIGH):
            if level.value in banner:
                return level
        return None


def parse_stops(stops_text: str) -> int:
    """Leading integer of the stops label; "Nonstop" or empty means 0"""
    if not stops_text or stops_text == "Nonstop":
        return 0
    match = _LEADING_INT.match(stops_text)
    return int(match.group(1)) if match else 0


def normalize_price(raw_price: str) -> str:
    """Strip thousands separators ("$1,234" -> "$1234"); "N/A" when missing"""
    return raw_price.replace(",", "") if raw_price else NOT_AVAILABLE
