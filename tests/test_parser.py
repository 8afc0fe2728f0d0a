import pytest

from flight_scraper.exceptions import ParsingError
from flight_scraper.models import PriceLevel
from flight_scraper.parser import GoogleFlightsParser, SelectorSet, normalize_price, parse_stops

BOOKING = "https://www.google.com/travel/flights/booking"


@pytest.fixture
def parsed(results_page):
    return GoogleFlightsParser().extract(results_page)


def test_unrelated_markup_yields_empty_result():
    result = GoogleFlightsParser().extract("<html><body><p>Nothing to see</p></body></html>")
    assert result.flights == ()
    assert result.current_price is None


def test_items_without_airline_are_dropped(parsed):
    names = [flight.name for flight in parsed.flights]
    assert names == ["Delta", "United", "American", "JetBlue"]


def test_best_flag_only_on_first_item_of_first_container(parsed):
    assert [flight.is_best for flight in parsed.flights] == [True, False, False, False]


def test_item_fields(parsed):
    delta = parsed.flights[0]
    assert delta.departure == "8:00 AM"
    assert delta.arrival == "4:30 PM"
    assert delta.arrival_time_ahead == "+1"
    assert delta.duration == "8 hr 30 min"
    assert delta.stops == 0
    assert delta.price == "$1234"
    assert delta.delay is None

    united = parsed.flights[1]
    assert united.stops == 1
    assert united.delay == "Often delayed by 30+ min"
    assert united.arrival_time_ahead is None


def test_missing_price_is_not_available(parsed):
    american = parsed.flights[2]
    assert american.price == "N/A"
    assert american.stops == 2


def test_price_level_from_banner(parsed):
    assert parsed.current_price is PriceLevel.LOW


@pytest.mark.parametrize(
    "banner, expected",
    [
        ("Prices are currently typical", PriceLevel.TYPICAL),
        ("Prices are currently HIGH for your trip", PriceLevel.HIGH),
        ("Prices unavailable", None),
    ],
)
def test_price_level_vocabulary(banner, expected):
    markup = f'<html><body><span class="gOatQ">{banner}</span></body></html>'
    assert GoogleFlightsParser().extract(markup).current_price is expected


def test_deep_link_from_href(parsed):
    assert parsed.flights[0].deep_link == f"{BOOKING}?tfs=BEST123&hl=en"


def test_deep_link_from_data_tfs_is_quoted(parsed):
    assert parsed.flights[1].deep_link == f"{BOOKING}?tfs=TOKEN%2B%2F%3D"


def test_deep_link_from_jsdata(parsed):
    assert parsed.flights[2].deep_link == f"{BOOKING}?tfs=JSDATA42"


def test_deep_link_from_jsaction(parsed):
    assert parsed.flights[3].deep_link == f"{BOOKING}?tfs=ACTION7&curr=EUR"


def test_deep_link_absent():
    markup = """
    <div jsname="IWWDBc"><ul class="Rk10dc"><li>
      <div class="sSHqwe tPgKwe ogfYpf"><span>Lufthansa</span></div>
    </li></ul></div>
    """
    flight = GoogleFlightsParser().extract(markup).flights[0]
    assert flight.deep_link is None
    assert flight.duration == "N/A"
    assert flight.departure == "" and flight.arrival == ""


def test_absolute_href_kept_as_is():
    markup = """
    <div jsname="IWWDBc"><ul class="Rk10dc"><li>
      <div class="sSHqwe tPgKwe ogfYpf"><span>KLM</span></div>
      <a href="https://www.google.com/travel/flights/booking?tfs=ABS">Select</a>
    </li></ul></div>
    """
    flight = GoogleFlightsParser().extract(markup).flights[0]
    assert flight.deep_link == f"{BOOKING}?tfs=ABS"


def test_data_url_resolved_against_base():
    markup = """
    <div jsname="IWWDBc"><ul class="Rk10dc"><li>
      <div class="sSHqwe tPgKwe ogfYpf"><span>KLM</span></div>
      <a data-url="/travel/flights/booking?tfs=DATAURL">Select</a>
    </li></ul></div>
    """
    flight = GoogleFlightsParser().extract(markup).flights[0]
    assert flight.deep_link == f"{BOOKING}?tfs=DATAURL"


def test_custom_selectors():
    selectors = SelectorSet(containers="section.results", items="article")
    markup = """
    <section class="results"><article>
      <div class="sSHqwe tPgKwe ogfYpf"><span>Iberia</span></div>
    </article></section>
    """
    result = GoogleFlightsParser(selectors=selectors).extract(markup)
    assert [flight.name for flight in result.flights] == ["Iberia"]


def test_structural_failure_raises_parsing_error():
    parser = GoogleFlightsParser(selectors=SelectorSet(containers="div[jsname="))
    with pytest.raises(ParsingError, match="Failed to parse HTML"):
        parser.extract("<html><body></body></html>")


@pytest.mark.parametrize(
    "text, expected",
    [("Nonstop", 0), ("", 0), ("1 stop", 1), ("2 stops", 2), ("Stops vary", 0)],
)
def test_parse_stops(text, expected):
    assert parse_stops(text) == expected


def test_normalize_price():
    assert normalize_price("$1,234") == "$1234"
    assert normalize_price("") == "N/A"
