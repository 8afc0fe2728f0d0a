import argparse
import sys
from pathlib import Path

import orjson
import pytest

import flight_scraper.cli as cli
from conftest import make_flight
from flight_scraper.exceptions import NavigationFailedError
from flight_scraper.models import CabinClass, PriceLevel, SearchResult, SortOption, TripType

BASE_ARGS = ["--origin", "jfk", "--destination", "lhr", "--date", "2025-12-15"]


@pytest.fixture
def no_logging(monkeypatch):
    # Avoid replacing the loguru sinks pytest is capturing
    monkeypatch.setattr(cli, "setup_logging", lambda *a, **k: None)


@pytest.fixture
def fake_scraper(monkeypatch):
    """
    Replace FlightScraper in the CLI with a fake that records its config and
    request and returns a canned result (or raises ``state["error"]``).
    """
    state = {
        "config": None,
        "request": None,
        "error": None,
        "result": SearchResult(
            current_price=PriceLevel.TYPICAL,
            flights=(make_flight(name="Delta", price="$420", is_best=True),),
        ),
    }

    class FakeScraper:
        def __init__(self, config=None, **kwargs):
            state["config"] = config

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def scrape_request(self, request):
            state["request"] = request
            if state["error"] is not None:
                raise state["error"]
            return state["result"]

        def build_search_url(self, request):
            return "https://www.google.com/travel/flights?tfs=fake"

    monkeypatch.setattr(cli, "FlightScraper", FakeScraper)
    return state


@pytest.mark.parametrize("value, expected", [("all", "all"), ("ALL", "all"), ("5", 5)])
def test_limit_type_accepts(value, expected):
    assert cli.limit_type(value) == expected


@pytest.mark.parametrize("value", ["0", "-2", "many"])
def test_limit_type_rejects(value):
    with pytest.raises(argparse.ArgumentTypeError):
        cli.limit_type(value)


def test_parser_defaults():
    args = cli.build_parser().parse_args(BASE_ARGS)
    assert args.trip_type == "one-way"
    assert args.cabin == "economy"
    assert args.sort == "none"
    assert args.adults == 1
    assert args.impersonate == ""
    assert args.limit is None
    assert args.production is False


def test_parser_rejects_bad_choices():
    parser = cli.build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(BASE_ARGS + ["--max-stops", "3"])
    with pytest.raises(SystemExit):
        parser.parse_args(BASE_ARGS + ["--cabin", "steerage"])
    with pytest.raises(SystemExit):
        parser.parse_args(["--origin", "JFK"])


def test_build_request_maps_every_option():
    args = cli.build_parser().parse_args(
        BASE_ARGS
        + [
            "--return-date", "2025-12-22",
            "--trip-type", "round-trip",
            "--cabin", "business",
            "--adults", "2",
            "--children", "1",
            "--infants-on-lap", "1",
            "--currency", "EUR",
            "--sort", "price-asc",
            "--max-price", "900",
            "--airlines", "Delta", "United",
            "--nonstop",
            "--max-stops", "1",
            "--limit", "3",
        ]
    )
    request = cli.build_request(args)

    assert (request.origin, request.destination) == ("JFK", "LHR")
    assert request.trip_type is TripType.ROUND_TRIP
    assert request.return_date == "2025-12-22"
    assert request.cabin_class is CabinClass.BUSINESS
    assert request.passengers.total == 4
    assert request.currency == "EUR"
    assert request.sort_option is SortOption.PRICE_ASC
    assert request.filters.max_price == 900
    assert request.filters.airlines == ("Delta", "United")
    assert request.filters.nonstop_only is True
    assert request.filters.max_stops == 1
    assert request.filters.limit == 3


def test_build_config():
    parser = cli.build_parser()

    plain = cli.build_config(parser.parse_args(BASE_ARGS))
    assert not plain.enable_cache and not plain.enable_retry

    production = cli.build_config(parser.parse_args(BASE_ARGS + ["--production", "--impersonate"]))
    assert production.enable_cache and production.enable_rate_limit and production.enable_retry
    assert production.impersonate == "chrome124"


@pytest.mark.asyncio
async def test_run_search_prints_json(fake_scraper, capsys):
    args = cli.build_parser().parse_args(BASE_ARGS + ["--sort", "price-desc"])

    assert await cli.run_search(args) == 0

    document = orjson.loads(capsys.readouterr().out)
    assert document["current_price"] == "typical"
    assert document["total_results"] == 1
    assert document["search_metadata"]["origin"] == "JFK"
    assert document["search_metadata"]["sort"] == "price-desc"
    assert fake_scraper["request"].sort_option is SortOption.PRICE_DESC


@pytest.mark.asyncio
async def test_run_search_writes_output_file(fake_scraper, tmp_path: Path, capsys):
    output = tmp_path / "out" / "results.json"
    args = cli.build_parser().parse_args(BASE_ARGS + ["--output", str(output)])

    assert await cli.run_search(args) == 0
    assert output.exists()
    assert orjson.loads(output.read_bytes())["flights"][0]["name"] == "Delta"
    assert capsys.readouterr().out == ""


@pytest.mark.asyncio
async def test_run_search_reports_scraper_errors(fake_scraper, capsys):
    fake_scraper["error"] = NavigationFailedError("https://example.test", "HTTP 503")
    args = cli.build_parser().parse_args(BASE_ARGS)

    assert await cli.run_search(args) == 1
    assert capsys.readouterr().out == ""


def test_main_exits_with_status(monkeypatch, fake_scraper, no_logging, capsys):
    monkeypatch.setattr(sys, "argv", ["flight-scraper"] + BASE_ARGS + ["--production"])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 0
    assert fake_scraper["config"].enable_cache is True
    assert orjson.loads(capsys.readouterr().out)["total_results"] == 1
