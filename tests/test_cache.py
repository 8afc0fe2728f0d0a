import asyncio

import pytest

from conftest import make_flight
from flight_scraper.cache import DisabledCache, ResultCache, create_cache_key
from flight_scraper.models import CabinClass, SearchResult, TripType


def _result(name="Delta") -> SearchResult:
    return SearchResult(flights=(make_flight(name=name),))


def _key(**overrides) -> str:
    params = dict(
        origin="JFK",
        destination="LHR",
        depart_date="2025-12-15",
        trip_type=TripType.ONE_WAY,
        return_date=None,
        cabin_class=CabinClass.ECONOMY,
        adults=1,
        children=0,
        infants_in_seat=0,
        infants_on_lap=0,
        currency="USD",
    )
    params.update(overrides)
    return create_cache_key(**params)


def test_cache_key_format():
    assert _key() == "JFK|LHR|2025-12-15|one-way|none|economy|1|0|0|0|USD"


def test_cache_key_normalizes_currency_and_enums():
    assert _key(currency="usd") == _key()
    assert _key(currency="") == _key()
    assert _key(trip_type="one-way", cabin_class="economy") == _key()


def test_cache_key_distinguishes_searches():
    assert _key(return_date="2025-12-22") != _key()
    assert _key(adults=2) != _key()
    assert _key(currency="EUR") != _key()
    assert _key(cabin_class=CabinClass.BUSINESS) != _key()


@pytest.mark.asyncio
async def test_get_set_roundtrip(clock):
    cache = ResultCache(ttl=60, max_size=10, clock=clock)
    assert await cache.get("missing") is None

    await cache.set("a", _result())
    assert await cache.get("a") == _result()
    assert await cache.size() == 1


@pytest.mark.asyncio
async def test_entries_expire_after_ttl(clock):
    cache = ResultCache(ttl=60, max_size=10, clock=clock)
    await cache.set("a", _result())

    clock.advance(60)
    assert await cache.get("a") is not None, "entry should still be fresh at exactly ttl"

    clock.advance(1)
    assert await cache.get("a") is None
    assert await cache.size() == 0, "expired entry should be removed on read"


@pytest.mark.asyncio
async def test_full_cache_evicts_single_oldest_entry(clock):
    cache = ResultCache(ttl=600, max_size=2, clock=clock)
    await cache.set("a", _result("A"))
    clock.advance(1)
    await cache.set("b", _result("B"))
    clock.advance(1)
    await cache.set("c", _result("C"))

    assert await cache.size() == 2
    assert await cache.get("a") is None
    assert await cache.get("b") == _result("B")
    assert await cache.get("c") == _result("C")


@pytest.mark.asyncio
async def test_overwriting_existing_key_does_not_evict(clock):
    cache = ResultCache(ttl=600, max_size=2, clock=clock)
    await cache.set("a", _result("A"))
    clock.advance(1)
    await cache.set("b", _result("B"))
    clock.advance(1)
    await cache.set("a", _result("A2"))

    assert await cache.size() == 2
    assert await cache.get("a") == _result("A2")
    assert await cache.get("b") == _result("B")


@pytest.mark.asyncio
async def test_clear(clock):
    cache = ResultCache(ttl=60, max_size=10, clock=clock)
    await cache.set("a", _result())
    await cache.set("b", _result())
    await cache.clear()
    assert await cache.size() == 0
    assert await cache.get("a") is None


@pytest.mark.asyncio
async def test_concurrent_writers_never_exceed_capacity():
    cache = ResultCache(ttl=600, max_size=20)
    await asyncio.gather(*(cache.set(f"key-{i}", _result()) for i in range(50)))
    assert await cache.size() == 20


@pytest.mark.asyncio
async def test_concurrent_writers_all_land_below_capacity():
    cache = ResultCache(ttl=600, max_size=100)
    await asyncio.gather(*(cache.set(f"key-{i}", _result()) for i in range(50)))
    assert await cache.size() == 50


@pytest.mark.asyncio
async def test_disabled_cache_stores_nothing():
    cache = DisabledCache()
    await cache.set("a", _result())
    assert await cache.get("a") is None
    assert await cache.size() == 0
    await cache.clear()


@pytest.mark.asyncio
async def test_size_excludes_expired_entries(clock):
    cache = ResultCache(ttl=60, max_size=10, clock=clock)
    await cache.set("a", _result())
    await cache.set("b", _result())

    clock.advance(61)
    await cache.set("c", _result())

    assert await cache.size() == 1
    assert await cache.get("c") is not None
