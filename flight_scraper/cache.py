"""In-memory TTL cache for raw search results"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Union

from loguru import logger

from .config import DEFAULT_CACHE_MAX_SIZE, DEFAULT_CACHE_TTL, DEFAULT_CURRENCY
from .models import SearchResult


@dataclass(frozen=True)
class CacheEntry:
    result: SearchResult
    timestamp: float


def _value(param: Union[Enum, str]) -> str:
    return param.value if isinstance(param, Enum) else str(param)


def create_cache_key(
    origin: str,
    destination: str,
    depart_date: str,
    trip_type: Union[Enum, str],
    return_date: Optional[str],
    cabin_class: Union[Enum, str],
    adults: int,
    children: int,
    infants_in_seat: int,
    infants_on_lap: int,
    currency: str = DEFAULT_CURRENCY,
) -> str:
    """Canonical key: logically identical searches map to identical keys"""
    params = [
        origin,
        destination,
        depart_date,
        _value(trip_type),
        return_date or "none",
        _value(cabin_class),
        adults,
        children,
        infants_in_seat,
        infants_on_lap,
        (currency or DEFAULT_CURRENCY).upper(),
    ]
    return "|".join(str(p) for p in params)


class ResultCache:
    """
    Bounded TTL cache of raw (unfiltered) search results.

    Expired entries are dropped on read. When full, the entry with the
    oldest insertion time is evicted. Every mutation copies the map and
    swaps it in while holding the lock.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        max_size: int = DEFAULT_CACHE_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            ttl: Seconds an entry stays fresh
            max_size: Maximum number of entries
            clock: Time source (monotonic seconds)
        """
        self.ttl = ttl
        self.max_size = max_size
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.lock = asyncio.Lock()

        logger.debug(f"Result cache initialized: ttl={ttl}s, max_size={max_size}")

    async def get(self, key: str) -> Optional[SearchResult]:
        async with self.lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self.clock() - entry.timestamp > self.ttl:
                entries = dict(self._entries)
                del entries[key]
                self._entries = entries
                logger.debug(f"Cache entry expired: {key}")
                return None

            return entry.result

    async def set(self, key: str, value: SearchResult) -> None:
        async with self.lock:
            entries = dict(self._entries)

            if entries and key not in entries and len(entries) >= self.max_size:
                oldest_key = min(entries, key=lambda k: entries[k].timestamp)
                del entries[oldest_key]
                logger.debug(f"Cache full, evicted oldest entry: {oldest_key}")

            entries[key] = CacheEntry(result=value, timestamp=self.clock())
            self._entries = entries

    async def clear(self) -> None:
        async with self.lock:
            self._entries = {}

    async def size(self) -> int:
        """Number of fresh entries; expired ones are dropped first"""
        async with self.lock:
            now = self.clock()
            fresh = {
                key: entry
                for key, entry in self._entries.items()
                if now - entry.timestamp <= self.ttl
            }
            if len(fresh) != len(self._entries):
                self._entries = fresh
            return len(fresh)


class DisabledCache:
    """Stand-in used when caching is turned off"""

    async def get(self, key: str) -> Optional[SearchResult]:
        return None

    async def set(self, key: str, value: SearchResult) -> None:
        pass

    async def clear(self) -> None:
        pass

    async def size(self) -> int:
        return 0
