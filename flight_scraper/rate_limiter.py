"""Sliding-window rate limiter with minimum request spacing"""

import asyncio
import time
from collections import deque
from typing import Any, Callable, Deque, Dict

from loguru import logger

from .config import DEFAULT_MAX_REQUESTS, DEFAULT_MIN_DELAY, DEFAULT_RATE_WINDOW
from .exceptions import RateLimitError


class SlidingWindowRateLimiter:
    """
    Admits at most ``max_requests`` per trailing ``window`` seconds and keeps
    admitted requests at least ``min_delay`` seconds apart.

    Admission (prune, check, record) and the spacing slot reservation
    happen in one lock acquisition; only the spacing sleep runs outside it.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window: float = DEFAULT_RATE_WINDOW,
        min_delay: float = DEFAULT_MIN_DELAY,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests admitted per window
            window: Window length in seconds
            min_delay: Minimum seconds between consecutive requests
            clock: Time source (monotonic seconds)
        """
        self.max_requests = max_requests
        self.window = window
        self.min_delay = min_delay
        self.clock = clock
        self._timestamps: Deque[float] = deque()
        self._last_request = None
        self.lock = asyncio.Lock()

        logger.debug(
            f"Rate limiter initialized: {max_requests} req/{window}s, "
            f"min delay {min_delay}s"
        )

    def _prune(self, now: float) -> None:
        window_start = now - self.window
        while self._timestamps and self._timestamps[0] <= window_start:
            self._timestamps.popleft()

    async def acquire(self) -> None:
        """
        Take a slot or fail fast.

        Raises:
            RateLimitError: When the window is full, with the seconds until
                the oldest request leaves it
        """
        async with self.lock:
            now = self.clock()
            self._prune(now)

            if len(self._timestamps) >= self.max_requests:
                wait_time = self._timestamps[0] + self.window - now
                logger.warning(
                    f"Rate limit reached ({len(self._timestamps)}/{self.max_requests}), "
                    f"retry in {wait_time:.1f}s"
                )
                raise RateLimitError(wait_time)

            self._timestamps.append(now)

            # Reserve the next spacing slot
            if self._last_request is None:
                slot = now
            else:
                slot = max(now, self._last_request + self.min_delay)
            self._last_request = slot

        delay = slot - now
        if delay > 0:
            logger.debug(f"Spacing requests: waiting {delay:.2f}s")
            await asyncio.sleep(delay)

    async def reset(self) -> None:
        async with self.lock:
            self._timestamps.clear()
            self._last_request = None

    async def get_stats(self) -> Dict[str, Any]:
        async with self.lock:
            self._prune(self.clock())
            return {"count": len(self._timestamps), "window_ms": int(self.window * 1000)}


class DisabledRateLimiter:
    """Stand-in that admits everything"""

    async def acquire(self) -> None:
        pass

    async def reset(self) -> None:
        pass

    async def get_stats(self) -> Dict[str, Any]:
        return {"count": 0, "window_ms": 0}
