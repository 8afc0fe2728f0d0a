"""Scrape orchestrator: validation, cache, rate limiting, fetch, parse, post-process"""

import asyncio
import time
from typing import Optional, Union

import httpx
from loguru import logger

from .cache import DisabledCache, ResultCache, create_cache_key
from .config import DEFAULT_CURRENCY, REQUEST_HEADERS, ScraperConfig
from .exceptions import (
    NavigationFailedError,
    ScrapeTimeoutError,
    ScraperError,
    UnknownScraperError,
)
from .models import (
    CabinClass,
    FlightFilters,
    Passengers,
    SearchRequest,
    SearchResult,
    SortOption,
    TripType,
)
from .parser import FlightExtractor, GoogleFlightsParser
from .pipeline import apply_filters_and_sort
from .rate_limiter import DisabledRateLimiter, SlidingWindowRateLimiter
from .retry import retry_with_backoff
from .token_encoder import build_search_url, segments_for_request
from .transport import CurlTransport, HttpTransport, HttpxTransport
from .validation import validate_search_request


class FlightScraper:
    """
    Google Flights search client with:
    - protobuf-encoded search URLs (no browser)
    - TTL cache of raw results, filters re-applied per request
    - Sliding-window rate limiting
    - Exponential backoff retry for network failures and timeouts

    Which of cache / rate limiter / retry are active is decided by the
    ScraperConfig; explicitly passed components always win.
    """

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        transport: Optional[HttpTransport] = None,
        cache=None,
        rate_limiter=None,
        extractor: Optional[FlightExtractor] = None,
    ):
        """
        Initialize scraper.

        Args:
            config: Feature switches and tuning, plain mode by default
            transport: HTTP transport; built from the config when omitted
            cache: ResultCache or DisabledCache
            rate_limiter: SlidingWindowRateLimiter or DisabledRateLimiter
            extractor: Markup extractor strategy
        """
        self.config = config or ScraperConfig.plain()
        cfg = self.config

        if cache is None:
            cache = (
                ResultCache(ttl=cfg.cache_ttl, max_size=cfg.cache_max_size)
                if cfg.enable_cache
                else DisabledCache()
            )
        if rate_limiter is None:
            rate_limiter = (
                SlidingWindowRateLimiter(
                    max_requests=cfg.max_requests,
                    window=cfg.rate_window,
                    min_delay=cfg.min_delay,
                )
                if cfg.enable_rate_limit
                else DisabledRateLimiter()
            )

        self.cache = cache
        # Cached pages are stored unfiltered; filters run locally
        self.upstream_filters = isinstance(cache, DisabledCache)
        self.rate_limiter = rate_limiter
        self.extractor = extractor or GoogleFlightsParser()
        self._owns_transport = transport is None
        self.transport = transport or self._build_transport()

        logger.info(
            f"Flight scraper initialized (cache={cfg.enable_cache}, "
            f"rate_limit={cfg.enable_rate_limit}, retry={cfg.enable_retry})"
        )

    def _build_transport(self) -> HttpTransport:
        cfg = self.config
        if cfg.impersonate:
            return CurlTransport(
                impersonate=cfg.impersonate,
                connect_timeout=cfg.connect_timeout,
                response_timeout=cfg.response_timeout,
                body_timeout=cfg.body_timeout,
            )
        return HttpxTransport(
            connect_timeout=cfg.connect_timeout,
            response_timeout=cfg.response_timeout,
            body_timeout=cfg.body_timeout,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_transport:
            await self.transport.aclose()

    async def scrape(
        self,
        origin: str,
        destination: str,
        depart_date: str,
        trip_type: Union[TripType, str] = TripType.ONE_WAY,
        return_date: Optional[str] = None,
        sort_option: Union[SortOption, str] = SortOption.NONE,
        filters: Optional[FlightFilters] = None,
        cabin_class: Optional[Union[CabinClass, str]] = None,
        passengers: Optional[Passengers] = None,
        currency: Optional[str] = None,
    ) -> SearchResult:
        """
        Search flights and return them filtered, sorted and limited.

        Raises:
            ScraperError: InvalidInput, NavigationFailed, Timeout,
                ParsingError, RateLimitExceeded or Unknown
        """
        request = SearchRequest(
            origin=origin,
            destination=destination,
            depart_date=depart_date,
            trip_type=trip_type,
            return_date=return_date,
            cabin_class=cabin_class or CabinClass.ECONOMY,
            passengers=passengers or Passengers(),
            currency=currency or "",
            sort_option=sort_option,
            filters=filters or FlightFilters(),
        )
        return await self.scrape_request(request)

    async def scrape_request(self, request: SearchRequest) -> SearchResult:
        try:
            request = validate_search_request(request)
            raw_result = await self._get_raw_result(request)
            result = apply_filters_and_sort(raw_result, request.filters, request.sort_option)
        except ScraperError:
            raise
        except Exception as e:
            logger.error(f"Unexpected scrape failure: {e!r}")
            raise UnknownScraperError(e) from e

        logger.info(f"   Returning {len(result.flights)}/{len(raw_result.flights)} flights")
        return result

    def build_search_url(self, request: SearchRequest) -> str:
        """Generic search URL, also the fallback link for flights without a deep link"""
        return build_search_url(
            segments_for_request(request, upstream_filters=self.upstream_filters),
            request.trip_type,
            request.cabin_class,
            request.passengers,
            currency=request.currency,
            base_url=self.config.search_base_url,
        )

    @staticmethod
    def cache_key(request: SearchRequest) -> str:
        passengers = request.passengers
        return create_cache_key(
            request.origin,
            request.destination,
            request.depart_date,
            request.trip_type,
            request.return_date,
            request.cabin_class,
            passengers.adults,
            passengers.children,
            passengers.infants_in_seat,
            passengers.infants_on_lap,
            request.currency or DEFAULT_CURRENCY,
        )

    async def _get_raw_result(self, request: SearchRequest) -> SearchResult:
        request_id = f"{request.origin}-{request.destination}-{request.depart_date}"
        key = self.cache_key(request)

        cached = await self.cache.get(key)
        if cached is not None:
            logger.info(f"📦 [{request_id}] Cache hit, using cached results")
            return cached

        logger.info(f"🔍 [{request_id}] Fetching from Google Flights")
        await self.rate_limiter.acquire()

        url = self.build_search_url(request)
        logger.debug(f"   URL: {url[:100]}...")

        start_time = time.time()
        if self.config.enable_retry:
            html = await retry_with_backoff(
                self._fetch_html, url, policy=self.config.retry_policy
            )
        else:
            html = await self._fetch_html(url)
        logger.debug(f"   Received {len(html)} bytes in {time.time() - start_time:.2f}s")

        result = self.extractor.extract(html)
        logger.success(f"✅ [{request_id}] Extracted {len(result.flights)} raw flight entries")
        if result.current_price:
            logger.info(f"   Price indicator: {result.current_price.value}")

        await self.cache.set(key, result)
        return result

    async def _fetch_html(self, url: str) -> str:
        """Single fetch attempt, transport failures mapped onto the error taxonomy"""
        try:
            return await self.transport.get(url, dict(REQUEST_HEADERS))
        except ScraperError:
            raise
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise ScrapeTimeoutError(f"fetching {url}") from e
        except Exception as e:
            raise NavigationFailedError(url, str(e) or type(e).__name__) from e
