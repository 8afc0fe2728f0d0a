"""Configuration constants for the flight scraper"""

from dataclasses import dataclass, field

from .models import RetryPolicy

# Upstream endpoints
BASE_URL = "https://www.google.com"
SEARCH_BASE_URL = f"{BASE_URL}/travel/flights"
BOOKING_BASE_URL = f"{BASE_URL}/travel/flights/booking"

# Opaque query value the search page expects alongside tfs
SEARCH_TFU = "EgQIABABIgA"
DEFAULT_LANGUAGE = "en"
DEFAULT_CURRENCY = "USD"

# Request headers (realistic desktop Chrome)
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)
CONSENT_COOKIE = "CONSENT=YES+cb.20240101-00-p0.en+FX+000"
REQUEST_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Cookie": CONSENT_COOKIE,
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
}

# Timeouts (seconds)
CONNECT_TIMEOUT = 30.0
RESPONSE_TIMEOUT = 30.0
BODY_READ_TIMEOUT = 15.0

# Browser fingerprint used by the curl_cffi transport
DEFAULT_IMPERSONATE = "chrome124"

# Cache defaults
DEFAULT_CACHE_TTL = 15 * 60  # 15 minutes
DEFAULT_CACHE_MAX_SIZE = 100

# Rate limiting defaults (conservative, upstream throttles aggressively)
DEFAULT_MAX_REQUESTS = 10  # per window
DEFAULT_RATE_WINDOW = 60.0  # seconds
DEFAULT_MIN_DELAY = 2.0  # seconds between requests

# Retry configuration
MAX_ATTEMPTS = 3
INITIAL_BACKOFF = 1.0
MAX_BACKOFF = 30.0
BACKOFF_MULTIPLIER = 2.0
JITTER_RANGE = (0.8, 1.2)

DEFAULT_RETRY_POLICY = RetryPolicy(
    max_attempts=MAX_ATTEMPTS,
    initial_delay=INITIAL_BACKOFF,
    max_delay=MAX_BACKOFF,
    backoff_factor=BACKOFF_MULTIPLIER,
)


@dataclass(frozen=True)
class ScraperConfig:
    """
    Which reliability features a FlightScraper runs with.

    ``plain()`` fetches straight through; ``production()`` enables the cache,
    the sliding-window rate limiter and retry with backoff.
    """

    enable_cache: bool = False
    enable_rate_limit: bool = False
    enable_retry: bool = False

    cache_ttl: float = DEFAULT_CACHE_TTL
    cache_max_size: int = DEFAULT_CACHE_MAX_SIZE

    max_requests: int = DEFAULT_MAX_REQUESTS
    rate_window: float = DEFAULT_RATE_WINDOW
    min_delay: float = DEFAULT_MIN_DELAY

    retry_policy: RetryPolicy = field(default_factory=lambda: DEFAULT_RETRY_POLICY)

    connect_timeout: float = CONNECT_TIMEOUT
    response_timeout: float = RESPONSE_TIMEOUT
    body_timeout: float = BODY_READ_TIMEOUT

    search_base_url: str = SEARCH_BASE_URL
    impersonate: str = ""  # non-empty selects the curl_cffi transport

    @classmethod
    def plain(cls) -> "ScraperConfig":
        return cls()

    @classmethod
    def production(cls, **overrides) -> "ScraperConfig":
        """All reliability features on"""
        settings = dict(enable_cache=True, enable_rate_limit=True, enable_retry=True)
        settings.update(overrides)
        return cls(**settings)
