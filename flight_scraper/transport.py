"""HTTP transports that fetch the results page"""

import asyncio
from typing import Dict, Optional, Protocol

import httpx
from curl_cffi import CurlError
from curl_cffi.requests import AsyncSession
from loguru import logger

from .config import (
    BODY_READ_TIMEOUT,
    CONNECT_TIMEOUT,
    DEFAULT_IMPERSONATE,
    RESPONSE_TIMEOUT,
)
from .exceptions import NavigationFailedError, ScrapeTimeoutError

CURLE_OPERATION_TIMEDOUT = 28


class HttpTransport(Protocol):
    """GET a URL and return the body text; raise ScraperError subclasses on failure"""

    async def get(self, url: str, headers: Dict[str, str]) -> str:
        ...

    async def aclose(self) -> None:
        ...


class HttpxTransport:
    """
    httpx-based transport.

    httpx enforces the connect deadline. The response deadline bounds
    everything up to the status line and headers, and a second
    ``asyncio.wait_for`` bounds the body read.
    """

    def __init__(
        self,
        connect_timeout: float = CONNECT_TIMEOUT,
        response_timeout: float = RESPONSE_TIMEOUT,
        body_timeout: float = BODY_READ_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.connect_timeout = connect_timeout
        self.response_timeout = response_timeout
        self.body_timeout = body_timeout
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(response_timeout, connect=connect_timeout),
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def get(self, url: str, headers: Dict[str, str]) -> str:
        request = self.client.build_request("GET", url, headers=headers)

        try:
            response = await asyncio.wait_for(
                self.client.send(request, stream=True), self.response_timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise ScrapeTimeoutError(f"waiting for response from {url}") from e
        except httpx.HTTPError as e:
            raise NavigationFailedError(url, str(e) or type(e).__name__) from e

        try:
            logger.debug(f"   ← Response {response.status_code}")
            if response.status_code >= 400:
                raise NavigationFailedError(
                    url, f"HTTP {response.status_code}: {response.reason_phrase}"
                )

            try:
                await asyncio.wait_for(response.aread(), self.body_timeout)
            except (asyncio.TimeoutError, httpx.TimeoutException) as e:
                raise ScrapeTimeoutError("reading response body") from e
            except httpx.HTTPError as e:
                raise NavigationFailedError(url, f"Failed to read response: {e}") from e

            return response.text
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


class CurlTransport:
    """
    curl_cffi transport impersonating a real browser TLS fingerprint.
    A fresh session is opened per request.
    """

    def __init__(
        self,
        impersonate: str = DEFAULT_IMPERSONATE,
        connect_timeout: float = CONNECT_TIMEOUT,
        response_timeout: float = RESPONSE_TIMEOUT,
        body_timeout: float = BODY_READ_TIMEOUT,
    ):
        self.impersonate = impersonate
        self.connect_timeout = connect_timeout
        self.response_timeout = response_timeout
        self.body_timeout = body_timeout

        logger.info(f"curl_cffi transport initialized (impersonate: {impersonate})")

    async def get(self, url: str, headers: Dict[str, str]) -> str:
        async with AsyncSession(impersonate=self.impersonate) as session:
            try:
                response = await asyncio.wait_for(
                    session.get(
                        url,
                        headers=headers,
                        timeout=(self.connect_timeout, self.body_timeout),
                    ),
                    self.response_timeout,
                )
            except asyncio.TimeoutError as e:
                raise ScrapeTimeoutError(f"waiting for response from {url}") from e
            except CurlError as e:
                if getattr(e, "code", None) == CURLE_OPERATION_TIMEDOUT:
                    raise ScrapeTimeoutError(f"fetching {url}") from e
                raise NavigationFailedError(url, str(e)) from e

        logger.debug(f"   ← Response {response.status_code}")
        if response.status_code >= 400:
            raise NavigationFailedError(url, f"HTTP {response.status_code}")

        return response.text

    async def aclose(self) -> None:
        pass
