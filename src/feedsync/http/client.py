"""HTTP client with retry support.

This is the fetch primitive used by the fetch coordinator: it turns a
feed URL into the raw response bytes, or raises.

Example:
    >>> from feedsync.http import HttpClient
    >>>
    >>> async with HttpClient(timeout=10.0) as client:
    ...     data = await client.get_bytes("https://example.com/rss.xml")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from feedsync.core.exceptions import FeedError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (500, 502, 503, 504)


class HttpClientError(FeedError):
    """Transport failure or non-2xx response."""


class HttpClient:
    """Async HTTP client that fetches feed documents.

    Timeouts, transport errors and 5xx responses are retried with
    exponential backoff. Any other non-2xx status fails at once.
    """

    def __init__(
        self,
        user_agent: str = "feedsync/0.1.0",
        timeout: float = 30.0,
        max_retries: int = 2,
        backoff: float = 1.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Configure the client. No connection is opened until first use.

        Args:
            user_agent: Sent with every request
            timeout: Per-request timeout in seconds
            max_retries: Extra attempts after the first one
            backoff: First retry delay in seconds, doubled each time
            headers: Merged over the default headers
            transport: httpx transport override, e.g. ``httpx.MockTransport``
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self.headers = {
            "User-Agent": user_agent,
            "Accept": "application/rss+xml, application/xml;q=0.9, */*;q=0.8",
        }
        self.headers.update(headers or {})
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _pool(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpClient:
        self._pool()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """GET ``url``, retrying transient failures.

        Raises:
            HttpClientError: On a non-retryable status or once retries run out.
        """
        attempt = 0
        while True:
            try:
                response = await self._pool().get(url, **kwargs)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                error = HttpClientError(f"HTTP {status}", source=url, cause=e)
                transient = status in RETRYABLE_STATUS
            except httpx.TimeoutException as e:
                error = HttpClientError(f"Request timeout: {e!r}", source=url, cause=e)
                transient = True
            except httpx.RequestError as e:
                error = HttpClientError(f"Request failed: {e!r}", source=url, cause=e)
                transient = True

            if not transient or attempt >= self.max_retries:
                raise error from error.cause
            delay = self.backoff * 2**attempt
            logger.debug("Retrying %s in %.1fs: %s", url, delay, error)
            await asyncio.sleep(delay)
            attempt += 1

    async def get_bytes(self, url: str, **kwargs: Any) -> bytes:
        """Fetch ``url`` and return the raw body."""
        response = await self.get(url, **kwargs)
        return response.content


__all__ = [
    "HttpClient",
    "HttpClientError",
]
