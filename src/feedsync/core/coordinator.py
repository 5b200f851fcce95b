"""Fetch coordinator - one concurrent fetch per source, successes only.

Example:
    >>> from feedsync.core.coordinator import FetchCoordinator
    >>> from feedsync.http import HttpClient
    >>>
    >>> async with HttpClient() as client:
    ...     coordinator = FetchCoordinator(client.get_bytes, timeout=30.0)
    ...     channels = await coordinator.fetch_all(["https://example.com/rss.xml"])
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from feedsync.adapter.mapper import map_channel
from feedsync.adapter.rss import parse_feed
from feedsync.core.exceptions import FeedError
from feedsync.models.channel import Channel
from feedsync.models.document import ParsedFeedDocument

logger = logging.getLogger(__name__)

FetchBytes = Callable[[str], Awaitable[bytes]]
ParseFeed = Callable[[bytes], ParsedFeedDocument]


class FetchCoordinator:
    """Fan out one fetch per source and fan the successes back in.

    A source fails as a whole when the fetch raises or exceeds the
    timeout, when the body does not parse, or when no item survives
    mapping. Failed sources are left out of the result and retried on
    the next cycle; they never fail the batch.

    Args:
        fetch_bytes: Fetch primitive, URL to response body.
        parse: Parse primitive, body to feed document.
        timeout: Deadline in seconds for fetching one source.
    """

    def __init__(
        self,
        fetch_bytes: FetchBytes,
        *,
        parse: ParseFeed = parse_feed,
        timeout: float | None = 30.0,
    ) -> None:
        self._fetch_bytes = fetch_bytes
        self._parse = parse
        self._timeout = timeout

    @property
    def timeout(self) -> float | None:
        return self._timeout

    async def fetch_one(self, url: str) -> Channel:
        """Fetch, parse and map a single source.

        Raises:
            FeedError: If any step fails or the channel has no valid entries.
        """
        try:
            data = await asyncio.wait_for(self._fetch_bytes(url), self._timeout)
        except TimeoutError as e:
            raise FeedError(f"Timed out after {self._timeout}s", source=url, cause=e) from e
        except FeedError:
            raise
        except Exception as e:
            raise FeedError(f"Failed to fetch feed: {e}", source=url, cause=e) from e

        try:
            document = self._parse(data)
        except FeedError as e:
            e.source = url
            raise
        except Exception as e:
            raise FeedError(f"Failed to parse feed: {e}", source=url, cause=e) from e

        channel = map_channel(url, document)
        if not channel.entries:
            raise FeedError(
                f"No valid entries among {len(document.items)} items",
                source=url,
            )
        return channel

    async def fetch_all(self, sources: Iterable[str]) -> list[Channel]:
        """Fetch every source concurrently.

        Returns:
            Channels that were fetched and mapped successfully, in no
            particular order. May be empty.
        """
        urls = list(dict.fromkeys(sources))
        results = await asyncio.gather(
            *(self.fetch_one(url) for url in urls),
            return_exceptions=True,
        )

        channels: list[Channel] = []
        for url, result in zip(urls, results, strict=True):
            if isinstance(result, Channel):
                channels.append(result)
            else:
                logger.warning("Skipping %s: %s", url, result)
        logger.info("Fetched %d of %d sources", len(channels), len(urls))
        return channels
