"""Shared fixtures."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterator

import pytest

from feedsync.storage.sqlite import SQLiteStorage


@pytest.fixture
async def storage() -> AsyncIterator[SQLiteStorage]:
    """Fresh in-memory storage, initialized."""
    store = SQLiteStorage(":memory:")
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def rss_bytes() -> bytes:
    """RSS 2.0 feed with three valid items and one without a guid."""
    return b"""<?xml version="1.0" encoding="UTF-8"?>
    <rss version="2.0">
        <channel>
            <title>Test Feed</title>
            <link>https://example.com</link>
            <description>A test feed</description>
            <item>
                <title>First Article</title>
                <link>https://example.com/article/1</link>
                <guid>article-001</guid>
                <pubDate>Thu, 01 Jan 2026 12:00:00 GMT</pubDate>
                <description>First article description</description>
            </item>
            <item>
                <title>Second Article</title>
                <link>https://example.com/article/2</link>
                <guid isPermaLink="false">article-002</guid>
                <pubDate>Fri, 02 Jan 2026 12:00:00 GMT</pubDate>
            </item>
            <item>
                <title>Third Article</title>
                <link>https://example.com/article/3</link>
                <guid>article-003</guid>
                <pubDate>Sat, 03 Jan 2026 08:00:00 +0100</pubDate>
                <description>Third</description>
            </item>
            <item>
                <title>No Guid</title>
                <link>https://example.com/article/4</link>
                <pubDate>Sun, 04 Jan 2026 12:00:00 GMT</pubDate>
            </item>
        </channel>
    </rss>"""


@pytest.fixture(autouse=True)
def reset_feedsync_logger() -> Iterator[None]:
    """Undo configure_logging() so caplog keeps seeing feedsync records."""
    logger = logging.getLogger("feedsync")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
