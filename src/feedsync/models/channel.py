"""Channel and Entry models - the core data units.

- `Entry`: one article/post, addressable by its feed-provided guid
- `Channel`: one configured feed source, identified by its URL

Example:
    >>> from datetime import datetime, timezone
    >>> from feedsync.models.channel import Channel, Entry
    >>> entry = Entry(
    ...     id="article-1",
    ...     channel_id="https://example.com/rss.xml",
    ...     title="Hello",
    ...     link="https://example.com/hello",
    ...     published=datetime(2026, 1, 1, 12, tzinfo=timezone.utc),
    ... )
    >>> channel = Channel(
    ...     id="https://example.com/rss.xml",
    ...     title="Example",
    ...     url="https://example.com/rss.xml",
    ...     entries=(entry,),
    ... )
    >>> len(channel.entries)
    1
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import Field, field_validator

from feedsync.models.base import FeedSyncModel


class Entry(FeedSyncModel):
    """A single feed item.

    ``published`` is always timezone-aware and normalized to UTC.

    Example:
        >>> from datetime import datetime, timedelta, timezone
        >>> from feedsync.models.channel import Entry
        >>> e = Entry(
        ...     id="a",
        ...     channel_id="c",
        ...     title="t",
        ...     link="l",
        ...     published=datetime(2026, 1, 1, 14, tzinfo=timezone(timedelta(hours=2))),
        ... )
        >>> e.published.isoformat()
        '2026-01-01T12:00:00+00:00'
    """

    id: str = Field(..., min_length=1, description="Feed-provided guid, unique store-wide")
    channel_id: str = Field(..., min_length=1, description="Owning channel id (source URL)")
    title: str = Field(..., min_length=1)
    link: str = Field(..., min_length=1)
    summary: str | None = Field(default=None, description="Item description, if any")
    published: datetime = Field(..., description="Publication time (UTC)")

    @field_validator("published")
    @classmethod
    def normalize_published(cls, v: datetime) -> datetime:
        """Reject naive timestamps and convert aware ones to UTC."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("published must be timezone-aware")
        return v.astimezone(UTC)


class Channel(FeedSyncModel):
    """A feed source and, at fetch time, its entries.

    Channels read back from storage carry no entries.
    """

    id: str = Field(..., min_length=1, description="Identity, equal to the source URL")
    title: str = Field(default="")
    url: str = Field(..., min_length=1, description="Source endpoint")
    entries: tuple[Entry, ...] = Field(default=())
