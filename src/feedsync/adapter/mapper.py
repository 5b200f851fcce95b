"""Map a parsed feed document onto the domain model.

Example:
    >>> from feedsync.adapter.mapper import map_channel
    >>> from feedsync.models.document import ParsedFeedDocument, ParsedItem
    >>> doc = ParsedFeedDocument(
    ...     title="News",
    ...     items=[
    ...         ParsedItem(
    ...             guid="a-1",
    ...             title="Hello",
    ...             link="https://example.com/a-1",
    ...             pub_date="Thu, 01 Jan 2026 12:00:00 GMT",
    ...         ),
    ...         ParsedItem(title="No guid", link="https://example.com/x"),
    ...     ],
    ... )
    >>> channel = map_channel("https://example.com/rss", doc)
    >>> [e.id for e in channel.entries]
    ['a-1']
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from feedsync.models.channel import Channel, Entry
from feedsync.models.document import ParsedFeedDocument, ParsedItem

logger = logging.getLogger(__name__)


def parse_pub_date(value: str | None) -> datetime | None:
    """Parse an RFC 2822 date into an aware UTC datetime.

    ``-0000`` (zone unknown) yields a naive value from the stdlib; it is
    read as UTC.

    Example:
        >>> parse_pub_date("Fri, 02 Jan 2026 09:30:00 +0100").isoformat()
        '2026-01-02T08:30:00+00:00'
        >>> parse_pub_date("yesterday") is None
        True
    """
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (TypeError, ValueError, IndexError, OverflowError):
        # Out-of-range years overflow when shifted to UTC.
        return None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def map_entry(channel_id: str, item: ParsedItem) -> Entry | None:
    """Build an Entry, or None if a required field is missing or invalid."""
    guid = _clean(item.guid)
    title = _clean(item.title)
    link = _clean(item.link)
    published = parse_pub_date(_clean(item.pub_date))
    if not (guid and title and link and published):
        return None
    return Entry(
        id=guid,
        channel_id=channel_id,
        title=title,
        link=link,
        summary=item.description,
        published=published,
    )


def map_channel(source_url: str, document: ParsedFeedDocument) -> Channel:
    """Convert a parsed document fetched from ``source_url`` into a Channel.

    Items lacking a guid, title, link or a parseable publish date are
    dropped; the rest of the channel is kept.
    """
    entries: list[Entry] = []
    for item in document.items:
        entry = map_entry(source_url, item)
        if entry is None:
            logger.debug("Dropped item %r from %s", item.guid or item.title, source_url)
            continue
        entries.append(entry)

    return Channel(
        id=source_url,
        title=document.title or "",
        url=source_url,
        entries=tuple(entries),
    )
