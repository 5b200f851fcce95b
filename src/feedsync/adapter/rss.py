"""RSS 2.0 parse primitive.

Turns raw feed bytes into a `ParsedFeedDocument` without judging the
content: every field is kept as stripped raw text, or None when the
element is absent or empty. Deciding which items are usable is the
mapper's job.

Example:
    >>> from feedsync.adapter.rss import parse_feed
    >>> doc = parse_feed(b"<rss><channel><title>T</title></channel></rss>")
    >>> doc.title
    'T'
    >>> doc.items
    []
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from feedsync.core.exceptions import FeedError
from feedsync.models.document import ParsedFeedDocument, ParsedItem


def _text(parent: ET.Element, tag: str) -> str | None:
    elem = parent.find(tag)
    if elem is None or elem.text is None:
        return None
    return elem.text.strip() or None


def _parse_item(item: ET.Element) -> ParsedItem:
    """Parse a single RSS item element."""
    return ParsedItem(
        guid=_text(item, "guid"),
        title=_text(item, "title"),
        link=_text(item, "link"),
        description=_text(item, "description"),
        pub_date=_text(item, "pubDate"),
    )


def parse_feed(data: bytes | str) -> ParsedFeedDocument:
    """Parse an RSS 2.0 document.

    Args:
        data: Raw feed body. The XML declaration decides the encoding.

    Returns:
        The channel title and its items in document order.

    Raises:
        FeedError: If the body is not well-formed XML or has no channel.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise FeedError(f"Failed to parse feed XML: {e}", cause=e) from e

    channel = root if root.tag == "channel" else root.find("channel")
    if channel is None:
        raise FeedError(f"Not an RSS feed: root element <{root.tag}> has no <channel>")

    return ParsedFeedDocument(
        title=_text(channel, "title"),
        items=[_parse_item(item) for item in channel.findall("item")],
    )
