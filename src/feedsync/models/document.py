"""Generic parsed feed document.

This is the shape produced by the parse primitive and consumed by the
feed mapper. All fields hold raw text exactly as found in the feed;
validation happens in the mapper.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ParsedItem:
    """One ``<item>`` of a feed document."""

    guid: str | None = None
    title: str | None = None
    link: str | None = None
    description: str | None = None
    pub_date: str | None = None


@dataclass(frozen=True)
class ParsedFeedDocument:
    """A parsed feed: channel title plus its items in document order."""

    title: str | None = None
    items: list[ParsedItem] = field(default_factory=list)
