"""Feed parsing and mapping."""

from feedsync.adapter.mapper import map_channel, map_entry, parse_pub_date
from feedsync.adapter.rss import parse_feed

__all__ = [
    "map_channel",
    "map_entry",
    "parse_feed",
    "parse_pub_date",
]
