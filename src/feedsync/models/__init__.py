"""FeedSync domain models."""

from feedsync.models.base import FeedSyncModel
from feedsync.models.channel import Channel, Entry
from feedsync.models.document import ParsedFeedDocument, ParsedItem

__all__ = [
    "Channel",
    "Entry",
    "FeedSyncModel",
    "ParsedFeedDocument",
    "ParsedItem",
]
