"""
FeedSync - scheduled RSS ingestion with a durable, paginated store.

FeedSync fetches a fixed set of feeds on an interval (or on demand),
merges their items into SQLite keyed by guid, and serves the stored
items newest-first, one page at a time, for all feeds or a single one.

Quick Start:
    >>> from feedsync import FeedSync, get_settings
    >>> async with FeedSync.create(get_settings()) as app:
    ...     await app.sync_now()
    ...     print([e.title for e in app.view.entries])

Architecture:
    Parsing: parse_feed, map_channel
    Fetching: HttpClient, FetchCoordinator
    Scheduling: SyncScheduler
    Storage: SQLiteStorage
    Pagination: Paginator, PageView
"""

from feedsync.adapter import map_channel, parse_feed
from feedsync.core.config import PAGE_SIZE, Settings, get_settings
from feedsync.core.coordinator import FetchCoordinator
from feedsync.core.exceptions import (
    ConfigurationError,
    FeedError,
    FeedSyncError,
    StorageError,
)
from feedsync.core.feedsync import FeedSync, MergeResult
from feedsync.http import HttpClient, HttpClientError
from feedsync.models import Channel, Entry, ParsedFeedDocument, ParsedItem
from feedsync.pagination import PageView, Paginator
from feedsync.scheduler import SyncScheduler, SyncState, SyncStatus, SyncTrigger
from feedsync.storage import SQLiteStorage

__version__ = "0.1.0"

__all__ = [
    # Models
    "Channel",
    "Entry",
    "ParsedFeedDocument",
    "ParsedItem",
    # Parsing
    "parse_feed",
    "map_channel",
    # Fetching
    "HttpClient",
    "HttpClientError",
    "FetchCoordinator",
    # Scheduling
    "SyncScheduler",
    "SyncState",
    "SyncStatus",
    "SyncTrigger",
    # Storage
    "SQLiteStorage",
    # Pagination
    "PAGE_SIZE",
    "PageView",
    "Paginator",
    # Orchestration
    "FeedSync",
    "MergeResult",
    # Configuration
    "Settings",
    "get_settings",
    # Errors
    "FeedSyncError",
    "FeedError",
    "StorageError",
    "ConfigurationError",
    # Version
    "__version__",
]
