"""Core configuration, errors and orchestration."""

from feedsync.core.config import PAGE_SIZE, Settings, get_settings
from feedsync.core.exceptions import (
    ConfigurationError,
    FeedError,
    FeedSyncError,
    StorageError,
)

__all__ = [
    "PAGE_SIZE",
    "ConfigurationError",
    "FeedError",
    "FeedSyncError",
    "Settings",
    "StorageError",
    "get_settings",
]
