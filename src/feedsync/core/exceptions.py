"""Custom exceptions.

FeedSync uses a small hierarchy of exceptions mirroring its error taxonomy:

- `FeedError`: one source failed to fetch or parse (recovered by omission)
- `StorageError`: the store failed to open, write or read
- `ConfigurationError`: settings are invalid

Example:
    >>> from feedsync.core.exceptions import FeedSyncError, StorageError
    >>> isinstance(StorageError("db error"), FeedSyncError)
    True
"""

from __future__ import annotations


class FeedSyncError(Exception):
    """Base exception for FeedSync."""


class FeedError(FeedSyncError):
    """Fetching or parsing a single feed source failed.

    Example:
        >>> from feedsync.core.exceptions import FeedError
        >>> err = FeedError("Connection failed", source="https://example.com/rss")
        >>> err.source
        'https://example.com/rss'
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.cause = cause


class StorageError(FeedSyncError):
    """Storage operation failed.

    Example:
        >>> from feedsync.core.exceptions import StorageError
        >>> raise StorageError("connection lost")  # doctest: +IGNORE_EXCEPTION_DETAIL
        Traceback (most recent call last):
        StorageError: connection lost
    """


class ConfigurationError(FeedSyncError):
    """Configuration is invalid."""
