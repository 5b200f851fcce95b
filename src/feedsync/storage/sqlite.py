"""SQLite storage backend - durable channel and entry store.

Two keyed tables hold channels and entries. Every batch from a fetch
cycle is written in one transaction, so readers see either the state
before the batch or after it.

Example:
    >>> from feedsync.storage.sqlite import SQLiteStorage
    >>>
    >>> storage = SQLiteStorage("rss.db")
    >>> await storage.initialize()
    >>> await storage.upsert_batch(channels)
    >>> page = await storage.page_entries(offset=0, limit=50)
    >>>
    >>> # Or use in-memory for testing
    >>> storage = SQLiteStorage(":memory:")
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from feedsync.core.exceptions import StorageError
from feedsync.models.channel import Channel, Entry

logger = logging.getLogger(__name__)


def encode_timestamp(value: datetime) -> str:
    """Canonical text form of a timestamp.

    Always UTC with microseconds and a ``+00:00`` offset, so string
    order equals time order.

    Example:
        >>> from datetime import datetime, timezone
        >>> encode_timestamp(datetime(2026, 1, 1, 12, tzinfo=timezone.utc))
        '2026-01-01T12:00:00.000000+00:00'
    """
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def decode_timestamp(value: str) -> datetime:
    """Inverse of `encode_timestamp`.

    Raises:
        ValueError: If the text is not an offset-aware ISO-8601 timestamp.
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp without offset: {value!r}")
    return parsed.astimezone(UTC)


class SQLiteStorage:
    """SQLite storage backend with auto-schema creation.

    Args:
        path: Database file path, or ":memory:" for in-memory.
        timeout: Lock timeout in seconds (default 30).

    Example:
        >>> storage = SQLiteStorage(":memory:")
        >>> await storage.initialize()  # Auto-creates tables
        >>> await storage.count_entries()
        0
    """

    SCHEMA_VERSION = 1

    def __init__(
        self,
        path: str | Path = ":memory:",
        *,
        timeout: float = 30.0,
    ) -> None:
        self._path = str(path)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_initialized(self) -> bool:
        return self._conn is not None

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        """Get a cursor with automatic commit/rollback.

        sqlite3 errors are re-raised as StorageError after the rollback.
        """
        if not self._conn:
            raise StorageError("Storage not initialized. Call initialize() first.")
        cursor = self._conn.cursor()
        try:
            yield cursor
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            self._conn.rollback()
            raise
        finally:
            cursor.close()

    async def initialize(self) -> None:
        """Open the database and create the schema.

        Safe to call multiple times (idempotent).

        Raises:
            StorageError: If the database cannot be opened or created.
        """
        if self._conn is not None:
            return
        try:
            conn = sqlite3.connect(self._path, timeout=self._timeout)
            conn.row_factory = sqlite3.Row
            # Entries are re-fetchable, so relaxed sync is acceptable
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA foreign_keys=ON")
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self._path}: {e}") from e

        self._conn = conn
        try:
            self._create_schema()
        except StorageError:
            conn.close()
            self._conn = None
            raise
        logger.debug("Opened %s (schema v%d)", self._path, self.SCHEMA_VERSION)

    def _create_schema(self) -> None:
        """Create tables and indexes."""
        with self._cursor() as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS channel (
                    id    TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    url   TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS entry (
                    id        TEXT PRIMARY KEY,
                    channel   TEXT NOT NULL REFERENCES channel(id),
                    title     TEXT NOT NULL,
                    link      TEXT NOT NULL,
                    summary   TEXT,
                    published TEXT NOT NULL  -- canonical UTC ISO-8601
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS _feedsync_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            cursor.execute(
                "INSERT OR REPLACE INTO _feedsync_meta (key, value) VALUES ('schema_version', ?)",
                (str(self.SCHEMA_VERSION),),
            )

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_entry_published ON entry(published)")
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_entry_channel_published ON entry(channel, published)"
            )

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    async def __aenter__(self) -> SQLiteStorage:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # --- Writes ---

    async def upsert_batch(self, channels: Iterable[Channel]) -> int:
        """Insert or update channels and their entries in one transaction.

        Existing entries of a channel that are absent from this batch are
        left untouched.

        Returns:
            Number of entry rows written.

        Raises:
            StorageError: If any write fails; nothing from the batch is kept.
        """
        written = 0
        with self._cursor() as cursor:
            for channel in channels:
                cursor.execute(
                    """
                    INSERT INTO channel (id, title, url) VALUES (?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        title = excluded.title,
                        url = excluded.url
                    """,
                    (channel.id, channel.title, channel.url),
                )
                for entry in channel.entries:
                    cursor.execute(
                        """
                        INSERT INTO entry (id, channel, title, link, summary, published)
                        VALUES (?, ?, ?, ?, ?, ?)
                        ON CONFLICT(id) DO UPDATE SET
                            channel = excluded.channel,
                            title = excluded.title,
                            link = excluded.link,
                            summary = excluded.summary,
                            published = excluded.published
                        """,
                        (
                            entry.id,
                            channel.id,
                            entry.title,
                            entry.link,
                            entry.summary,
                            encode_timestamp(entry.published),
                        ),
                    )
                    written += 1
        return written

    # --- Reads ---

    async def list_channels(self) -> list[Channel]:
        """All channels ordered by title, then id. Entries are not loaded."""
        with self._cursor() as cursor:
            cursor.execute("SELECT id, title, url FROM channel ORDER BY title ASC, id ASC")
            return [
                Channel(id=row["id"], title=row["title"], url=row["url"])
                for row in cursor.fetchall()
            ]

    async def page_entries(
        self,
        channel_id: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Entry]:
        """One page of entries, most recently published first.

        Args:
            channel_id: Restrict to one channel; None spans all channels.
            offset: Rows to skip (>= 0).
            limit: Maximum rows to return (>= 1).

        Raises:
            ValueError: If offset or limit is out of range.
            StorageError: If the read fails or any row is malformed.
        """
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")

        sql = "SELECT id, channel, title, link, summary, published FROM entry"
        params: list[Any] = []
        if channel_id is not None:
            sql += " WHERE channel = ?"
            params.append(channel_id)
        sql += " ORDER BY published DESC, id ASC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        with self._cursor() as cursor:
            cursor.execute(sql, params)
            return [self._row_to_entry(row) for row in cursor.fetchall()]

    async def count_entries(self, channel_id: str | None = None) -> int:
        """Number of stored entries, overall or for one channel."""
        with self._cursor() as cursor:
            if channel_id is None:
                cursor.execute("SELECT COUNT(*) FROM entry")
            else:
                cursor.execute("SELECT COUNT(*) FROM entry WHERE channel = ?", (channel_id,))
            return cursor.fetchone()[0]

    async def get_stats(self) -> dict[str, Any]:
        """Get storage statistics."""
        with self._cursor() as cursor:
            cursor.execute("SELECT COUNT(*) FROM channel")
            channel_count = cursor.fetchone()[0]

            cursor.execute("SELECT COUNT(*) FROM entry")
            entry_count = cursor.fetchone()[0]

            cursor.execute("SELECT channel, COUNT(*) FROM entry GROUP BY channel")
            by_channel = {row[0]: row[1] for row in cursor.fetchall()}

        return {
            "channels": channel_count,
            "entries": entry_count,
            "by_channel": by_channel,
            "path": self._path,
        }

    # --- Helper Methods ---

    def _row_to_entry(self, row: sqlite3.Row) -> Entry:
        """Convert a database row to Entry.

        Raises:
            StorageError: If the stored timestamp or fields cannot be decoded.
        """
        try:
            return Entry(
                id=row["id"],
                channel_id=row["channel"],
                title=row["title"],
                link=row["link"],
                summary=row["summary"],
                published=decode_timestamp(row["published"]),
            )
        except (TypeError, ValueError) as e:
            raise StorageError(f"Malformed entry row {row['id']!r}: {e}") from e
