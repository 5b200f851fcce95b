"""FeedSync - main orchestrator.

Composes the sync scheduler with storage and pagination: delivered
batches are merged into the store, then the active view is refreshed
from storage.

Example:
    >>> from feedsync.core.config import get_settings
    >>> from feedsync.core.feedsync import FeedSync
    >>> async with FeedSync.create(get_settings()) as app:
    ...     await app.run()  # until cancelled
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from feedsync.core.config import PAGE_SIZE
from feedsync.core.coordinator import FetchCoordinator
from feedsync.core.exceptions import StorageError
from feedsync.http.client import HttpClient
from feedsync.pagination import PageView, Paginator
from feedsync.scheduler.sync import SyncScheduler
from feedsync.storage.sqlite import SQLiteStorage

if TYPE_CHECKING:
    from feedsync.core.config import Settings
    from feedsync.models.channel import Channel

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Outcome of merging one batch.

    Example:
        >>> from feedsync.core.feedsync import MergeResult
        >>> MergeResult(channels=3, entries=42).ok
        True
    """

    channels: int = 0
    entries: int = 0
    new_channels: list[str] = field(default_factory=list)
    error: str | None = None
    merged_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def ok(self) -> bool:
        return self.error is None


MergeCallback = Callable[[MergeResult], None]


class FeedSync:
    """Main orchestrator.

    Args:
        storage: Store for channels and entries.
        scheduler: Source of fetched batches.
        coordinator: Used for one-off syncs outside the scheduler.
        page_size: Entries per page in views.
        http_client: Closed together with the orchestrator, if given.
    """

    def __init__(
        self,
        storage: SQLiteStorage,
        scheduler: SyncScheduler,
        coordinator: FetchCoordinator,
        *,
        page_size: int = PAGE_SIZE,
        http_client: HttpClient | None = None,
    ) -> None:
        self._storage = storage
        self._scheduler = scheduler
        self._coordinator = coordinator
        self._paginator = Paginator(storage, page_size)
        self._http_client = http_client
        self._channels: list[Channel] = []
        self._view = PageView(channel_id=None, all_loaded=True)
        self._syncing = False

    @classmethod
    def create(cls, settings: Settings) -> FeedSync:
        """Build the full object graph from settings. Nothing is opened yet."""
        client = HttpClient(
            user_agent=settings.user_agent,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )
        coordinator = FetchCoordinator(client.get_bytes, timeout=settings.fetch_timeout)
        scheduler = SyncScheduler(
            coordinator,
            settings.sources,
            interval=settings.sync_interval,
            warmup=settings.warmup_delay,
        )
        return cls(
            SQLiteStorage(settings.database_path),
            scheduler,
            coordinator,
            page_size=settings.page_size,
            http_client=client,
        )

    @property
    def storage(self) -> SQLiteStorage:
        return self._storage

    @property
    def scheduler(self) -> SyncScheduler:
        return self._scheduler

    @property
    def coordinator(self) -> FetchCoordinator:
        return self._coordinator

    @property
    def http_client(self) -> HttpClient | None:
        return self._http_client

    @property
    def paginator(self) -> Paginator:
        return self._paginator

    @property
    def channels(self) -> list[Channel]:
        """Stored channels, ordered by title."""
        return list(self._channels)

    @property
    def view(self) -> PageView:
        """The active view."""
        return self._view

    @property
    def syncing(self) -> bool:
        """True from a sync request until the next batch is merged."""
        return self._syncing

    async def initialize(self) -> None:
        """Open storage and load the global view.

        Raises:
            StorageError: If storage cannot be opened. This is fatal.
        """
        await self._storage.initialize()
        await self._refresh_channels()
        await self.open_view(None)

    async def close(self) -> None:
        await self._storage.close()
        if self._http_client is not None:
            await self._http_client.close()

    async def __aenter__(self) -> FeedSync:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # --- Views ---

    async def open_view(self, channel_id: str | None) -> PageView:
        """Switch to the global view (None) or one channel's view."""
        try:
            self._view = await self._paginator.initial_page(channel_id)
        except StorageError as e:
            logger.error("Cannot load view %s: %s", channel_id or "<all>", e)
            self._view = PageView(channel_id=channel_id, all_loaded=True)
        return self._view

    async def load_more(self) -> PageView:
        """Load the next page of the active view, if any."""
        try:
            self._view = await self._paginator.load_view_more(self._view)
        except StorageError as e:
            logger.error("Cannot load more entries: %s", e)
        return self._view

    # --- Sync ---

    def request_sync(self) -> None:
        """Ask the scheduler for an immediate sync."""
        self._syncing = True
        self._scheduler.request_sync()

    async def merge(self, batch: list[Channel]) -> MergeResult:
        """Store a batch and refresh channels and the active view.

        A failed write drops this batch; a failed read keeps the previous
        view. Neither stops the caller.
        """
        self._syncing = False
        result = MergeResult(channels=len(batch))
        try:
            result.entries = await self._storage.upsert_batch(batch)
        except StorageError as e:
            logger.error("Dropping batch of %d channels: %s", len(batch), e)
            result.error = str(e)
            return result

        known = {c.id for c in self._channels}
        await self._refresh_channels()
        result.new_channels = [c.id for c in self._channels if c.id not in known]

        previous = self._view.offset + self._paginator.page_size
        try:
            self._view = await self._paginator.reconcile_after_sync(
                self._view.channel_id, previous
            )
        except StorageError as e:
            logger.error("Keeping previous view after sync: %s", e)

        logger.info(
            "Merged %d channels, %d entries (%d new channels)",
            result.channels,
            result.entries,
            len(result.new_channels),
        )
        return result

    async def sync_now(self) -> MergeResult:
        """Fetch all sources once, outside the scheduler, and merge."""
        batch = await self._coordinator.fetch_all(self._scheduler.sources)
        if not batch:
            return MergeResult(error="no source could be fetched")
        return await self.merge(batch)

    async def consume(self, on_merge: MergeCallback | None = None) -> None:
        """Merge delivered batches forever."""
        async for batch in self._scheduler.batches():
            result = await self.merge(batch)
            if on_merge is not None:
                on_merge(result)

    async def run(self, on_merge: MergeCallback | None = None) -> None:
        """Run the scheduler and the consumer until cancelled."""
        scheduler_task = asyncio.create_task(self._scheduler.run(), name="feedsync-scheduler")
        try:
            await self.consume(on_merge)
        finally:
            scheduler_task.cancel()
            await asyncio.gather(scheduler_task, return_exceptions=True)

    async def _refresh_channels(self) -> None:
        try:
            self._channels = await self._storage.list_channels()
        except StorageError as e:
            logger.error("Cannot list channels: %s", e)
