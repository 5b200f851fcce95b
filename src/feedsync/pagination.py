"""Offset-based pagination over stored entries.

A `PageView` is the window of entries currently shown for one view:
either all channels (``channel_id=None``) or a single channel. Views
are immutable; every operation returns a new one built from fresh
storage reads.

Example:
    >>> paginator = Paginator(storage, page_size=50)
    >>> view = await paginator.initial_page(None)
    >>> while not view.all_loaded:
    ...     view = await paginator.load_view_more(view)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from feedsync.core.config import PAGE_SIZE
from feedsync.models.channel import Entry


class EntryReader(Protocol):
    """The storage reads pagination needs."""

    async def page_entries(
        self,
        channel_id: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Entry]: ...

    async def count_entries(self, channel_id: str | None = None) -> int: ...


@dataclass(frozen=True)
class PageView:
    """Loaded window of one view.

    Attributes:
        channel_id: Channel the view is scoped to, None for all channels.
        entries: Loaded entries, most recent first.
        offset: Offset of the last page loaded.
        all_loaded: True when no further page would return new entries.
    """

    channel_id: str | None
    entries: tuple[Entry, ...] = field(default=())
    offset: int = 0
    all_loaded: bool = False

    @property
    def loaded_count(self) -> int:
        return len(self.entries)


class Paginator:
    """Compute offset/limit windows and the "all loaded" flag.

    Args:
        storage: Anything with ``page_entries`` and ``count_entries``.
        page_size: Entries per page.

    Storage errors are not caught here; callers decide how to degrade.
    """

    def __init__(self, storage: EntryReader, page_size: int = PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._storage = storage
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    async def initial_page(self, channel_id: str | None) -> PageView:
        """First page of a view."""
        entries = await self._storage.page_entries(channel_id, 0, self._page_size)
        return PageView(
            channel_id=channel_id,
            entries=tuple(entries),
            offset=0,
            all_loaded=len(entries) < self._page_size,
        )

    async def load_more(
        self,
        channel_id: str | None,
        current_offset: int,
        current_entries: Sequence[Entry],
    ) -> PageView:
        """Append the page after ``current_offset``.

        An empty page marks the view exhausted and leaves offset and
        entries as they were.
        """
        next_offset = current_offset + self._page_size
        page = await self._storage.page_entries(channel_id, next_offset, self._page_size)
        if not page:
            return PageView(
                channel_id=channel_id,
                entries=tuple(current_entries),
                offset=current_offset,
                all_loaded=True,
            )
        return PageView(
            channel_id=channel_id,
            entries=(*current_entries, *page),
            offset=next_offset,
            all_loaded=len(page) < self._page_size,
        )

    async def load_view_more(self, view: PageView) -> PageView:
        """`load_more` for an existing view; exhausted views are returned as is."""
        if view.all_loaded:
            return view
        return await self.load_more(view.channel_id, view.offset, view.entries)

    async def reconcile_after_sync(
        self,
        channel_id: str | None,
        previous_loaded_count: int,
    ) -> PageView:
        """Re-read the visible window after new entries were stored.

        At least one page is read. The returned offset is one page short
        of the window end, so the next `load_more` continues right after
        the window.
        """
        window = max(previous_loaded_count, self._page_size)
        entries = await self._storage.page_entries(channel_id, 0, window)
        total = await self._storage.count_entries(channel_id)
        offset = window - self._page_size
        return PageView(
            channel_id=channel_id,
            entries=tuple(entries),
            offset=offset,
            all_loaded=len(entries) >= total,
        )
