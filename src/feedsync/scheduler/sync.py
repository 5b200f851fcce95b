"""Sync scheduler - drives fetch cycles on a timer or on demand.

One scheduler object owns its timer, its force-refresh slot and its
output queue. It is built once at startup and handed to whatever
consumes its batches.

Example:
    >>> scheduler = SyncScheduler(coordinator, sources, interval=600.0)
    >>> task = asyncio.create_task(scheduler.run())
    >>> scheduler.request_sync()          # out-of-cycle refresh
    >>> async for batch in scheduler.batches():
    ...     await storage.upsert_batch(batch)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from feedsync.core.coordinator import FetchCoordinator
    from feedsync.models.channel import Channel

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    """Scheduler states. There is no error state: failures stay in the coordinator."""

    WARMING_UP = "warming_up"
    IDLE = "idle"
    FETCHING = "fetching"
    DELIVERING = "delivering"


class SyncTrigger(str, Enum):
    """What started a fetch cycle."""

    TIMER = "timer"
    FORCE = "force"


@dataclass
class SyncStatus:
    """Snapshot of scheduler progress.

    Attributes:
        state: Current state.
        cycles: Completed fetch cycles.
        delivered: Batches handed to the consumer.
        last_run: When the last cycle finished (None if never).
        last_trigger: What started the last cycle.
        last_batch_size: Channels in the last batch.
    """

    state: SyncState
    cycles: int = 0
    delivered: int = 0
    last_run: datetime | None = None
    last_trigger: SyncTrigger | None = None
    last_batch_size: int = 0


class SyncScheduler:
    """Fixed-interval scheduler with a coalescing force-refresh signal.

    The timer's first tick fires right after the warm-up delay. A tick
    that comes due while a fetch is running fires once when the fetch
    ends; any further ticks missed in that time are dropped.

    Force requests go into a single-slot flag. However many arrive while
    a fetch is running, they cause one more cycle, not one each.

    Each cycle is started by either the timer or a force request, never
    both. Non-empty batches are put on a bounded queue, so a slow
    consumer holds up the next delivery.

    Args:
        coordinator: Fetches all sources for one cycle.
        sources: Feed URLs.
        interval: Seconds between timer ticks.
        warmup: Seconds to wait before the first cycle.
        queue_size: Undelivered batches held before the scheduler blocks.
    """

    def __init__(
        self,
        coordinator: FetchCoordinator,
        sources: Iterable[str],
        *,
        interval: float = 600.0,
        warmup: float = 2.0,
        queue_size: int = 1,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._coordinator = coordinator
        self._sources = list(sources)
        self._interval = interval
        self._warmup = warmup
        self._force = asyncio.Event()
        self._queue: asyncio.Queue[list[Channel]] = asyncio.Queue(maxsize=queue_size)
        self._status = SyncStatus(state=SyncState.WARMING_UP)

    @property
    def sources(self) -> list[str]:
        return list(self._sources)

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def cycles(self) -> int:
        """Completed fetch cycles."""
        return self._status.cycles

    @property
    def force_pending(self) -> bool:
        return self._force.is_set()

    def request_sync(self) -> None:
        """Ask for an immediate fetch cycle.

        Requests made before the pending one is picked up are merged
        into it.
        """
        self._force.set()

    async def run(self) -> None:
        """Run forever. Cancel the task to stop."""
        loop = asyncio.get_running_loop()
        await asyncio.sleep(self._warmup)
        self._status.state = SyncState.IDLE

        deadline = loop.time()
        while True:
            trigger = await self._wait_for_trigger(deadline)
            if trigger is SyncTrigger.TIMER:
                deadline = self._next_deadline(deadline, loop.time())

            batch = await self._fetch(trigger)
            if batch:
                self._status.state = SyncState.DELIVERING
                await self._queue.put(batch)
                self._status.delivered += 1
            else:
                logger.info("Sync produced no channels; nothing delivered")
            self._status.state = SyncState.IDLE

    async def _wait_for_trigger(self, deadline: float) -> SyncTrigger:
        """Block until a force request or the timer deadline, whichever is first."""
        if self._force.is_set():
            self._force.clear()
            return SyncTrigger.FORCE

        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            return SyncTrigger.TIMER
        try:
            await asyncio.wait_for(self._force.wait(), remaining)
        except TimeoutError:
            return SyncTrigger.TIMER
        self._force.clear()
        return SyncTrigger.FORCE

    def _next_deadline(self, deadline: float, now: float) -> float:
        deadline += self._interval
        if deadline <= now:
            missed = int((now - deadline) // self._interval) + 1
            deadline += missed * self._interval
        return deadline

    async def _fetch(self, trigger: SyncTrigger) -> list[Channel]:
        self._status.state = SyncState.FETCHING
        logger.info("Sync started (%s)", trigger.value)
        try:
            batch = await self._coordinator.fetch_all(self._sources)
        except Exception:
            logger.exception("Sync cycle failed")
            batch = []

        self._status.cycles += 1
        self._status.last_run = datetime.now(UTC)
        self._status.last_trigger = trigger
        self._status.last_batch_size = len(batch)
        return batch

    async def next_batch(self) -> list[Channel]:
        """Wait for the next delivered batch."""
        batch = await self._queue.get()
        self._queue.task_done()
        return batch

    async def batches(self) -> AsyncIterator[list[Channel]]:
        """Yield delivered batches in completion order, forever."""
        while True:
            yield await self.next_batch()
