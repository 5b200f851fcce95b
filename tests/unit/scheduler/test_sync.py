"""Tests for feedsync.scheduler.sync - SyncScheduler."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from datetime import UTC

import pytest

from feedsync.models.channel import Channel
from feedsync.scheduler.sync import SyncScheduler, SyncState, SyncTrigger

pytestmark = pytest.mark.asyncio

SOURCES = ["https://a.example/rss", "https://b.example/rss"]


class FakeCoordinator:
    """Counts fetch_all calls; optionally blocks or fails on chosen calls."""

    def __init__(self, *, empty: bool = False) -> None:
        self.calls = 0
        self.empty = empty
        self.gate: asyncio.Event | None = None
        self.fail_on: set[int] = set()

    async def fetch_all(self, sources: list[str]) -> list[Channel]:
        self.calls += 1
        call = self.calls
        if self.gate is not None:
            await self.gate.wait()
        if call in self.fail_on:
            raise RuntimeError("boom")
        if self.empty:
            return []
        return [Channel(id=f"https://c{call}.example/rss", url=f"https://c{call}.example/rss")]


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(poll(), timeout)


@pytest.fixture
def coordinator() -> FakeCoordinator:
    return FakeCoordinator()


@pytest.fixture
async def start() -> AsyncIterator[Callable[[SyncScheduler], asyncio.Task]]:
    """Start schedulers as tasks and cancel them after the test."""
    tasks: list[asyncio.Task] = []

    def _start(scheduler: SyncScheduler) -> asyncio.Task:
        task = asyncio.create_task(scheduler.run())
        tasks.append(task)
        return task

    yield _start
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


class TestSchedulerCreation:
    """Tests for SyncScheduler instantiation."""

    def test_initial_status(self, coordinator: FakeCoordinator) -> None:
        scheduler = SyncScheduler(coordinator, SOURCES)
        assert scheduler.status.state is SyncState.WARMING_UP
        assert scheduler.cycles == 0
        assert scheduler.sources == SOURCES
        assert scheduler.interval == 600.0

    def test_interval_must_be_positive(self, coordinator: FakeCoordinator) -> None:
        with pytest.raises(ValueError):
            SyncScheduler(coordinator, SOURCES, interval=0)

    def test_request_sync_sets_pending(self, coordinator: FakeCoordinator) -> None:
        scheduler = SyncScheduler(coordinator, SOURCES)
        assert scheduler.force_pending is False
        scheduler.request_sync()
        scheduler.request_sync()
        assert scheduler.force_pending is True


class TestTimer:
    """Tests for interval-driven cycles."""

    async def test_waits_for_warmup(self, coordinator: FakeCoordinator, start) -> None:
        scheduler = SyncScheduler(coordinator, SOURCES, interval=3600, warmup=0.2)
        start(scheduler)
        await asyncio.sleep(0.05)
        assert coordinator.calls == 0
        assert scheduler.status.state is SyncState.WARMING_UP

        await asyncio.wait_for(scheduler.next_batch(), 2)
        assert coordinator.calls == 1

    async def test_first_tick_right_after_warmup(self, coordinator: FakeCoordinator, start) -> None:
        scheduler = SyncScheduler(coordinator, SOURCES, interval=3600, warmup=0)
        start(scheduler)
        batch = await asyncio.wait_for(scheduler.next_batch(), 1)
        assert len(batch) == 1
        assert scheduler.status.last_trigger is SyncTrigger.TIMER
        assert scheduler.status.last_run is not None
        assert scheduler.status.last_run.tzinfo is UTC

    async def test_ticks_repeat(self, coordinator: FakeCoordinator, start) -> None:
        scheduler = SyncScheduler(coordinator, SOURCES, interval=0.02, warmup=0)
        start(scheduler)
        for _ in range(3):
            await asyncio.wait_for(scheduler.next_batch(), 1)
        assert scheduler.cycles >= 3

    async def test_idle_between_ticks(self, coordinator: FakeCoordinator, start) -> None:
        scheduler = SyncScheduler(coordinator, SOURCES, interval=3600, warmup=0)
        start(scheduler)
        await asyncio.wait_for(scheduler.next_batch(), 1)
        await wait_until(lambda: scheduler.status.state is SyncState.IDLE)
        await asyncio.sleep(0.05)
        assert coordinator.calls == 1

    async def test_overrun_fires_one_catch_up_cycle(
        self, coordinator: FakeCoordinator, start
    ) -> None:
        """A fetch spanning two ticks is followed by one cycle, not two."""
        coordinator.gate = asyncio.Event()
        scheduler = SyncScheduler(coordinator, SOURCES, interval=0.5, warmup=0)
        start(scheduler)
        await wait_until(lambda: coordinator.calls == 1)
        await asyncio.sleep(1.2)
        assert coordinator.calls == 1
        assert scheduler.status.last_run is None

        coordinator.gate.set()
        await asyncio.wait_for(scheduler.next_batch(), 0.2)
        await asyncio.wait_for(scheduler.next_batch(), 0.2)
        await asyncio.sleep(0.05)

        assert coordinator.calls == 2
        assert scheduler.cycles == 2
        assert scheduler.status.last_trigger is SyncTrigger.TIMER
        assert scheduler.status.last_run is not None

    def test_missed_ticks_skipped(self, coordinator: FakeCoordinator) -> None:
        scheduler = SyncScheduler(coordinator, SOURCES, interval=1.0)
        # On time: next deadline one interval later
        assert scheduler._next_deadline(0.0, 0.01) == 1.0
        # Fired 3.5 intervals late: deadlines 1, 2 and 3 are dropped
        assert scheduler._next_deadline(0.0, 3.5) == 4.0
        # Exactly on a later deadline: that one is dropped too
        assert scheduler._next_deadline(0.0, 2.0) == 3.0


class TestForceSync:
    """Tests for the force-refresh signal."""

    async def test_force_runs_out_of_cycle(self, coordinator: FakeCoordinator, start) -> None:
        scheduler = SyncScheduler(coordinator, SOURCES, interval=3600, warmup=0)
        start(scheduler)
        await asyncio.wait_for(scheduler.next_batch(), 1)

        scheduler.request_sync()
        await asyncio.wait_for(scheduler.next_batch(), 1)
        assert coordinator.calls == 2
        assert scheduler.status.last_trigger is SyncTrigger.FORCE
        assert scheduler.force_pending is False

    async def test_burst_during_fetch_coalesced(self, coordinator: FakeCoordinator, start) -> None:
        """Five requests during one in-flight fetch cause exactly one more cycle."""
        coordinator.gate = asyncio.Event()
        scheduler = SyncScheduler(coordinator, SOURCES, interval=3600, warmup=0)
        start(scheduler)
        await wait_until(lambda: coordinator.calls == 1)
        assert scheduler.status.state is SyncState.FETCHING

        for _ in range(5):
            scheduler.request_sync()
        coordinator.gate.set()

        await asyncio.wait_for(scheduler.next_batch(), 1)
        await asyncio.wait_for(scheduler.next_batch(), 1)
        await asyncio.sleep(0.05)
        assert coordinator.calls == 2
        assert scheduler.force_pending is False

    async def test_force_does_not_reset_timer(self, coordinator: FakeCoordinator, start) -> None:
        scheduler = SyncScheduler(coordinator, SOURCES, interval=0.2, warmup=0)
        start(scheduler)
        await asyncio.wait_for(scheduler.next_batch(), 1)
        scheduler.request_sync()
        await asyncio.wait_for(scheduler.next_batch(), 1)
        await asyncio.wait_for(scheduler.next_batch(), 1)
        assert scheduler.status.last_trigger is SyncTrigger.TIMER
        assert coordinator.calls == 3


class TestDelivery:
    """Tests for batch delivery to the consumer."""

    async def test_empty_batch_not_delivered(self, start) -> None:
        coordinator = FakeCoordinator(empty=True)
        scheduler = SyncScheduler(coordinator, SOURCES, interval=0.01, warmup=0)
        start(scheduler)
        await wait_until(lambda: scheduler.cycles >= 3)

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(scheduler.next_batch(), 0.05)
        assert scheduler.status.delivered == 0
        assert scheduler.status.last_batch_size == 0

    async def test_slow_consumer_blocks_scheduler(self, coordinator: FakeCoordinator, start) -> None:
        """With nobody consuming, only one batch waits and one more is held."""
        scheduler = SyncScheduler(coordinator, SOURCES, interval=0.01, warmup=0)
        start(scheduler)
        await wait_until(lambda: scheduler.status.state is SyncState.DELIVERING)
        await asyncio.sleep(0.1)

        assert coordinator.calls == 2
        assert scheduler.status.delivered == 1
        assert scheduler.status.state is SyncState.DELIVERING

    async def test_batches_in_completion_order(self, coordinator: FakeCoordinator, start) -> None:
        scheduler = SyncScheduler(coordinator, SOURCES, interval=0.01, warmup=0)
        start(scheduler)
        seen: list[str] = []
        async for batch in scheduler.batches():
            seen.append(batch[0].id)
            if len(seen) == 3:
                break
        assert seen == [f"https://c{i}.example/rss" for i in (1, 2, 3)]

    async def test_cycle_failure_does_not_stop_scheduler(
        self, coordinator: FakeCoordinator, start
    ) -> None:
        coordinator.fail_on = {1}
        scheduler = SyncScheduler(coordinator, SOURCES, interval=0.01, warmup=0)
        task = start(scheduler)
        batch = await asyncio.wait_for(scheduler.next_batch(), 1)
        assert batch[0].id == "https://c2.example/rss"
        assert not task.done()
