"""Sync scheduling."""

from feedsync.scheduler.sync import SyncScheduler, SyncState, SyncStatus, SyncTrigger

__all__ = [
    "SyncScheduler",
    "SyncState",
    "SyncStatus",
    "SyncTrigger",
]
