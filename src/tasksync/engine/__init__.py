"""Sync engine."""

from tasksync.engine.engine import SyncEngine, SyncState

__all__ = ["SyncEngine", "SyncState"]
