"""Observer for sync run progress.

The engine reports each phase (``Prepare``, ``Pull``, ``Create``,
``Update``) and every item it finishes or fails inside a phase. Item
failures are reported in addition to ``item_done``, so a display can keep
a running failure count next to the completed count.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class SyncProgress(ABC):
    """Receives phase and item events from :class:`~tasksync.engine.engine.SyncEngine`."""

    @abstractmethod
    def phase_start(self, phase: str, total: int | None = None) -> None:
        """*phase* begins; *total* is the item count, or ``None`` when unknown."""
        ...  # pragma: no cover

    @abstractmethod
    def item_done(self, phase: str) -> None:
        """An item of *phase* was processed, whatever its outcome."""
        ...  # pragma: no cover

    @abstractmethod
    def item_failed(self, phase: str, item_id: str) -> None:
        """The item *item_id* of *phase* was recorded as a sync failure."""
        ...  # pragma: no cover

    @abstractmethod
    def phase_done(self, phase: str) -> None:
        """*phase* ended; item failures do not prevent this call."""
        ...  # pragma: no cover

    @abstractmethod
    def phase_error(self, phase: str, error: BaseException) -> None:
        """*phase* could not run at all because of *error*."""
        ...  # pragma: no cover


class NullSyncProgress(SyncProgress):
    """Discards every event."""

    def phase_start(self, phase: str, total: int | None = None) -> None:
        pass

    def item_done(self, phase: str) -> None:
        pass

    def item_failed(self, phase: str, item_id: str) -> None:
        pass

    def phase_done(self, phase: str) -> None:
        pass

    def phase_error(self, phase: str, error: BaseException) -> None:
        pass
