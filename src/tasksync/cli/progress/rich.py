"""Rich rendering of sync progress on stderr."""

from __future__ import annotations

from collections import Counter
from types import TracebackType
from typing import ClassVar

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.progress import TaskID as RichTaskID

from tasksync.contracts.progress import SyncProgress


class RichSyncProgress(SyncProgress):
    """One Rich bar per sync phase, with a failure count beside each bar.

    Start and stop the live display with ``with``::

        with RichSyncProgress() as progress:
            result = await SyncEngine(credentials, store, progress=progress).sync(options)
    """

    _PHASE_STYLES: ClassVar[dict[str, str]] = {
        "Prepare": "cyan",
        "Pull": "blue",
        "Create": "green",
        "Update": "magenta",
    }

    def __init__(self, console: Console | None = None) -> None:
        self._progress = Progress(
            SpinnerColumn(finished_text="[green]✓[/green]"),
            TextColumn("{task.description:>12}"),
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            TextColumn("{task.fields[failures]}"),
            TimeElapsedColumn(),
            console=console or Console(stderr=True),
        )
        self._bars: dict[str, RichTaskID] = {}
        self._failures: Counter[str] = Counter()

    def __enter__(self) -> RichSyncProgress:
        self._progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self._progress.stop()

    @property
    def failures(self) -> dict[str, int]:
        """Failed item count per phase seen so far."""
        return dict(self._failures)

    def _label(self, phase: str) -> str:
        style = self._PHASE_STYLES.get(phase)
        return f"[{style}]{phase}[/]" if style else phase

    def phase_start(self, phase: str, total: int | None = None) -> None:
        self._bars[phase] = self._progress.add_task(self._label(phase), total=total, failures="")

    def item_done(self, phase: str) -> None:
        bar = self._bars.get(phase)
        if bar is not None:
            self._progress.advance(bar)

    def item_failed(self, phase: str, item_id: str) -> None:
        bar = self._bars.get(phase)
        if bar is None:
            return
        self._failures[phase] += 1
        self._progress.update(bar, failures=f"[red]{self._failures[phase]} failed[/red]")

    def phase_done(self, phase: str) -> None:
        bar = self._bars.get(phase)
        if bar is None:
            return
        total = self._progress.tasks[bar].total
        if total is None:
            # Indeterminate phases are drawn as a single finished step.
            self._progress.update(bar, total=1, completed=1)
        else:
            self._progress.update(bar, completed=total)

    def phase_error(self, phase: str, error: BaseException) -> None:
        bar = self._bars.get(phase)
        if bar is not None:
            self._progress.update(
                bar,
                description=f"[red]✗ {phase}[/red]",
                failures=f"[red]{type(error).__name__}[/red]",
            )
