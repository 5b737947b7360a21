"""Abstract local task store.

The sync engine reads and writes local tasks only through this interface.
Implementations are not required to lock: two sync runs sharing one store
must be serialized by the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from tasksync.contracts.task import CreateTaskParams, Task, TaskFilter, UpdateTaskParams


class TaskStore(ABC):
    @abstractmethod
    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """Return tasks matching *task_filter* (all tasks when ``None``), in store order."""

    @abstractmethod
    async def get_task(self, task_id: str) -> Task | None:
        """Return the task with *task_id*, or ``None``."""

    @abstractmethod
    async def create_task(self, params: CreateTaskParams) -> Task:
        """Create and persist a task.

        Raises:
            StoreError: If the task cannot be persisted.
        """

    @abstractmethod
    async def update_task(self, task_id: str, params: UpdateTaskParams) -> Task:
        """Apply *params* to an existing task, merging metadata.

        Raises:
            StoreError: If the task does not exist or cannot be persisted.
        """

    @abstractmethod
    async def delete_task(self, task_id: str) -> bool:
        """Delete a task. Returns ``False`` when it did not exist."""
