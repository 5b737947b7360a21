"""JSON-file task store with an in-memory cache."""

from __future__ import annotations

import json
import logging
import secrets
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tasksync.contracts.exceptions import StoreError
from tasksync.contracts.store import TaskStore
from tasksync.contracts.task import CreateTaskParams, Task, TaskFilter, UpdateTaskParams
from tasksync.providers.linear.mapper import utc_timestamp

logger = logging.getLogger(__name__)


def generate_task_id() -> str:
    return secrets.token_hex(5)


class JsonTaskStore(TaskStore):
    """Tasks persisted as ``{"tasks": [...]}`` in a single JSON file.

    The file is read once on first access and rewritten after every
    mutation; the cache only changes once that write succeeded. A missing
    file is treated as an empty task list.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._tasks: list[Task] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> list[Task]:
        if self._tasks is not None:
            return self._tasks
        if not self._path.exists():
            self._tasks = []
            return self._tasks
        try:
            payload: Any = json.loads(self._path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StoreError(f"failed reading task file: {self._path}") from exc
        except json.JSONDecodeError as exc:
            raise StoreError(f"invalid JSON in task file: {self._path}") from exc

        raw_tasks = payload.get("tasks", []) if isinstance(payload, dict) else None
        if not isinstance(raw_tasks, list):
            raise StoreError(f"task file has no 'tasks' list: {self._path}")
        try:
            self._tasks = [Task.model_validate(item) for item in raw_tasks]
        except ValidationError as exc:
            raise StoreError(f"invalid task in {self._path}: {exc}") from exc
        logger.debug("Loaded %d tasks from %s", len(self._tasks), self._path)
        return self._tasks

    def _commit(self, tasks: list[Task]) -> None:
        """Write *tasks* to disk, then make them the cached state."""
        document = {"tasks": [task.model_dump(mode="json") for task in tasks]}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"failed to persist tasks: {self._path}") from exc
        self._tasks = tasks

    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        tasks = list(self._load())
        if task_filter is None:
            return tasks
        matched = [task for task in tasks if task_filter.matches(task)]
        if task_filter.limit is not None:
            matched = matched[: task_filter.limit]
        return matched

    async def get_task(self, task_id: str) -> Task | None:
        return next((task for task in self._load() if task.id == task_id), None)

    async def create_task(self, params: CreateTaskParams) -> Task:
        tasks = self._load()
        now = utc_timestamp()
        task = Task(
            id=generate_task_id(),
            title=params.title,
            description=params.description,
            status=params.status,
            priority=params.priority,
            created=now,
            updated=now,
            metadata=dict(params.metadata),
        )
        self._commit([*tasks, task])
        return task

    async def update_task(self, task_id: str, params: UpdateTaskParams) -> Task:
        tasks = self._load()
        for index, task in enumerate(tasks):
            if task.id != task_id:
                continue
            changes = params.model_dump(exclude_none=True, exclude={"metadata"})
            if params.metadata is not None:
                changes["metadata"] = {**task.metadata, **params.metadata}
            changes["updated"] = utc_timestamp()
            updated = task.model_copy(update=changes)
            self._commit([*tasks[:index], updated, *tasks[index + 1 :]])
            return updated
        raise StoreError(f"task not found: {task_id}")

    async def delete_task(self, task_id: str) -> bool:
        tasks = self._load()
        remaining = [task for task in tasks if task.id != task_id]
        if len(remaining) == len(tasks):
            return False
        self._commit(remaining)
        return True
