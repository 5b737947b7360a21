"""Local task contracts."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

# Metadata keys written by sync. Kept camelCase so existing tasks.json files stay readable.
REMOTE_ID_KEY = "linearId"
LEGACY_REMOTE_ID_KEY = "linearIssueId"
REMOTE_KEY_KEY = "linearIssueKey"
REMOTE_TEAM_KEY = "linearTeamId"
REMOTE_STATE_KEY = "linearStateId"
REMOTE_URL_KEY = "linearUrl"
LAST_SYNCED_KEY = "lastSyncedAt"


class TaskStatus(StrEnum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def remote_id_from_metadata(metadata: dict[str, Any]) -> str | None:
    """Return the remote issue id stored in *metadata*, primary key first."""
    for key in (REMOTE_ID_KEY, LEGACY_REMOTE_ID_KEY):
        value = metadata.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class Task(BaseModel):
    id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    created: str
    updated: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def remote_id(self) -> str | None:
        return remote_id_from_metadata(self.metadata)


class CreateTaskParams(BaseModel):
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    metadata: dict[str, Any] = Field(default_factory=dict)


class UpdateTaskParams(BaseModel):
    """Partial task update. ``metadata`` is merged into the existing metadata."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    metadata: dict[str, Any] | None = None


class TaskFilter(BaseModel):
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    has_remote_id: bool | None = None
    search_text: str | None = None
    limit: int | None = Field(default=None, ge=1)

    def matches(self, task: Task) -> bool:
        if self.status is not None and task.status != self.status:
            return False
        if self.priority is not None and task.priority != self.priority:
            return False
        if self.has_remote_id is not None and (task.remote_id is not None) != self.has_remote_id:
            return False
        if self.search_text:
            needle = self.search_text.lower()
            if needle not in task.title.lower() and needle not in task.description.lower():
                return False
        return True
