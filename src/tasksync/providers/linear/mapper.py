"""Pure conversions between local tasks and Linear issues.

Two mappings are lossy: remote priorities 0 (none) and 4 (low)
both become ``low``, and the ``canceled`` state type collapses into ``done``.
A local -> remote -> local round trip therefore preserves status but can turn
"no priority" into ``low``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from tasksync.contracts.linear import IssueCreateInput, IssueUpdateInput, LinearIssue, WorkflowState
from tasksync.contracts.task import (
    LAST_SYNCED_KEY,
    LEGACY_REMOTE_ID_KEY,
    REMOTE_ID_KEY,
    REMOTE_KEY_KEY,
    REMOTE_STATE_KEY,
    REMOTE_TEAM_KEY,
    REMOTE_URL_KEY,
    CreateTaskParams,
    Task,
    TaskPriority,
    TaskStatus,
    remote_id_from_metadata,
)

_STATE_TYPE_TO_STATUS: dict[str, TaskStatus] = {
    "triage": TaskStatus.TODO,
    "backlog": TaskStatus.TODO,
    "unstarted": TaskStatus.TODO,
    "started": TaskStatus.IN_PROGRESS,
    "completed": TaskStatus.DONE,
    "canceled": TaskStatus.DONE,
}

_STATUS_TO_STATE_TYPE: dict[TaskStatus, str] = {
    TaskStatus.TODO: "backlog",
    TaskStatus.IN_PROGRESS: "started",
    TaskStatus.DONE: "completed",
}

# Linear scale: 0 none, 1 urgent, 2 high, 3 medium, 4 low.
_REMOTE_TO_LOCAL_PRIORITY: dict[int, TaskPriority] = {
    0: TaskPriority.LOW,
    1: TaskPriority.HIGH,
    2: TaskPriority.HIGH,
    3: TaskPriority.MEDIUM,
    4: TaskPriority.LOW,
}

_LOCAL_TO_REMOTE_PRIORITY: dict[TaskPriority, int] = {
    TaskPriority.HIGH: 2,
    TaskPriority.MEDIUM: 3,
    TaskPriority.LOW: 4,
}


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = (now or datetime.now(UTC)).astimezone(UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def remote_state_type_to_status(state_type: str | None) -> TaskStatus:
    if not state_type:
        return TaskStatus.TODO
    return _STATE_TYPE_TO_STATUS.get(state_type.strip().lower(), TaskStatus.TODO)


def status_to_remote_state_type(status: TaskStatus) -> str:
    return _STATUS_TO_STATE_TYPE[TaskStatus(status)]


def remote_priority_to_local(priority: int | None) -> TaskPriority:
    if priority is None:
        return TaskPriority.MEDIUM
    return _REMOTE_TO_LOCAL_PRIORITY.get(priority, TaskPriority.MEDIUM)


def local_priority_to_remote(priority: TaskPriority) -> int:
    return _LOCAL_TO_REMOTE_PRIORITY[TaskPriority(priority)]


def find_state_for_status(
    states: Iterable[WorkflowState],
    status: TaskStatus,
    team_id: str | None = None,
) -> WorkflowState | None:
    """Pick the workflow state matching *status*.

    Types are compared case-insensitively. When a team owns several states of
    the same type, the one with the lowest position wins. States tagged with
    another team are skipped when *team_id* is given.
    """
    wanted = status_to_remote_state_type(status)
    candidates = [
        state
        for state in states
        if state.type.lower() == wanted
        and (team_id is None or state.team_id is None or state.team_id == team_id)
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda state: state.position)


def remote_link_metadata(issue: LinearIssue, *, now: datetime | None = None) -> dict[str, Any]:
    """Metadata keys that tie a local task to *issue*."""
    return {
        REMOTE_ID_KEY: issue.id,
        LEGACY_REMOTE_ID_KEY: issue.id,
        REMOTE_KEY_KEY: issue.identifier,
        REMOTE_TEAM_KEY: issue.team_id,
        REMOTE_STATE_KEY: issue.state_id,
        REMOTE_URL_KEY: issue.url,
        LAST_SYNCED_KEY: utc_timestamp(now),
    }


def issue_to_task_params(
    issue: LinearIssue,
    existing: Task | None = None,
    *,
    now: datetime | None = None,
) -> CreateTaskParams:
    """Build local task params from *issue*, keeping *existing* metadata."""
    metadata = dict(existing.metadata) if existing is not None else {}
    metadata.update(remote_link_metadata(issue, now=now))
    return CreateTaskParams(
        title=issue.title,
        description=issue.description or "",
        status=remote_state_type_to_status(issue.state.type if issue.state else None),
        priority=remote_priority_to_local(issue.priority),
        metadata=metadata,
    )


def task_to_issue_create_input(task: Task, team_id: str, states: Iterable[WorkflowState]) -> IssueCreateInput:
    state = find_state_for_status(states, task.status, team_id)
    return IssueCreateInput(
        title=task.title,
        team_id=team_id,
        description=task.description or None,
        state_id=state.id if state else None,
        priority=local_priority_to_remote(task.priority),
    )


def task_to_issue_update_input(task: Task, states: Iterable[WorkflowState]) -> IssueUpdateInput:
    """Build the update for the issue linked to *task*.

    Raises:
        ValueError: If the task carries no remote issue id.
    """
    issue_id = remote_id_from_metadata(task.metadata)
    if issue_id is None:
        raise ValueError(f"Task {task.id} is not linked to a Linear issue")
    team_id = task.metadata.get(REMOTE_TEAM_KEY) or None
    state = find_state_for_status(states, task.status, team_id)
    return IssueUpdateInput(
        id=issue_id,
        title=task.title,
        description=task.description,
        state_id=state.id if state else None,
        priority=local_priority_to_remote(task.priority),
    )
