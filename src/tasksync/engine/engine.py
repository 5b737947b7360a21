"""Bidirectional sync between the local task store and Linear."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from tasksync.auth.credentials import CredentialStore
from tasksync.contracts.exceptions import ConfigurationError, LinkageError, SyncError
from tasksync.contracts.linear import LinearIssue, WorkflowState
from tasksync.contracts.progress import NullSyncProgress, SyncProgress
from tasksync.contracts.store import TaskStore
from tasksync.contracts.sync import SyncOptions, SyncResult
from tasksync.contracts.task import LAST_SYNCED_KEY, Task, TaskFilter, UpdateTaskParams
from tasksync.providers.linear.client import LINEAR_API_URL, LinearClient, build_issue_filter
from tasksync.providers.linear.mapper import (
    issue_to_task_params,
    remote_link_metadata,
    task_to_issue_create_input,
    task_to_issue_update_input,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
WORKFLOW_STATES_FAILED = "WORKFLOW_STATES_FAILED"
PULL_FAILED = "PULL_FAILED"
PULL_ISSUE_FAILED = "PULL_ISSUE_FAILED"
PUSH_FAILED = "PUSH_FAILED"
CREATE_ISSUE_FAILED = "CREATE_ISSUE_FAILED"
LINK_FAILED = "LINK_FAILED"
UPDATE_ISSUE_FAILED = "UPDATE_ISSUE_FAILED"
LOCAL_UPDATE_FAILED = "LOCAL_UPDATE_FAILED"
TASK_NOT_FOUND = "TASK_NOT_FOUND"

ClientFactory = Callable[[str], LinearClient]


class SyncState(StrEnum):
    IDLE = "idle"
    FETCHING_PREREQS = "fetching-prereqs"
    PULLING = "pulling"
    PUSHING = "pushing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class _SyncRun:
    """Mutable state of one ``sync`` invocation."""

    options: SyncOptions
    team_id: str = ""
    states: list[WorkflowState] = field(default_factory=list)
    result: SyncResult = field(default_factory=SyncResult)
    state: SyncState = SyncState.IDLE
    pulled_remote_ids: set[str] = field(default_factory=set)


class SyncEngine:
    """Pulls Linear issues into the task store and pushes local tasks to Linear.

    Conflicts are resolved by direction: a pull overwrites matched local tasks
    with the remote issue, a push overwrites the remote issue with the local
    task. In a ``both`` run, linked tasks refreshed by that run's pull are not
    pushed back, so ``updated`` counts each such pair once.

    Item failures are recorded in the returned :class:`SyncResult`; only
    missing prerequisites and a failed workflow-state fetch raise.

    Runs do not share state, but two runs against the same task store must
    not overlap.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        store: TaskStore,
        *,
        client_factory: ClientFactory | None = None,
        api_url: str = LINEAR_API_URL,
        progress: SyncProgress | None = None,
    ) -> None:
        self._credentials = credentials
        self._store = store
        self._client_factory = client_factory or (lambda token: LinearClient(token, url=api_url))
        self._progress = progress or NullSyncProgress()

    async def sync(self, options: SyncOptions | None = None) -> SyncResult:
        """Run one sync.

        Raises:
            ConfigurationError: No usable token or team; no network call was made.
            SyncError: Workflow states could not be fetched.
        """
        run = _SyncRun(options=options or SyncOptions())
        self._transition(run, SyncState.FETCHING_PREREQS)
        token = self._resolve_prerequisites(run)

        try:
            async with self._client_factory(token) as client:
                await self._fetch_states(run, client)
                if run.options.direction.pulls:
                    self._transition(run, SyncState.PULLING)
                    await self._pull(run, client)
                if run.options.direction.pushes:
                    self._transition(run, SyncState.PUSHING)
                    await self._push(run, client)
        except Exception:
            self._transition(run, SyncState.FAILED)
            raise

        self._transition(run, SyncState.DONE)
        result = run.result
        logger.info(
            "Sync finished: %d added, %d updated, %d errors",
            result.added,
            result.updated,
            len(result.errors),
        )
        return result

    # ------------------------------------------------------------------
    # Prerequisites
    # ------------------------------------------------------------------

    @staticmethod
    def _transition(run: _SyncRun, state: SyncState) -> None:
        logger.debug("Sync state %s -> %s", run.state.value, state.value)
        run.state = state

    def _resolve_prerequisites(self, run: _SyncRun) -> str:
        try:
            token = self._credentials.get_token()
            team_id = run.options.team_id or self._credentials.default_team_id
        except ConfigurationError as exc:
            raise self._configuration_failure(run, str(exc)) from exc

        if not token:
            raise self._configuration_failure(
                run, "Linear API token is not configured. Run 'tasksync auth login' first."
            )
        if not team_id:
            raise self._configuration_failure(
                run, "No Linear team selected. Pass --team or set a default team."
            )
        run.team_id = team_id
        return token

    def _configuration_failure(self, run: _SyncRun, message: str) -> ConfigurationError:
        self._transition(run, SyncState.FAILED)
        result = SyncResult()
        result.record_error(code=CONFIGURATION_ERROR, message=message)
        return ConfigurationError(message, result=result)

    async def _fetch_states(self, run: _SyncRun, client: LinearClient) -> None:
        self._progress.phase_start("Prepare")
        try:
            run.states = await client.list_workflow_states(run.team_id)
        except Exception as exc:
            self._progress.phase_error("Prepare", exc)
            message = f"Failed to fetch workflow states for team {run.team_id}: {exc}"
            result = SyncResult()
            result.record_error(code=WORKFLOW_STATES_FAILED, message=message)
            raise SyncError(message, result=result) from exc
        logger.debug("Fetched %d workflow states for team %s", len(run.states), run.team_id)
        self._progress.phase_done("Prepare")

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    async def _fetch_remote_issues(self, run: _SyncRun, client: LinearClient) -> list[LinearIssue]:
        issue_id = run.options.issue_id
        if issue_id is not None:
            issue = await client.get_issue(issue_id)
            if issue is None:
                logger.info("Linear issue %s no longer exists; leaving local tasks untouched", issue_id)
                return []
            return [issue]
        issue_filter = build_issue_filter(run.team_id, state_names=run.options.state_names)
        return await client.list_issues(issue_filter, first=run.options.limit)

    async def _pull(self, run: _SyncRun, client: LinearClient) -> None:
        result = run.result
        try:
            issues = await self._fetch_remote_issues(run, client)
            local_tasks = await self._store.list_tasks()
        except Exception as exc:
            logger.error("Pull failed: %s", exc)
            result.record_error(code=PULL_FAILED, message=f"Failed to fetch issues from Linear: {exc}")
            return

        by_remote_id: dict[str, Task] = {task.remote_id: task for task in local_tasks if task.remote_id}

        self._progress.phase_start("Pull", total=len(issues))
        for issue in issues:
            try:
                existing = by_remote_id.get(issue.id)
                params = issue_to_task_params(issue, existing)
                if existing is not None:
                    updated = await self._store.update_task(existing.id, UpdateTaskParams(**params.model_dump()))
                    result.record_updated(updated.id, issue.id)
                else:
                    created = await self._store.create_task(params)
                    by_remote_id[issue.id] = created
                    result.record_added(created.id, issue.id)
                run.pulled_remote_ids.add(issue.id)
            except Exception as exc:
                logger.warning("Failed to pull issue %s: %s", issue.identifier or issue.id, exc)
                self._progress.item_failed("Pull", issue.id)
                result.record_failure(
                    code=PULL_ISSUE_FAILED,
                    message=f"Failed to sync issue {issue.identifier or issue.id}: {exc}",
                    item_id=issue.id,
                )
            finally:
                self._progress.item_done("Pull")
        self._progress.phase_done("Pull")

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def _push(self, run: _SyncRun, client: LinearClient) -> None:
        result = run.result
        options = run.options
        task_filter = TaskFilter(search_text=options.search_text) if options.search_text else None
        try:
            local_tasks = await self._store.list_tasks(task_filter)
        except Exception as exc:
            logger.error("Push failed: %s", exc)
            result.record_error(code=PUSH_FAILED, message=f"Failed to read local tasks: {exc}")
            return

        if options.task_id is not None:
            local_tasks = [task for task in local_tasks if task.id == options.task_id]
            if not local_tasks:
                result.record_failure(
                    code=TASK_NOT_FOUND,
                    message=f"Task not found: {options.task_id}",
                    item_id=options.task_id,
                )
                return

        limit = options.limit
        to_create = [task for task in local_tasks if task.remote_id is None][:limit]
        # Tasks refreshed by the pull of this run already match Linear.
        to_update = [
            task
            for task in local_tasks
            if task.remote_id is not None and task.remote_id not in run.pulled_remote_ids
        ][:limit]

        self._progress.phase_start("Create", total=len(to_create))
        for task in to_create:
            await self._create_remote(run, client, task)
            self._progress.item_done("Create")
        self._progress.phase_done("Create")

        self._progress.phase_start("Update", total=len(to_update))
        for task in to_update:
            await self._update_remote(run, client, task)
            self._progress.item_done("Update")
        self._progress.phase_done("Update")

    async def _create_remote(self, run: _SyncRun, client: LinearClient, task: Task) -> None:
        result = run.result
        try:
            issue = await client.create_issue(task_to_issue_create_input(task, run.team_id, run.states))
        except Exception as exc:
            logger.warning("Failed to create Linear issue for task %s: %s", task.id, exc)
            self._progress.item_failed("Create", task.id)
            result.record_failure(
                code=CREATE_ISSUE_FAILED,
                message=f"Failed to create issue for task {task.id}: {exc}",
                item_id=task.id,
            )
            return

        try:
            await self._store.update_task(task.id, UpdateTaskParams(metadata=remote_link_metadata(issue)))
        except Exception as exc:
            error = LinkageError(
                f"Created Linear issue {issue.identifier or issue.id} for task {task.id} but could not "
                f"record the link locally ({exc}); link them manually before the next push",
                item_id=task.id,
                remote_id=issue.id,
                remote_key=issue.identifier,
            )
            logger.error("%s", error)
            self._progress.item_failed("Create", task.id)
            result.record_failure(code=error.code, message=str(error), item_id=task.id)
            return

        result.record_added(task.id, issue.id)

    async def _update_remote(self, run: _SyncRun, client: LinearClient, task: Task) -> None:
        result = run.result
        try:
            update_input = task_to_issue_update_input(task, run.states)
            issue = await client.update_issue(update_input.id, update_input)
        except Exception as exc:
            logger.warning("Failed to update Linear issue for task %s: %s", task.id, exc)
            self._progress.item_failed("Update", task.id)
            result.record_failure(
                code=UPDATE_ISSUE_FAILED,
                message=f"Failed to update issue for task {task.id} (remote state unknown): {exc}",
                item_id=task.id,
            )
            return

        try:
            await self._store.update_task(task.id, UpdateTaskParams(metadata={LAST_SYNCED_KEY: utc_timestamp()}))
        except Exception as exc:
            logger.warning("Updated Linear issue %s but not task %s: %s", issue.id, task.id, exc)
            self._progress.item_failed("Update", task.id)
            result.record_failure(
                code=LOCAL_UPDATE_FAILED,
                message=f"Updated issue {issue.identifier or issue.id} but failed to update task {task.id}: {exc}",
                item_id=task.id,
            )
            return

        result.record_updated(task.id, issue.id)
