from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from tasksync.auth.credentials import CredentialStore
from tasksync.contracts.exceptions import ConfigurationError, LinearApiError, SyncError
from tasksync.contracts.progress import SyncProgress
from tasksync.contracts.sync import SyncDirection, SyncOptions
from tasksync.contracts.task import TaskStatus
from tasksync.engine.engine import SyncEngine
from tasksync.providers.linear.client import LinearClient
from tests.fakes.linear_client import TEAM_ID, FakeLinearClient, make_issue
from tests.fakes.task_store import FakeTaskStore, make_task


def make_engine(
    credentials: CredentialStore,
    store: FakeTaskStore,
    client: FakeLinearClient,
    progress: SyncProgress | None = None,
) -> SyncEngine:
    return SyncEngine(credentials, store, client_factory=lambda token: client, progress=progress)


PULL = SyncOptions(direction=SyncDirection.PULL)
PUSH = SyncOptions(direction=SyncDirection.PUSH)


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_missing_token_fails_before_any_network_call(empty_credentials: CredentialStore) -> None:
    factory = MagicMock()
    engine = SyncEngine(empty_credentials, FakeTaskStore(), client_factory=factory)

    with pytest.raises(ConfigurationError) as exc_info:
        await engine.sync(SyncOptions(team_id=TEAM_ID))

    factory.assert_not_called()
    result = exc_info.value.result
    assert result is not None
    assert (result.added, result.updated) == (0, 0)
    assert [entry.code for entry in result.errors] == ["CONFIGURATION_ERROR"]


@pytest.mark.asyncio
async def test_missing_team_fails_before_any_network_call(empty_credentials: CredentialStore) -> None:
    empty_credentials.set_token("lin_api_x")
    factory = MagicMock()
    engine = SyncEngine(empty_credentials, FakeTaskStore(), client_factory=factory)

    with pytest.raises(ConfigurationError, match="team") as exc_info:
        await engine.sync()

    factory.assert_not_called()
    assert exc_info.value.result is not None
    assert exc_info.value.result.errors[0].code == "CONFIGURATION_ERROR"


@pytest.mark.asyncio
async def test_team_override_is_used(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    await make_engine(credentials, FakeTaskStore(), client).sync(SyncOptions(direction=SyncDirection.PULL, team_id="t-9"))

    assert client.calls[0] == ("list_workflow_states", "t-9")
    assert client.calls[1] == ("list_issues", {"filter": {"team": {"id": {"eq": "t-9"}}}, "first": 100})


@pytest.mark.asyncio
async def test_workflow_state_failure_short_circuits(credentials: CredentialStore) -> None:
    client = FakeLinearClient(issues=[make_issue("issue-1")])
    client.fail_states = LinearApiError("boom")
    store = FakeTaskStore([make_task("a")])

    with pytest.raises(SyncError) as exc_info:
        await make_engine(credentials, store, client).sync()

    result = exc_info.value.result
    assert result is not None
    assert [entry.code for entry in result.errors] == ["WORKFLOW_STATES_FAILED"]
    assert (result.added, result.updated) == (0, 0)
    assert [name for name, _ in client.calls] == ["list_workflow_states"]
    assert client.exited == 1


@pytest.mark.asyncio
async def test_malformed_workflow_states_become_sync_error(credentials: CredentialStore) -> None:
    payload = {"data": {"workflowStates": {"nodes": [{"id": "s1", "type": "started"}]}}}
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
    engine = SyncEngine(
        credentials,
        FakeTaskStore([make_task("a")]),
        client_factory=lambda token: LinearClient(token, transport=transport, sleep=AsyncMock()),
    )

    with pytest.raises(SyncError, match="workflow states") as exc_info:
        await engine.sync()

    result = exc_info.value.result
    assert result is not None
    assert [entry.code for entry in result.errors] == ["WORKFLOW_STATES_FAILED"]
    assert (result.added, result.updated) == (0, 0)


# ---------------------------------------------------------------------------
# Pull
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_pull_three_issues_one_matching(credentials: CredentialStore) -> None:
    client = FakeLinearClient(
        issues=[
            make_issue("issue-1", number=1),
            make_issue("issue-2", number=2, state_type="started"),
            make_issue("issue-3", number=3, state_type="completed"),
        ]
    )
    store = FakeTaskStore([make_task("existing", title="Old title", remote_id="issue-2")])

    result = await make_engine(credentials, store, client).sync(PULL)

    assert result.added == 2
    assert result.updated == 1
    assert result.errors == []
    assert [(pair.local, pair.remote) for pair in result.details.updated] == [("existing", "issue-2")]
    updated = store.tasks["existing"]
    assert updated.title == "Issue 2"
    assert updated.status is TaskStatus.IN_PROGRESS
    assert updated.metadata["linearIssueKey"] == "ENG-2"
    assert len(store.tasks) == 3


@pytest.mark.asyncio
async def test_pull_item_failure_is_recorded_and_loop_continues(credentials: CredentialStore) -> None:
    client = FakeLinearClient(issues=[make_issue("issue-1", number=1), make_issue("issue-2", number=2)])
    store = FakeTaskStore([make_task("broken", remote_id="issue-1")])
    store.fail_update_ids.add("broken")

    result = await make_engine(credentials, store, client).sync(PULL)

    assert result.added == 1
    assert result.updated == 0
    assert [(entry.code, entry.item_id) for entry in result.errors] == [("PULL_ISSUE_FAILED", "issue-1")]
    assert [item.id for item in result.details.failed] == ["issue-1"]


@pytest.mark.asyncio
async def test_pull_list_failure_still_runs_push(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    client.fail_list = LinearApiError("network down")
    store = FakeTaskStore([make_task("new")])

    result = await make_engine(credentials, store, client).sync()

    assert [entry.code for entry in result.errors] == ["PULL_FAILED"]
    assert result.added == 1
    assert store.tasks["new"].remote_id is not None


@pytest.mark.asyncio
async def test_pull_respects_limit(credentials: CredentialStore) -> None:
    client = FakeLinearClient(issues=[make_issue(f"issue-{n}", number=n) for n in range(5)])

    result = await make_engine(credentials, FakeTaskStore(), client).sync(
        SyncOptions(direction=SyncDirection.PULL, limit=2)
    )

    assert result.added == 2


@pytest.mark.asyncio
async def test_scoped_pull_fetches_single_issue(credentials: CredentialStore) -> None:
    client = FakeLinearClient(issues=[make_issue("issue-1", number=1), make_issue("issue-2", number=2)])
    store = FakeTaskStore()

    result = await make_engine(credentials, store, client).sync(
        SyncOptions(direction=SyncDirection.PULL, issue_id="issue-2")
    )

    assert result.added == 1
    assert [name for name, _ in client.calls] == ["list_workflow_states", "get_issue"]
    assert [task.remote_id for task in store.tasks.values()] == ["issue-2"]


@pytest.mark.asyncio
async def test_scoped_pull_of_missing_issue_changes_nothing(credentials: CredentialStore) -> None:
    store = FakeTaskStore([make_task("linked", remote_id="gone")])

    result = await make_engine(credentials, store, FakeLinearClient()).sync(
        SyncOptions(direction=SyncDirection.PULL, issue_id="gone")
    )

    assert result.ok
    assert (result.added, result.updated, result.deleted) == (0, 0, 0)
    assert "linked" in store.tasks


# ---------------------------------------------------------------------------
# Push
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_push_second_create_failing(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    client.fail_create_titles.add("Second")
    store = FakeTaskStore([make_task("t1", title="First"), make_task("t2", title="Second")])

    result = await make_engine(credentials, store, client).sync(PUSH)

    assert result.added == 1
    assert len(result.errors) == 1
    assert result.errors[0].code == "CREATE_ISSUE_FAILED"
    assert [item.id for item in result.details.failed] == ["t2"]
    assert store.tasks["t1"].remote_id is not None
    assert store.tasks["t2"].remote_id is None


@pytest.mark.asyncio
async def test_create_sends_mapped_state_and_links_back(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    store = FakeTaskStore([make_task("t1", title="Ship it", status=TaskStatus.IN_PROGRESS)])

    result = await make_engine(credentials, store, client).sync(PUSH)

    assert client.created[0].state_id == "state-started"
    assert client.created[0].team_id == TEAM_ID
    metadata = store.tasks["t1"].metadata
    remote_id = result.details.added[0].remote
    assert metadata["linearId"] == metadata["linearIssueId"] == remote_id
    assert metadata["linearUrl"].startswith("https://linear.app/")
    assert "lastSyncedAt" in metadata


@pytest.mark.asyncio
async def test_link_failure_after_create_is_flagged_not_retried(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    store = FakeTaskStore([make_task("t1", title="Only")])
    store.fail_metadata_update_ids.add("t1")

    result = await make_engine(credentials, store, client).sync(PUSH)

    assert [name for name, _ in client.calls].count("create_issue") == 1
    assert result.added == 0
    assert [(entry.code, entry.item_id) for entry in result.errors] == [("LINK_FAILED", "t1")]
    created = next(iter(client.issues.values()))
    assert created.identifier in result.errors[0].message
    assert "manually" in result.errors[0].message


@pytest.mark.asyncio
async def test_unsuccessful_create_mutation_is_recorded(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    client.create_unsuccessful = True
    store = FakeTaskStore([make_task("t1")])

    result = await make_engine(credentials, store, client).sync(PUSH)

    assert result.errors[0].code == "CREATE_ISSUE_FAILED"
    assert store.tasks["t1"].remote_id is None


@pytest.mark.asyncio
async def test_update_failure_keeps_remote_id(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    client.fail_update_ids.add("issue-1")
    store = FakeTaskStore([make_task("t1", remote_id="issue-1")])

    result = await make_engine(credentials, store, client).sync(PUSH)

    assert [entry.code for entry in result.errors] == ["UPDATE_ISSUE_FAILED"]
    assert "remote state unknown" in result.errors[0].message
    assert store.tasks["t1"].remote_id == "issue-1"
    assert client.created == []


@pytest.mark.asyncio
async def test_update_refreshes_only_last_synced(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    store = FakeTaskStore([make_task("t1", title="Local title", status=TaskStatus.DONE, remote_id="issue-1")])

    result = await make_engine(credentials, store, client).sync(PUSH)

    assert result.updated == 1
    assert client.updated[0].id == "issue-1"
    assert client.updated[0].state_id == "state-done"
    task = store.tasks["t1"]
    assert task.title == "Local title"
    assert "lastSyncedAt" in task.metadata


@pytest.mark.asyncio
async def test_local_update_failure_after_remote_update(credentials: CredentialStore) -> None:
    store = FakeTaskStore([make_task("t1", remote_id="issue-1")])
    store.fail_metadata_update_ids.add("t1")

    result = await make_engine(credentials, store, FakeLinearClient()).sync(PUSH)

    assert [entry.code for entry in result.errors] == ["LOCAL_UPDATE_FAILED"]
    assert store.tasks["t1"].remote_id == "issue-1"


@pytest.mark.asyncio
async def test_limit_applies_per_direction(credentials: CredentialStore) -> None:
    tasks = [make_task(f"new-{n}") for n in range(3)] + [make_task(f"old-{n}", remote_id=f"issue-{n}") for n in range(3)]
    client = FakeLinearClient()

    result = await make_engine(credentials, FakeTaskStore(tasks), client).sync(
        SyncOptions(direction=SyncDirection.PUSH, limit=2)
    )

    assert result.added == 2
    assert result.updated == 2


@pytest.mark.asyncio
async def test_push_store_failure_is_recorded(credentials: CredentialStore) -> None:
    store = FakeTaskStore()
    store.fail_list = True

    result = await make_engine(credentials, store, FakeLinearClient()).sync(PUSH)

    assert [entry.code for entry in result.errors] == ["PUSH_FAILED"]


@pytest.mark.asyncio
async def test_both_directions_do_not_push_back_freshly_pulled_tasks(credentials: CredentialStore) -> None:
    client = FakeLinearClient(issues=[make_issue("issue-1")])
    store = FakeTaskStore([make_task("linked", remote_id="issue-1"), make_task("stale", remote_id="issue-77")])

    result = await make_engine(credentials, store, client).sync()

    assert result.updated == 2
    assert [name for name, arg in client.calls if name == "update_issue"] == ["update_issue"]
    assert ("update_issue", "issue-77") in client.calls


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_progress_phases_are_reported(credentials: CredentialStore) -> None:
    progress = MagicMock(spec=SyncProgress)
    client = FakeLinearClient(issues=[make_issue("issue-1")])
    store = FakeTaskStore([make_task("new")])

    await make_engine(credentials, store, client, progress).sync()

    started = [call.args[0] for call in progress.phase_start.call_args_list]
    assert started == ["Prepare", "Pull", "Create", "Update"]
    done = [call.args[0] for call in progress.phase_done.call_args_list]
    assert done == ["Prepare", "Pull", "Create", "Update"]
    assert progress.item_done.call_count == 2


@pytest.mark.asyncio
async def test_failed_items_are_reported_to_progress(credentials: CredentialStore) -> None:
    progress = MagicMock(spec=SyncProgress)
    client = FakeLinearClient()
    client.fail_create_titles.add("Second")
    client.fail_update_ids.add("issue-9")
    store = FakeTaskStore(
        [
            make_task("t1", title="First"),
            make_task("t2", title="Second"),
            make_task("t3", remote_id="issue-9"),
        ]
    )

    await make_engine(credentials, store, client, progress).sync(PUSH)

    failed = [call.args for call in progress.item_failed.call_args_list]
    assert failed == [("Create", "t2"), ("Update", "t3")]
    assert progress.item_done.call_count == 3


# ---------------------------------------------------------------------------
# Scoped syncs
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_pull_with_state_names_filters_remotely(credentials: CredentialStore) -> None:
    client = FakeLinearClient(issues=[make_issue("issue-1")])
    options = SyncOptions(direction=SyncDirection.PULL, state_names=("Todo", "In Progress"))

    await make_engine(credentials, FakeTaskStore(), client).sync(options)

    listed = [args for name, args in client.calls if name == "list_issues"]
    assert listed == [
        {
            "filter": {
                "team": {"id": {"eq": TEAM_ID}},
                "state": {"name": {"in": ["Todo", "In Progress"]}},
            },
            "first": 100,
        }
    ]


@pytest.mark.asyncio
async def test_push_of_single_task(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    store = FakeTaskStore([make_task("t1", title="First"), make_task("t2", title="Second")])
    options = SyncOptions(direction=SyncDirection.PUSH, task_id="t2")

    result = await make_engine(credentials, store, client).sync(options)

    assert [created.title for created in client.created] == ["Second"]
    assert result.added == 1
    assert store.tasks["t1"].remote_id is None


@pytest.mark.asyncio
async def test_push_of_unknown_task_is_recorded(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    store = FakeTaskStore([make_task("t1")])
    options = SyncOptions(direction=SyncDirection.PUSH, task_id="missing")

    result = await make_engine(credentials, store, client).sync(options)

    assert client.created == []
    assert [entry.code for entry in result.errors] == ["TASK_NOT_FOUND"]
    assert [item.id for item in result.details.failed] == ["missing"]


@pytest.mark.asyncio
async def test_push_with_search_text_only_sends_matches(credentials: CredentialStore) -> None:
    client = FakeLinearClient()
    store = FakeTaskStore(
        [
            make_task("t1", title="Fix login bug"),
            make_task("t2", title="Write release notes"),
            make_task("t3", title="LOGIN page copy"),
        ]
    )
    options = SyncOptions(direction=SyncDirection.PUSH, search_text="login")

    result = await make_engine(credentials, store, client).sync(options)

    assert sorted(created.title for created in client.created) == ["Fix login bug", "LOGIN page copy"]
    assert result.added == 2
