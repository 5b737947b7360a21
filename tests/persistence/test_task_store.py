"""Tests for the JSON task store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tasksync.contracts.exceptions import StoreError
from tasksync.contracts.task import CreateTaskParams, TaskFilter, TaskPriority, TaskStatus, UpdateTaskParams
from tasksync.persistence.task_store import JsonTaskStore


@pytest.mark.asyncio
async def test_missing_file_is_empty(tmp_path: Path) -> None:
    store = JsonTaskStore(tmp_path / "tasks.json")
    assert await store.list_tasks() == []
    assert not (tmp_path / "tasks.json").exists()


@pytest.mark.asyncio
async def test_create_persists_tasks_document(tmp_path: Path) -> None:
    path = tmp_path / "data" / "tasks.json"
    store = JsonTaskStore(path)

    task = await store.create_task(CreateTaskParams(title="Write docs", priority=TaskPriority.HIGH))

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert [item["id"] for item in raw["tasks"]] == [task.id]
    assert raw["tasks"][0]["priority"] == "high"
    assert raw["tasks"][0]["status"] == "todo"
    assert task.created == task.updated
    assert len(task.id) == 10


@pytest.mark.asyncio
async def test_reload_from_disk(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    created = await JsonTaskStore(path).create_task(CreateTaskParams(title="Persisted"))

    reloaded = JsonTaskStore(path)
    assert await reloaded.get_task(created.id) == created


@pytest.mark.asyncio
async def test_update_merges_metadata(tmp_path: Path) -> None:
    store = JsonTaskStore(tmp_path / "tasks.json")
    task = await store.create_task(CreateTaskParams(title="t", metadata={"linearId": "issue-1", "keep": 1}))

    updated = await store.update_task(
        task.id, UpdateTaskParams(status=TaskStatus.DONE, metadata={"lastSyncedAt": "2024-01-01T00:00:00.000Z"})
    )

    assert updated.status is TaskStatus.DONE
    assert updated.title == "t"
    assert updated.metadata == {"linearId": "issue-1", "keep": 1, "lastSyncedAt": "2024-01-01T00:00:00.000Z"}
    assert updated.remote_id == "issue-1"


@pytest.mark.asyncio
async def test_update_unknown_task_raises(tmp_path: Path) -> None:
    store = JsonTaskStore(tmp_path / "tasks.json")
    with pytest.raises(StoreError, match="not found"):
        await store.update_task("missing", UpdateTaskParams(title="x"))


@pytest.mark.asyncio
async def test_delete(tmp_path: Path) -> None:
    store = JsonTaskStore(tmp_path / "tasks.json")
    task = await store.create_task(CreateTaskParams(title="t"))

    assert await store.delete_task(task.id) is True
    assert await store.delete_task(task.id) is False
    assert await JsonTaskStore(tmp_path / "tasks.json").list_tasks() == []


@pytest.mark.asyncio
async def test_filters(tmp_path: Path) -> None:
    store = JsonTaskStore(tmp_path / "tasks.json")
    await store.create_task(CreateTaskParams(title="Linked bug", metadata={"linearIssueId": "legacy-1"}))
    await store.create_task(CreateTaskParams(title="Local chore", status=TaskStatus.DONE))
    await store.create_task(CreateTaskParams(title="Another bug", description="flaky"))

    linked = await store.list_tasks(TaskFilter(has_remote_id=True))
    unlinked = await store.list_tasks(TaskFilter(has_remote_id=False))
    bugs = await store.list_tasks(TaskFilter(search_text="BUG", limit=1))
    done = await store.list_tasks(TaskFilter(status=TaskStatus.DONE))

    assert [task.title for task in linked] == ["Linked bug"]
    assert [task.title for task in unlinked] == ["Local chore", "Another bug"]
    assert [task.title for task in bugs] == ["Linked bug"]
    assert [task.title for task in done] == ["Local chore"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("content", "match"),
    [("{oops", "invalid JSON"), ('{"tasks": {}}', "no 'tasks' list"), ('{"tasks": [{"id": 1}]}', "invalid task")],
)
async def test_corrupt_files_raise_store_error(tmp_path: Path, content: str, match: str) -> None:
    path = tmp_path / "tasks.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(StoreError, match=match):
        await JsonTaskStore(path).list_tasks()


@pytest.mark.asyncio
async def test_failed_create_is_not_cached(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JsonTaskStore(blocker / "tasks.json")

    with pytest.raises(StoreError, match="failed to persist"):
        await store.create_task(CreateTaskParams(title="never persisted"))

    assert await store.list_tasks() == []


@pytest.mark.asyncio
async def test_failed_writes_leave_cache_matching_disk(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "tasks.json"
    store = JsonTaskStore(path)
    kept = await store.create_task(CreateTaskParams(title="kept"))
    on_disk = path.read_text(encoding="utf-8")

    def refuse_write(self: Path, *args: object, **kwargs: object) -> int:
        raise OSError("disk full")

    monkeypatch.setattr(Path, "write_text", refuse_write)

    with pytest.raises(StoreError):
        await store.update_task(kept.id, UpdateTaskParams(title="changed", metadata={"linearId": "issue-1"}))
    with pytest.raises(StoreError):
        await store.create_task(CreateTaskParams(title="extra"))
    with pytest.raises(StoreError):
        await store.delete_task(kept.id)

    assert await store.list_tasks() == [kept]
    assert path.read_text(encoding="utf-8") == on_disk
