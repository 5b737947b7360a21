"""Sync run contracts: options in, result out."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class SyncDirection(StrEnum):
    PUSH = "push"
    PULL = "pull"
    BOTH = "both"

    @property
    def pulls(self) -> bool:
        return self in (SyncDirection.PULL, SyncDirection.BOTH)

    @property
    def pushes(self) -> bool:
        return self in (SyncDirection.PUSH, SyncDirection.BOTH)


class SyncOptions(BaseModel):
    """Parameters of one sync invocation.

    Attributes:
        direction: Which way(s) to sync.
        limit: Item cap, applied separately to each direction.
        team_id: Team override; defaults to the stored default team.
        issue_id: Restrict a pull to this single remote issue.
        state_names: Restrict a pull to issues in these workflow states (by name).
        task_id: Restrict a push to this single local task.
        search_text: Restrict a push to tasks whose title or description contains this text.
    """

    direction: SyncDirection = SyncDirection.BOTH
    limit: int = Field(default=100, ge=1)
    team_id: str | None = None
    issue_id: str | None = None
    state_names: tuple[str, ...] | None = None
    task_id: str | None = None
    search_text: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_scopes(self) -> SyncOptions:
        if self.issue_id is not None and self.direction != SyncDirection.PULL:
            raise ValueError("issue_id scoping is only supported for pull syncs")
        if self.state_names is not None and not self.direction.pulls:
            raise ValueError("state_names filtering is only supported when pulling")
        if (self.task_id is not None or self.search_text is not None) and self.direction != SyncDirection.PUSH:
            raise ValueError("task_id and search_text scoping are only supported for push syncs")
        return self


class SyncErrorEntry(BaseModel):
    code: str
    message: str
    item_id: str | None = None


class SyncPair(BaseModel):
    local: str
    remote: str


class FailedItem(BaseModel):
    id: str
    error: str


class SyncDetails(BaseModel):
    added: list[SyncPair] = Field(default_factory=list)
    updated: list[SyncPair] = Field(default_factory=list)
    failed: list[FailedItem] = Field(default_factory=list)


class SyncResult(BaseModel):
    """Value returned by :meth:`SyncEngine.sync`. Built fresh per run."""

    added: int = 0
    updated: int = 0
    deleted: int = 0
    conflicts: int = 0
    errors: list[SyncErrorEntry] = Field(default_factory=list)
    details: SyncDetails = Field(default_factory=SyncDetails)

    @property
    def ok(self) -> bool:
        return not self.errors

    def record_added(self, local: str, remote: str) -> None:
        self.added += 1
        self.details.added.append(SyncPair(local=local, remote=remote))

    def record_updated(self, local: str, remote: str) -> None:
        self.updated += 1
        self.details.updated.append(SyncPair(local=local, remote=remote))

    def record_failure(self, *, code: str, message: str, item_id: str) -> None:
        self.errors.append(SyncErrorEntry(code=code, message=message, item_id=item_id))
        self.details.failed.append(FailedItem(id=item_id, error=message))

    def record_error(self, *, code: str, message: str) -> None:
        """Record a run-level error not tied to a single item."""
        self.errors.append(SyncErrorEntry(code=code, message=message))
