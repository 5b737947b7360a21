"""Linear-side data transfer objects.

These models parse the camelCase payloads returned by the Linear GraphQL API
and build the inputs sent back to it. They are never persisted on their own;
tasks reference issues only through ids stored in ``Task.metadata``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

_API_MODEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class _ApiModel(BaseModel):
    model_config = _API_MODEL_CONFIG

    def to_api(self) -> dict[str, Any]:
        """Serialize to the camelCase shape the API expects, dropping unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _lift_team_id(data: Any) -> Any:
    # Some payloads carry a flat ``teamId`` instead of a nested ``team { id }``.
    if isinstance(data, dict) and "team" not in data and data.get("teamId"):
        return {**data, "team": {"id": data["teamId"]}}
    return data


class Ref(_ApiModel):
    """Reference to another Linear entity, as embedded in issue payloads."""

    id: str
    name: str | None = None
    key: str | None = None


class LinearUser(_ApiModel):
    id: str
    name: str = ""
    email: str = ""
    display_name: str | None = None
    avatar_url: str | None = None
    active: bool = True


class LinearTeam(_ApiModel):
    id: str
    name: str
    key: str = ""
    description: str | None = None
    icon: str | None = None
    color: str | None = None


class WorkflowState(_ApiModel):
    """A stage in a team's workflow. ``type`` is one of triage/backlog/unstarted/started/completed/canceled."""

    id: str
    name: str
    type: str
    color: str | None = None
    description: str | None = None
    position: float = 0.0
    team: Ref | None = None

    @model_validator(mode="before")
    @classmethod
    def lift_team_id(cls, data: Any) -> Any:
        return _lift_team_id(data)

    @property
    def team_id(self) -> str | None:
        return self.team.id if self.team else None


class StateRef(_ApiModel):
    id: str
    name: str = ""
    type: str = ""
    color: str | None = None


class LinearProject(_ApiModel):
    id: str
    name: str
    description: str | None = None
    state: str | None = None
    start_date: str | None = None
    target_date: str | None = None
    progress: float | None = None


class LinearIssue(_ApiModel):
    id: str
    identifier: str = ""
    title: str
    description: str | None = None
    priority: int = 0
    estimate: float | None = None
    state: StateRef | None = None
    team: Ref | None = None
    assignee: Ref | None = None
    creator: Ref | None = None
    project: Ref | None = None
    created_at: str | None = None
    updated_at: str | None = None
    url: str | None = None

    @model_validator(mode="before")
    @classmethod
    def lift_team_id(cls, data: Any) -> Any:
        return _lift_team_id(data)

    @property
    def state_id(self) -> str | None:
        return self.state.id if self.state else None

    @property
    def team_id(self) -> str | None:
        return self.team.id if self.team else None


class IssueCreateInput(_ApiModel):
    title: str
    team_id: str
    description: str | None = None
    state_id: str | None = None
    priority: int | None = None
    estimate: float | None = None
    assignee_id: str | None = None
    project_id: str | None = None
    parent_id: str | None = None
    label_ids: list[str] | None = None


class IssueUpdateInput(_ApiModel):
    """Update payload. ``id`` selects the issue and is sent separately from the input."""

    id: str = Field(exclude=True)
    title: str | None = None
    description: str | None = None
    state_id: str | None = None
    priority: int | None = None
    estimate: float | None = None
    assignee_id: str | None = None
    project_id: str | None = None
    parent_id: str | None = None
    label_ids: list[str] | None = None


class LinearWebhook(_ApiModel):
    id: str
    url: str | None = None
    label: str | None = None
    enabled: bool = True
    resource_types: list[str] = Field(default_factory=list)


class WebhookCreateInput(_ApiModel):
    url: str
    team_id: str | None = None
    label: str | None = None
    secret: str | None = None
    resource_types: list[str] = Field(default_factory=lambda: ["Issue"])
    all_public_teams: bool | None = None


class WebhookEvent(_ApiModel):
    """Envelope of an inbound webhook delivery."""

    type: str
    action: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    url: str | None = None
    created_at: str | None = None
    webhook_id: str | None = None

    @property
    def entity_id(self) -> str | None:
        value = self.data.get("id")
        return value if isinstance(value, str) and value else None
