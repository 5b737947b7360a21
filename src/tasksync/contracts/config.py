"""Configuration contracts."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field


class LinearConfig(BaseModel):
    """Persisted Linear integration settings.

    Field aliases match the keys of the ``config.json`` document so files
    written by earlier releases keep loading. Keys this model does not know
    about are preserved on save.

    Attributes:
        api_key: Encrypted API token (never stored in clear text).
        team_id: Team chosen when the token was stored.
        configured: Whether a token has been stored and validated.
        default_team_id: Team used by sync when no override is given.
        user_id: Linear user id the token belongs to.
        last_authenticated: ISO-8601 timestamp of the last successful validation.
        webhook_id: Id of the webhook registered with Linear.
        webhook_secret: Shared secret used to sign webhook deliveries.
        webhook_url: Public URL the webhook delivers to.
    """

    api_key: str = Field(default="", alias="linearApiKey")
    team_id: str = Field(default="", alias="linearTeamId")
    configured: bool = Field(default=False, alias="linearConfigured")
    default_team_id: str = Field(default="", alias="linearDefaultTeamId")
    user_id: str = Field(default="", alias="linearUserId")
    last_authenticated: str = Field(default="", alias="linearLastAuthenticated")
    webhook_id: str = Field(default="", alias="linearWebhookId")
    webhook_secret: str = Field(default="", alias="linearWebhookSecret")
    webhook_url: str = Field(default="", alias="linearWebhookUrl")

    model_config = {"populate_by_name": True, "extra": "allow"}

    @property
    def resolved_team_id(self) -> str:
        return self.default_team_id or self.team_id


class Settings(BaseModel):
    """Runtime settings for the CLI and the webhook receiver."""

    data_dir: Path = Path("data")
    webhook_host: str = "127.0.0.1"
    webhook_port: int = Field(default=3456, ge=1, le=65535)
    webhook_path: str = "/linear-webhook"
    api_url: str = "https://api.linear.app/graphql"

    model_config = {"frozen": True}

    @property
    def config_path(self) -> Path:
        return self.data_dir / "config.json"

    @property
    def tasks_path(self) -> Path:
        return self.data_dir / "tasks.json"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from ``TASKSYNC_*`` environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for field, var in (
            ("data_dir", "TASKSYNC_DATA_DIR"),
            ("webhook_host", "TASKSYNC_WEBHOOK_HOST"),
            ("webhook_port", "TASKSYNC_WEBHOOK_PORT"),
            ("webhook_path", "TASKSYNC_WEBHOOK_PATH"),
            ("api_url", "TASKSYNC_API_URL"),
        ):
            raw = (env.get(var) or "").strip()
            if raw:
                values[field] = raw
        return cls.model_validate(values)
