"""Shared CLI wiring and formatting helpers."""

from __future__ import annotations

import argparse
from dataclasses import dataclass

from tasksync.auth.credentials import CredentialStore
from tasksync.config.settings import load_settings
from tasksync.contracts.config import Settings
from tasksync.contracts.exceptions import ConfigurationError
from tasksync.contracts.progress import SyncProgress
from tasksync.engine.engine import SyncEngine
from tasksync.persistence.task_store import JsonTaskStore
from tasksync.providers.linear.client import LinearClient


@dataclass(frozen=True)
class CliContext:
    settings: Settings
    credentials: CredentialStore
    store: JsonTaskStore

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> CliContext:
        settings = load_settings(data_dir=getattr(args, "data_dir", None))
        return cls(
            settings=settings,
            credentials=CredentialStore(settings.config_path),
            store=JsonTaskStore(settings.tasks_path),
        )

    def require_token(self) -> str:
        token = self.credentials.get_token()
        if not token:
            raise ConfigurationError("Linear API token is not configured. Run 'tasksync auth login' first.")
        return token

    def require_team(self, team_id: str | None) -> str:
        resolved = team_id or self.credentials.default_team_id
        if not resolved:
            raise ConfigurationError("No Linear team selected. Pass --team or set a default team.")
        return resolved

    def client(self, token: str | None = None) -> LinearClient:
        return LinearClient(token or self.require_token(), url=self.settings.api_url)

    def engine(self, progress: SyncProgress | None = None) -> SyncEngine:
        return SyncEngine(
            self.credentials,
            self.store,
            api_url=self.settings.api_url,
            progress=progress,
        )


def format_or_none(value: str | None) -> str:
    return value if value else "none"


def pluralize(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"
