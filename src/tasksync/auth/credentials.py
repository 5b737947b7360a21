"""Credential store backed by ``config.json``."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from tasksync.auth.crypto import TokenCipher
from tasksync.config.loader import load_config, write_config
from tasksync.contracts.config import LinearConfig
from tasksync.contracts.exceptions import CredentialError
from tasksync.providers.linear.mapper import utc_timestamp

logger = logging.getLogger(__name__)


class CredentialStore:
    """Holds the encrypted Linear token, default team and webhook settings.

    Every read goes back to disk, and every setter writes the whole document,
    so several stores pointed at the same file observe each other's changes.
    """

    def __init__(self, config_path: str | Path, *, cipher: TokenCipher | None = None) -> None:
        self._path = Path(config_path)
        self._cipher = cipher or TokenCipher()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> LinearConfig:
        return load_config(self._path)

    def _save(self, config: LinearConfig) -> None:
        write_config(self._path, config)

    def get_token(self) -> str | None:
        """Return the decrypted token, or ``None`` when absent or undecryptable."""
        config = self.load()
        if not config.api_key:
            return None
        try:
            return self._cipher.decrypt(config.api_key)
        except CredentialError:
            logger.error("Stored Linear API token cannot be decrypted; run 'tasksync auth login' again")
            return None

    def set_token(self, token: str, team_id: str | None = None) -> None:
        token = token.strip()
        if not token:
            raise CredentialError("API token must not be empty")
        config = self.load()
        config.api_key = self._cipher.encrypt(token)
        config.configured = True
        if team_id:
            config.team_id = team_id
            if not config.default_team_id:
                config.default_team_id = team_id
        self._save(config)
        logger.debug("Stored Linear API token in %s", self._path)

    def clear(self) -> None:
        """Forget the token and everything learned from it. Webhook settings are kept."""
        config = self.load()
        config.api_key = ""
        config.team_id = ""
        config.configured = False
        config.user_id = ""
        config.last_authenticated = ""
        self._save(config)

    def is_configured(self) -> bool:
        config = self.load()
        return config.configured and bool(config.api_key)

    @property
    def default_team_id(self) -> str | None:
        return self.load().resolved_team_id or None

    def set_default_team(self, team_id: str) -> None:
        config = self.load()
        config.default_team_id = team_id
        self._save(config)

    def record_authentication(self, user_id: str, *, now: datetime | None = None) -> None:
        config = self.load()
        config.user_id = user_id
        config.last_authenticated = utc_timestamp(now)
        self._save(config)

    @property
    def webhook_secret(self) -> str | None:
        return self.load().webhook_secret or None

    def set_webhook(self, *, webhook_id: str, secret: str, url: str) -> None:
        config = self.load()
        config.webhook_id = webhook_id
        config.webhook_secret = secret
        config.webhook_url = url
        self._save(config)

    def clear_webhook(self) -> None:
        config = self.load()
        config.webhook_id = ""
        config.webhook_secret = ""
        config.webhook_url = ""
        self._save(config)
