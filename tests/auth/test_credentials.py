"""Tests for the config-backed credential store."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from tasksync.auth.credentials import CredentialStore
from tasksync.auth.crypto import TokenCipher
from tasksync.contracts.exceptions import ConfigurationError, CredentialError


def test_token_is_encrypted_on_disk(tmp_path: Path, cipher: TokenCipher) -> None:
    store = CredentialStore(tmp_path / "config.json", cipher=cipher)
    store.set_token("lin_api_abc", team_id="team-1")

    raw = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
    assert raw["linearApiKey"] != "lin_api_abc"
    assert raw["linearTeamId"] == "team-1"
    assert raw["linearConfigured"] is True
    assert store.get_token() == "lin_api_abc"
    assert store.is_configured()


def test_first_team_becomes_default(empty_credentials: CredentialStore) -> None:
    empty_credentials.set_token("lin_api_abc", team_id="team-1")
    assert empty_credentials.default_team_id == "team-1"

    empty_credentials.set_default_team("team-2")
    empty_credentials.set_token("lin_api_abc", team_id="team-3")
    assert empty_credentials.default_team_id == "team-2"


def test_missing_file_means_not_configured(empty_credentials: CredentialStore) -> None:
    assert empty_credentials.get_token() is None
    assert empty_credentials.default_team_id is None
    assert not empty_credentials.is_configured()


def test_empty_token_is_rejected(empty_credentials: CredentialStore) -> None:
    with pytest.raises(CredentialError):
        empty_credentials.set_token("   ")


def test_undecryptable_token_logs_and_returns_none(
    tmp_path: Path, cipher: TokenCipher, caplog: pytest.LogCaptureFixture
) -> None:
    CredentialStore(tmp_path / "config.json", cipher=cipher).set_token("lin_api_abc")
    other_machine = CredentialStore(tmp_path / "config.json", cipher=TokenCipher(salt="elsewhere"))

    with caplog.at_level(logging.ERROR, logger="tasksync.auth.credentials"):
        assert other_machine.get_token() is None
    assert "cannot be decrypted" in caplog.text


def test_clear_keeps_webhook_and_unknown_keys(tmp_path: Path, cipher: TokenCipher) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
    store = CredentialStore(path, cipher=cipher)
    store.set_token("lin_api_abc", team_id="team-1")
    store.record_authentication("user-1")
    store.set_webhook(webhook_id="wh-1", secret="s", url="https://example.com")

    store.clear()

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["theme"] == "dark"
    assert raw["linearApiKey"] == ""
    assert raw["linearConfigured"] is False
    assert raw["linearUserId"] == ""
    assert raw["linearWebhookId"] == "wh-1"
    assert store.get_token() is None


def test_record_authentication_sets_user_and_timestamp(credentials: CredentialStore) -> None:
    credentials.record_authentication("user-1")
    config = credentials.load()

    assert config.user_id == "user-1"
    assert config.last_authenticated.endswith("Z")


def test_invalid_config_file_raises(tmp_path: Path, cipher: TokenCipher) -> None:
    path = tmp_path / "config.json"
    path.write_text("{broken", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="invalid JSON"):
        CredentialStore(path, cipher=cipher).get_token()
