"""Shared test fixtures for tasksync tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from tasksync.auth.credentials import CredentialStore
from tasksync.auth.crypto import TokenCipher
from tests.fakes.linear_client import TEAM_ID

TEST_TOKEN = "lin_api_test_token"


@pytest.fixture
def cipher() -> TokenCipher:
    return TokenCipher(salt="tasksync-tests")


@pytest.fixture
def credentials(tmp_path: Path, cipher: TokenCipher) -> CredentialStore:
    """A credential store holding a token and default team."""
    store = CredentialStore(tmp_path / "config.json", cipher=cipher)
    store.set_token(TEST_TOKEN, team_id=TEAM_ID)
    return store


@pytest.fixture
def empty_credentials(tmp_path: Path, cipher: TokenCipher) -> CredentialStore:
    return CredentialStore(tmp_path / "config.json", cipher=cipher)
