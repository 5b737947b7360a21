"""Credential storage."""

from tasksync.auth.credentials import CredentialStore
from tasksync.auth.crypto import TokenCipher

__all__ = ["CredentialStore", "TokenCipher"]
