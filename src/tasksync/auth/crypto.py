"""At-rest obfuscation of the stored API token.

The Fernet key is derived from the machine identity (user, host, platform),
not from a user secret. Anyone who can read ``config.json`` on the same
machine can recover the token; the encryption only keeps it out of plain
sight and makes the file useless when copied elsewhere.
"""

from __future__ import annotations

import base64
import getpass
import hashlib
import platform
import socket

from cryptography.fernet import Fernet, InvalidToken

from tasksync.contracts.exceptions import CredentialError


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (OSError, KeyError):
        return "unknown"


def machine_salt(*, user: str | None = None, host: str | None = None, system: str | None = None) -> str:
    user = user if user is not None else _current_user()
    host = host if host is not None else socket.gethostname()
    system = system if system is not None else platform.system().lower()
    return f"tasksync-{user}-{host}-{system}"


def derive_key(salt: str) -> bytes:
    return base64.urlsafe_b64encode(hashlib.sha256(salt.encode("utf-8")).digest())


class TokenCipher:
    """Encrypts and decrypts tokens with a machine-bound Fernet key."""

    def __init__(self, salt: str | None = None) -> None:
        self._fernet = Fernet(derive_key(salt if salt is not None else machine_salt()))

    def encrypt(self, token: str) -> str:
        return self._fernet.encrypt(token.encode("utf-8")).decode("ascii")

    def decrypt(self, encrypted: str) -> str:
        """Return the clear-text token.

        Raises:
            CredentialError: If *encrypted* was produced with another key or is corrupt.
        """
        try:
            return self._fernet.decrypt(encrypted.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError, ValueError) as exc:
            raise CredentialError("stored API token cannot be decrypted on this machine") from exc
