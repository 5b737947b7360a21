"""HMAC-SHA256 signatures of webhook deliveries."""

from __future__ import annotations

import hashlib
import hmac

from tasksync.contracts.exceptions import SignatureError

SIGNATURE_HEADER = "Linear-Signature"


def compute_signature(secret: str, body: bytes) -> str:
    """Hex digest Linear sends in the ``Linear-Signature`` header."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    if not signature:
        return False
    try:
        received = bytes.fromhex(signature.strip())
    except ValueError:
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return hmac.compare_digest(expected, received)


def require_signature(secret: str, body: bytes, signature: str | None) -> None:
    """Check *signature* against *body*.

    Raises:
        SignatureError: If *signature* is missing or does not sign *body*.
    """
    if not signature:
        raise SignatureError(f"missing {SIGNATURE_HEADER} header")
    if not verify_signature(secret, body, signature):
        raise SignatureError("webhook signature does not match payload")
