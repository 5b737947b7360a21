"""Exception hierarchy for tasksync.

All tasksync exceptions inherit from :class:`TaskSyncError`, so callers can
catch any library failure with a single ``except`` clause while still
handling specific failure modes.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tasksync.contracts.sync import SyncResult


class TaskSyncError(Exception):
    """Base exception for all tasksync errors."""


class ConfigurationError(TaskSyncError):
    """Missing or invalid credentials, team, or configuration file.

    Attributes:
        result: Zero-count sync result describing the failure, when raised
            by the sync engine before any network call.
    """

    def __init__(self, message: str, *, result: SyncResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class CredentialError(TaskSyncError):
    """The stored API token cannot be encrypted or decrypted."""


class StoreError(TaskSyncError):
    """The local task store could not be read or written."""


class ErrorKind(StrEnum):
    """Classification attached to every normalized API failure."""

    VALIDATION = "validation"
    NETWORK = "network"
    RATE_LIMIT = "rate-limit"
    AUTHENTICATION = "authentication"
    SERVER = "server"
    GRAPHQL = "graphql"
    MUTATION_FAILED = "mutation-failed"
    UNKNOWN = "unknown"


class LinearApiError(TaskSyncError):
    """Normalized failure raised by :class:`~tasksync.providers.linear.client.LinearClient`.

    Attributes:
        kind: Classification of the failure.
        status_code: HTTP status code, when one was received.
        details: Provider-specific payload (e.g. GraphQL ``extensions``).
    """

    default_kind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.status_code = status_code
        self.details = details

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, kind={self.kind.value!r}, status_code={self.status_code!r})"


class NetworkError(LinearApiError):
    """Transport-level failure (connection reset, timeout, DNS)."""

    default_kind = ErrorKind.NETWORK


class RateLimitError(LinearApiError):
    """The provider throttled the request."""

    default_kind = ErrorKind.RATE_LIMIT


class ValidationError(LinearApiError):
    """The provider rejected the request input."""

    default_kind = ErrorKind.VALIDATION


class AuthenticationError(LinearApiError):
    """The API token was rejected."""

    default_kind = ErrorKind.AUTHENTICATION


class ServerError(LinearApiError):
    """The provider answered with a 5xx status."""

    default_kind = ErrorKind.SERVER


class GraphQLError(LinearApiError):
    """The response carried GraphQL errors without a known classification."""

    default_kind = ErrorKind.GRAPHQL


class MutationFailedError(LinearApiError):
    """A mutation returned HTTP 200 with ``success: false``."""

    default_kind = ErrorKind.MUTATION_FAILED


class SignatureError(TaskSyncError):
    """Webhook signature is missing or does not match the payload."""


class ItemSyncError(TaskSyncError):
    """Synchronizing a single item failed; the batch continues.

    Attributes:
        item_id: Local task id or remote issue id of the failing item.
        code: Result error code (e.g. ``CREATE_ISSUE_FAILED``).
    """

    def __init__(self, message: str, *, item_id: str, code: str) -> None:
        super().__init__(message)
        self.item_id = item_id
        self.code = code


class LinkageError(ItemSyncError):
    """A remote issue was created but the local task could not be linked to it.

    The task still has no remote id, so the next push would create a
    duplicate. Requires manual reconciliation.
    """

    def __init__(self, message: str, *, item_id: str, remote_id: str, remote_key: str = "") -> None:
        super().__init__(message, item_id=item_id, code="LINK_FAILED")
        self.remote_id = remote_id
        self.remote_key = remote_key


class SyncError(TaskSyncError):
    """Engine-level failure that stopped a sync run before item processing.

    Attributes:
        result: Result with zero counts and a single top-level error.
    """

    def __init__(self, message: str, *, result: SyncResult | None = None) -> None:
        super().__init__(message)
        self.result = result
