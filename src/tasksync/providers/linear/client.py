"""Async Linear GraphQL client with request pacing, retry, and error normalization."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable, Sequence
from types import TracebackType
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PayloadValidationError

from tasksync.contracts.exceptions import (
    AuthenticationError,
    ErrorKind,
    GraphQLError,
    LinearApiError,
    MutationFailedError,
    NetworkError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from tasksync.contracts.linear import (
    IssueCreateInput,
    IssueUpdateInput,
    LinearIssue,
    LinearProject,
    LinearTeam,
    LinearUser,
    LinearWebhook,
    WebhookCreateInput,
    WorkflowState,
)
from tasksync.providers.linear import queries

logger = logging.getLogger(__name__)

LINEAR_API_URL = "https://api.linear.app/graphql"
MAX_ATTEMPTS = 3
BASE_DELAY = 1.0
MIN_REQUEST_INTERVAL = 0.1
MAX_REQUEST_INTERVAL = 5.0

_RATE_LIMIT_PATTERNS = ("rate limit", "ratelimit", "too many requests")
_VALIDATION_CODES = frozenset(
    {"INVALID_INPUT", "BAD_USER_INPUT", "GRAPHQL_VALIDATION_FAILED", "GRAPHQL_PARSE_FAILED", "VALIDATION_ERROR"}
)
_AUTH_CODES = frozenset({"AUTHENTICATION_ERROR", "UNAUTHENTICATED", "FORBIDDEN"})
_SERVER_CODES = frozenset({"INTERNAL_ERROR", "INTERNAL_SERVER_ERROR", "LOCK_TIMEOUT"})

_ModelT = TypeVar("_ModelT", bound=BaseModel)

_ERROR_TYPES: dict[ErrorKind, type[LinearApiError]] = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.RATE_LIMIT: RateLimitError,
    ErrorKind.AUTHENTICATION: AuthenticationError,
    ErrorKind.SERVER: ServerError,
    ErrorKind.GRAPHQL: GraphQLError,
    ErrorKind.MUTATION_FAILED: MutationFailedError,
    ErrorKind.UNKNOWN: LinearApiError,
}


class _GraphQLErrors(Exception):
    """The HTTP exchange succeeded but the payload carried GraphQL ``errors``."""

    def __init__(self, errors: list[Any], status_code: int) -> None:
        super().__init__(str(errors))
        self.errors = errors
        self.status_code = status_code


def authorization_header(token: str) -> str:
    """Build the ``Authorization`` header value for *token*.

    Personal API keys (``lin_api_...``) are sent as-is; OAuth access tokens
    need the ``Bearer`` scheme.
    """
    token = token.strip()
    if token.startswith("lin_api_") or token.lower().startswith("bearer "):
        return token
    return f"Bearer {token}"


def compute_backoff(
    attempt: int,
    *,
    base_delay: float = BASE_DELAY,
    rate_limited: bool = False,
    rand: Callable[[float, float], float] = random.uniform,
) -> float:
    """Delay in seconds before retrying after failed *attempt* (1-based).

    ``base_delay * 2**(attempt - 1)`` with +/-20% jitter, doubled for
    rate-limit failures.
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    delay = base_delay * 2 ** (attempt - 1) * rand(0.8, 1.2)
    return delay * 2 if rate_limited else delay


def _matches_rate_limit(message: str) -> bool:
    lowered = message.lower()
    return any(pattern in lowered for pattern in _RATE_LIMIT_PATTERNS)


def _status_code_of(exc: BaseException) -> int | None:
    if isinstance(exc, _GraphQLErrors):
        return exc.status_code
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


def _graphql_errors_of(exc: BaseException) -> list[dict[str, Any]]:
    raw: Any = None
    if isinstance(exc, _GraphQLErrors):
        raw = exc.errors
    elif isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            return []
        if isinstance(body, dict):
            raw = body.get("errors")
    if not isinstance(raw, list):
        return []
    return [error for error in raw if isinstance(error, dict)]


def _kind_from_graphql(error: dict[str, Any]) -> ErrorKind:
    extensions = error.get("extensions")
    codes: list[str] = []
    if isinstance(extensions, dict):
        for key in ("code", "type"):
            value = extensions.get(key)
            if isinstance(value, str) and value:
                codes.append(value.strip().upper().replace(" ", "_"))
    for code in codes:
        if "RATELIMIT" in code or "RATE_LIMIT" in code:
            return ErrorKind.RATE_LIMIT
        if code in _AUTH_CODES:
            return ErrorKind.AUTHENTICATION
        if code in _VALIDATION_CODES:
            return ErrorKind.VALIDATION
        if code in _SERVER_CODES:
            return ErrorKind.SERVER
    if _matches_rate_limit(str(error.get("message", ""))):
        return ErrorKind.RATE_LIMIT
    return ErrorKind.GRAPHQL


def _kind_from_status(status_code: int) -> ErrorKind:
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    if status_code in (401, 403):
        return ErrorKind.AUTHENTICATION
    if status_code in (400, 422):
        return ErrorKind.VALIDATION
    if status_code >= 500:
        return ErrorKind.SERVER
    return ErrorKind.UNKNOWN


def normalize_error(exc: BaseException) -> LinearApiError:
    """Convert any request failure into a :class:`LinearApiError`.

    Sources are inspected in order and the first match wins: GraphQL errors
    in the response body, then the HTTP status, then the exception itself.
    """
    if isinstance(exc, LinearApiError):
        return exc

    status_code = _status_code_of(exc)

    errors = _graphql_errors_of(exc)
    if errors:
        first = errors[0]
        extensions = first.get("extensions")
        kind = _kind_from_graphql(first)
        message = str(first.get("message") or "GraphQL error")
        return _ERROR_TYPES[kind](
            message,
            kind=kind,
            status_code=status_code,
            details=extensions if isinstance(extensions, dict) else None,
        )

    if status_code is not None:
        kind = _kind_from_status(status_code)
        return _ERROR_TYPES[kind](f"Linear API returned HTTP {status_code}", kind=kind, status_code=status_code)

    message = str(exc) or type(exc).__name__
    if _matches_rate_limit(message):
        kind = ErrorKind.RATE_LIMIT
    elif isinstance(exc, httpx.TransportError):
        kind = ErrorKind.NETWORK
    else:
        kind = ErrorKind.UNKNOWN
    return _ERROR_TYPES[kind](message, kind=kind)


def build_issue_filter(
    team_id: str | None = None,
    *,
    state_names: Sequence[str] | None = None,
    assignee_id: str | None = None,
) -> dict[str, Any]:
    """Build an ``IssueFilter`` for :meth:`LinearClient.list_issues`. Empty criteria are left out."""
    issue_filter: dict[str, Any] = {}
    if team_id:
        issue_filter["team"] = {"id": {"eq": team_id}}
    names = [name.strip() for name in state_names or () if name.strip()]
    if names:
        issue_filter["state"] = {"name": {"in": names}}
    if assignee_id:
        issue_filter["assignee"] = {"id": {"eq": assignee_id}}
    return issue_filter


def classify_error(exc: BaseException) -> ErrorKind:
    """Return the failure classification for *exc* (see :func:`normalize_error`)."""
    return normalize_error(exc).kind


class LinearClient:
    """GraphQL client for the Linear API.

    Use as an async context manager; one instance per sync run. Calls on an
    instance are paced: each call waits until ``min_interval`` seconds have
    passed since the previous HTTP exchange finished. Rate-limit failures
    permanently double ``min_interval`` (capped) for the rest of the
    instance's life.

    Args:
        token: Linear API key or OAuth access token.
        url: GraphQL endpoint.
        timeout: Per-request timeout in seconds.
        max_attempts: Attempts per operation, including the first.
        base_delay: Backoff base in seconds.
        min_interval: Initial pacing interval in seconds.
        max_interval: Upper bound for the pacing interval.
        transport: Optional httpx transport (tests inject ``httpx.MockTransport``).
        sleep: Awaitable sleep used for pacing and backoff.
        clock: Monotonic clock used for pacing.
    """

    def __init__(
        self,
        token: str,
        *,
        url: str = LINEAR_API_URL,
        timeout: float = 30.0,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY,
        min_interval: float = MIN_REQUEST_INTERVAL,
        max_interval: float = MAX_REQUEST_INTERVAL,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._token = token
        self._url = url
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._min_interval = min_interval
        self._max_interval = max_interval
        self._transport = transport
        self._sleep = sleep
        self._clock = clock

        self._client: httpx.AsyncClient | None = None
        self._last_call_end: float | None = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @property
    def last_call_end(self) -> float | None:
        return self._last_call_end

    async def __aenter__(self) -> LinearClient:
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": authorization_header(self._token),
                "Content-Type": "application/json",
            },
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Core execution
    # ------------------------------------------------------------------

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        *,
        operation: str = "graphql",
    ) -> dict[str, Any]:
        """Run a GraphQL operation and return its ``data`` payload.

        Raises:
            LinearApiError: Normalized failure after all attempts are exhausted.
        """
        if self._client is None:
            raise LinearApiError("Linear client is not initialized. Use 'async with'.")

        await self._pace()

        last_error: LinearApiError | None = None
        cause: BaseException | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._post(query, variables or {})
            except (httpx.HTTPError, _GraphQLErrors, ValueError) as exc:
                cause = exc
                last_error = normalize_error(exc)

            rate_limited = last_error.kind is ErrorKind.RATE_LIMIT
            if rate_limited:
                self._raise_pacing_floor()
            if attempt >= self._max_attempts:
                break

            delay = compute_backoff(attempt, base_delay=self._base_delay, rate_limited=rate_limited)
            logger.warning(
                "Retrying Linear operation %s after %s error (attempt %d, %.2fs)",
                operation,
                last_error.kind.value,
                attempt,
                delay,
                extra={"operation": operation, "attempt": attempt},
            )
            await self._sleep(delay)

        assert last_error is not None
        logger.error("Linear operation %s failed: %s", operation, last_error.message)
        raise last_error from cause

    async def _pace(self) -> None:
        if self._last_call_end is None:
            return
        wait = self._min_interval - (self._clock() - self._last_call_end)
        if wait > 0:
            await self._sleep(wait)

    def _raise_pacing_floor(self) -> None:
        raised = min(self._min_interval * 2, self._max_interval)
        if raised > self._min_interval:
            logger.info("Rate limited by Linear; pacing interval now %.2fs", raised)
        self._min_interval = raised

    async def _post(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        assert self._client is not None
        try:
            response = await self._client.post(self._url, json={"query": query, "variables": variables})
        finally:
            self._last_call_end = self._clock()

        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("GraphQL response is not a JSON object")
        errors = payload.get("errors")
        if errors:
            raise _GraphQLErrors(errors if isinstance(errors, list) else [errors], response.status_code)
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ValueError("GraphQL response missing data payload")
        return data

    # ------------------------------------------------------------------
    # Viewer / teams
    # ------------------------------------------------------------------

    async def validate_credentials(self) -> LinearUser:
        """Return the user owning the token.

        Raises:
            AuthenticationError: If the token is rejected.
        """
        data = await self.execute(queries.VIEWER, operation="viewer")
        return self._parse(LinearUser, self._require_dict(data, "viewer"))

    async def list_teams(self) -> list[LinearTeam]:
        data = await self.execute(queries.TEAMS, operation="teams")
        return [self._parse(LinearTeam, node) for node in self._nodes(data, "teams")]

    async def get_team(self, team_id: str) -> LinearTeam | None:
        data = await self.execute(queries.TEAM, {"id": team_id}, operation="team")
        team = data.get("team")
        return self._parse(LinearTeam, team) if isinstance(team, dict) else None

    async def list_workflow_states(self, team_id: str) -> list[WorkflowState]:
        data = await self.execute(queries.WORKFLOW_STATES, {"teamId": team_id}, operation="workflow_states")
        return [self._parse(WorkflowState, node) for node in self._nodes(data, "workflowStates")]

    async def list_projects(self, team_id: str, *, first: int = 100) -> list[LinearProject]:
        data = await self.execute(queries.PROJECTS, {"teamId": team_id, "first": first}, operation="projects")
        return [self._parse(LinearProject, node) for node in self._nodes(data, "projects")]

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def list_issues(self, filter: dict[str, Any] | None = None, *, first: int = 50) -> list[LinearIssue]:
        variables = {"filter": filter or {}, "first": first}
        data = await self.execute(queries.ISSUES, variables, operation="list_issues")
        return [self._parse(LinearIssue, node) for node in self._nodes(data, "issues")]

    async def get_issue(self, issue_id: str) -> LinearIssue | None:
        """Fetch one issue; ``None`` when Linear does not know the id."""
        try:
            data = await self.execute(queries.ISSUE, {"id": issue_id}, operation="get_issue")
        except LinearApiError as exc:
            if "not found" in exc.message.lower():
                return None
            raise
        issue = data.get("issue")
        return self._parse(LinearIssue, issue) if isinstance(issue, dict) else None

    async def create_issue(self, input: IssueCreateInput) -> LinearIssue:
        """Create an issue.

        Raises:
            MutationFailedError: If Linear answers ``success: false``.
        """
        data = await self.execute(queries.ISSUE_CREATE, {"input": input.to_api()}, operation="create_issue")
        payload = self._require_dict(data, "issueCreate")
        if not payload.get("success"):
            raise MutationFailedError(f"Failed to create issue: {input.title!r}")
        return self._parse(LinearIssue, self._require_dict(payload, "issue"))

    async def update_issue(self, issue_id: str, input: IssueUpdateInput) -> LinearIssue:
        """Update an issue.

        A failure after retries leaves the remote state unknown: the update may
        or may not have been applied.

        Raises:
            MutationFailedError: If Linear answers ``success: false``.
        """
        data = await self.execute(
            queries.ISSUE_UPDATE,
            {"id": issue_id, "input": input.to_api()},
            operation="update_issue",
        )
        payload = self._require_dict(data, "issueUpdate")
        if not payload.get("success"):
            raise MutationFailedError(f"Failed to update issue: {issue_id}")
        return self._parse(LinearIssue, self._require_dict(payload, "issue"))

    async def delete_issue(self, issue_id: str) -> bool:
        data = await self.execute(queries.ISSUE_DELETE, {"id": issue_id}, operation="delete_issue")
        return bool(self._require_dict(data, "issueDelete").get("success"))

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def create_webhook(self, input: WebhookCreateInput) -> LinearWebhook:
        data = await self.execute(queries.WEBHOOK_CREATE, {"input": input.to_api()}, operation="create_webhook")
        payload = self._require_dict(data, "webhookCreate")
        if not payload.get("success"):
            raise MutationFailedError(f"Failed to create webhook for {input.url}")
        return self._parse(LinearWebhook, self._require_dict(payload, "webhook"))

    async def delete_webhook(self, webhook_id: str) -> bool:
        data = await self.execute(queries.WEBHOOK_DELETE, {"id": webhook_id}, operation="delete_webhook")
        return bool(self._require_dict(data, "webhookDelete").get("success"))

    # ------------------------------------------------------------------
    # Payload helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(model: type[_ModelT], payload: Any) -> _ModelT:
        try:
            return model.model_validate(payload)
        except PayloadValidationError as exc:
            raise LinearApiError(
                f"Unexpected {model.__name__} payload from Linear: {exc.error_count()} invalid field(s)",
                kind=ErrorKind.UNKNOWN,
                details=exc.errors(include_url=False, include_context=False),
            ) from exc

    @staticmethod
    def _require_dict(data: dict[str, Any], key: str) -> dict[str, Any]:
        value = data.get(key)
        if not isinstance(value, dict):
            raise LinearApiError(f"Missing/invalid object at key '{key}'")
        return value

    @classmethod
    def _nodes(cls, data: dict[str, Any], key: str) -> list[dict[str, Any]]:
        nodes = cls._require_dict(data, key).get("nodes")
        if not isinstance(nodes, list):
            raise LinearApiError(f"Missing/invalid list at key '{key}.nodes'")
        return [node for node in nodes if isinstance(node, dict)]
