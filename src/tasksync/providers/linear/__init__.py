"""Linear GraphQL client and field mapping."""

from tasksync.providers.linear.client import (
    LINEAR_API_URL,
    LinearClient,
    authorization_header,
    build_issue_filter,
    classify_error,
    compute_backoff,
    normalize_error,
)

__all__ = [
    "LINEAR_API_URL",
    "LinearClient",
    "authorization_header",
    "build_issue_filter",
    "classify_error",
    "compute_backoff",
    "normalize_error",
]
