"""Contracts-domain exports."""

from tasksync.contracts.config import LinearConfig, Settings
from tasksync.contracts.exceptions import (
    AuthenticationError,
    ConfigurationError,
    CredentialError,
    ErrorKind,
    GraphQLError,
    ItemSyncError,
    LinearApiError,
    LinkageError,
    MutationFailedError,
    NetworkError,
    RateLimitError,
    ServerError,
    SignatureError,
    StoreError,
    SyncError,
    TaskSyncError,
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
    WebhookEvent,
    WorkflowState,
)
from tasksync.contracts.progress import NullSyncProgress, SyncProgress
from tasksync.contracts.store import TaskStore
from tasksync.contracts.sync import SyncDirection, SyncErrorEntry, SyncOptions, SyncResult
from tasksync.contracts.task import CreateTaskParams, Task, TaskFilter, TaskPriority, TaskStatus, UpdateTaskParams

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "CreateTaskParams",
    "CredentialError",
    "ErrorKind",
    "GraphQLError",
    "IssueCreateInput",
    "IssueUpdateInput",
    "ItemSyncError",
    "LinearApiError",
    "LinearConfig",
    "LinearIssue",
    "LinearProject",
    "LinearTeam",
    "LinearUser",
    "LinearWebhook",
    "LinkageError",
    "MutationFailedError",
    "NetworkError",
    "NullSyncProgress",
    "RateLimitError",
    "ServerError",
    "Settings",
    "SignatureError",
    "StoreError",
    "SyncDirection",
    "SyncError",
    "SyncErrorEntry",
    "SyncOptions",
    "SyncProgress",
    "SyncResult",
    "Task",
    "TaskFilter",
    "TaskPriority",
    "TaskStatus",
    "TaskStore",
    "TaskSyncError",
    "UpdateTaskParams",
    "ValidationError",
    "WebhookCreateInput",
    "WebhookEvent",
    "WorkflowState",
]
