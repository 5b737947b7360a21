"""CLI parser construction."""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version

from tasksync.contracts.sync import SyncDirection


def _package_version() -> str:
    try:
        return version("tasksync")
    except PackageNotFoundError:
        return "0.0.0"


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return parsed


def _name_list(value: str) -> tuple[str, ...]:
    names = tuple(name.strip() for name in value.split(",") if name.strip())
    if not names:
        raise argparse.ArgumentTypeError(f"expected comma-separated names, got {value!r}")
    return names


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasksync", description="Sync local tasks with Linear")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory holding config.json and tasks.json (default: $TASKSYNC_DATA_DIR or ./data)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    auth_parser = subparsers.add_parser("auth", help="Manage the Linear API token")
    auth_subparsers = auth_parser.add_subparsers(dest="auth_command", required=True)
    login_parser = auth_subparsers.add_parser("login", help="Validate and store an API token")
    login_parser.add_argument("--token", default=None, help="API token (default: $LINEAR_API_KEY or prompt)")
    login_parser.add_argument("--team", default=None, help="Default team id for sync")
    auth_subparsers.add_parser("status", help="Show stored credential status")
    auth_subparsers.add_parser("logout", help="Forget the stored API token")

    subparsers.add_parser("teams", help="List Linear teams")

    states_parser = subparsers.add_parser("states", help="List a team's workflow states")
    states_parser.add_argument("--team", default=None, help="Team id (default: stored default team)")

    projects_parser = subparsers.add_parser("projects", help="List a team's projects")
    projects_parser.add_argument("--team", default=None, help="Team id (default: stored default team)")

    issues_parser = subparsers.add_parser("issues", help="List Linear issues")
    issues_parser.add_argument("--team", default=None, help="Team id (default: stored default team)")
    issues_parser.add_argument("--assignee", default=None, help="Assignee user id, or 'me'")
    issues_parser.add_argument("--states", type=_name_list, default=None, help="Comma-separated state names")
    issues_parser.add_argument("--limit", type=_positive_int, default=10, help="Max issues to list (default: 10)")

    sync_parser = subparsers.add_parser("sync", help="Sync tasks with Linear")
    sync_parser.add_argument(
        "--direction",
        choices=[direction.value for direction in SyncDirection],
        default=SyncDirection.BOTH.value,
        help="Sync direction (default: both)",
    )
    sync_parser.add_argument("--limit", type=_positive_int, default=100, help="Max items per direction")
    sync_parser.add_argument("--team", default=None, help="Team id (default: stored default team)")

    pull_parser = subparsers.add_parser("pull", help="Pull Linear issues into local tasks")
    pull_parser.add_argument("--id", dest="issue_id", default=None, help="Pull only this Linear issue")
    pull_parser.add_argument("--team", default=None, help="Team id (default: stored default team)")
    pull_parser.add_argument("--states", type=_name_list, default=None, help="Comma-separated state names")
    pull_parser.add_argument("--limit", type=_positive_int, default=100, help="Max issues to pull")

    push_parser = subparsers.add_parser("push", help="Push local tasks to Linear")
    push_scope = push_parser.add_mutually_exclusive_group()
    push_scope.add_argument("--id", dest="task_id", default=None, help="Push only this local task")
    push_scope.add_argument(
        "--filter", dest="search_text", default=None, help="Push tasks whose title or description contains this text"
    )
    push_parser.add_argument("--team", default=None, help="Team id (default: stored default team)")
    push_parser.add_argument("--limit", type=_positive_int, default=100, help="Max tasks to push")

    webhook_parser = subparsers.add_parser("webhook", help="Linear webhook operations")
    webhook_subparsers = webhook_parser.add_subparsers(dest="webhook_command", required=True)
    serve_parser = webhook_subparsers.add_parser("serve", help="Run the webhook receiver")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: $TASKSYNC_WEBHOOK_HOST)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: $TASKSYNC_WEBHOOK_PORT)")
    serve_parser.add_argument("--secret", default=None, help="Signing secret (default: stored webhook secret)")
    register_parser = webhook_subparsers.add_parser("register", help="Register a webhook with Linear")
    register_parser.add_argument("--url", required=True, help="Public URL Linear should deliver to")
    register_parser.add_argument("--team", default=None, help="Team id (default: all public teams)")
    register_parser.add_argument("--label", default="tasksync", help="Webhook label shown in Linear")
    delete_parser = webhook_subparsers.add_parser("delete", help="Delete a webhook from Linear")
    delete_parser.add_argument("--id", dest="webhook_id", default=None, help="Webhook id (default: stored webhook)")

    return parser


__all__ = ["build_parser"]
