"""CLI app entrypoint and error mapping."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable

from tasksync.cli.commands import auth as auth_command
from tasksync.cli.commands import query as query_command
from tasksync.cli.commands import sync as sync_command
from tasksync.cli.commands import webhook as webhook_command
from tasksync.cli.common import CliContext
from tasksync.cli.parser import build_parser
from tasksync.contracts.exceptions import (
    ConfigurationError,
    CredentialError,
    LinearApiError,
    StoreError,
    SyncError,
)

Handler = Callable[[argparse.Namespace, CliContext], Awaitable[int]]

_HANDLERS: dict[tuple[str, str | None], Handler] = {
    ("auth", "login"): auth_command.run_login,
    ("auth", "status"): auth_command.run_status,
    ("auth", "logout"): auth_command.run_logout,
    ("teams", None): query_command.run_teams,
    ("states", None): query_command.run_states,
    ("projects", None): query_command.run_projects,
    ("issues", None): query_command.run_issues,
    ("sync", None): sync_command.run_sync,
    ("pull", None): sync_command.run_pull,
    ("push", None): sync_command.run_push,
    ("webhook", "serve"): webhook_command.run_serve,
    ("webhook", "register"): webhook_command.run_register,
    ("webhook", "delete"): webhook_command.run_delete,
}


def _resolve_handler(args: argparse.Namespace) -> Handler | None:
    subcommand = getattr(args, f"{args.command}_command", None)
    return _HANDLERS.get((args.command, subcommand))


async def _run(handler: Handler, args: argparse.Namespace) -> int:
    return await handler(args, CliContext.from_args(args))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = _resolve_handler(args)
    if handler is None:
        print(f"error: unsupported command: {args.command}", file=sys.stderr)
        return 2

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s", stream=sys.stderr)

    try:
        return asyncio.run(_run(handler, args))
    except (ConfigurationError, CredentialError, StoreError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 3
    except LinearApiError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 4
    except SyncError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 5
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover
        print(f"error: {exc}", file=sys.stderr)
        return 1


__all__ = ["main"]
