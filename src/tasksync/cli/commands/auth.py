"""auth login | status | logout."""

from __future__ import annotations

import argparse
import getpass
import os

from tasksync.cli.common import CliContext, format_or_none
from tasksync.contracts.exceptions import ConfigurationError

TOKEN_ENV_VAR = "LINEAR_API_KEY"


def resolve_login_token(args: argparse.Namespace) -> str:
    token = (args.token or os.getenv(TOKEN_ENV_VAR) or "").strip()
    if not token:
        token = getpass.getpass("Linear API key: ").strip()
    if not token:
        raise ConfigurationError(f"No API token given. Pass --token or set {TOKEN_ENV_VAR}.")
    return token


async def run_login(args: argparse.Namespace, ctx: CliContext) -> int:
    token = resolve_login_token(args)
    async with ctx.client(token) as client:
        user = await client.validate_credentials()
        team_id = args.team
        if team_id is None:
            teams = await client.list_teams()
            if len(teams) == 1:
                team_id = teams[0].id

    ctx.credentials.set_token(token, team_id=team_id)
    ctx.credentials.record_authentication(user.id)
    print(f"Authenticated as {user.name or user.email} ({user.id})")
    print(f"Default team: {format_or_none(ctx.credentials.default_team_id)}")
    return 0


def format_status(ctx: CliContext) -> str:
    config = ctx.credentials.load()
    lines = [
        "",
        "tasksync - Linear credentials",
        "",
        f"  Config:        {ctx.credentials.path}",
        f"  Configured:    {'yes' if ctx.credentials.is_configured() else 'no'}",
        f"  Default team:  {format_or_none(config.resolved_team_id)}",
        f"  User:          {format_or_none(config.user_id)}",
        f"  Last auth:     {format_or_none(config.last_authenticated)}",
        f"  Webhook:       {format_or_none(config.webhook_url)}",
        "",
    ]
    return "\n".join(lines)


async def run_status(args: argparse.Namespace, ctx: CliContext) -> int:
    print(format_status(ctx))
    return 0


async def run_logout(args: argparse.Namespace, ctx: CliContext) -> int:
    ctx.credentials.clear()
    print("Linear credentials removed")
    return 0


__all__ = ["format_status", "resolve_login_token", "run_login", "run_logout", "run_status"]
