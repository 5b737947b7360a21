"""Sync, pull and push commands and summary formatting."""

from __future__ import annotations

import argparse

from tasksync.cli.common import CliContext, pluralize
from tasksync.cli.progress.rich import RichSyncProgress
from tasksync.contracts.sync import SyncDirection, SyncOptions, SyncResult


def format_sync_summary(result: SyncResult, options: SyncOptions) -> str:
    lines = [
        "",
        f"tasksync - sync complete ({options.direction.value})",
        "",
        f"  Added:     {result.added}",
        f"  Updated:   {result.updated}",
    ]
    if result.conflicts:
        lines.append(f"  Conflicts: {result.conflicts}")
    if not result.errors:
        if result.added == 0 and result.updated == 0:
            lines.append("  Status:    nothing to sync")
        lines.append("")
        return "\n".join(lines)

    lines.append(f"  Errors:    {pluralize(len(result.errors), 'error')}")
    for entry in result.errors:
        target = f" [{entry.item_id}]" if entry.item_id else ""
        lines.append(f"    - {entry.code}{target}: {entry.message}")
    lines.append("")
    return "\n".join(lines)


async def _run_engine(args: argparse.Namespace, ctx: CliContext, options: SyncOptions) -> int:
    if not args.verbose:
        with RichSyncProgress() as progress:
            result = await ctx.engine(progress).sync(options)
    else:
        result = await ctx.engine().sync(options)

    print(format_sync_summary(result, options))
    return 0 if result.ok else 5


async def run_sync(args: argparse.Namespace, ctx: CliContext) -> int:
    options = SyncOptions(direction=SyncDirection(args.direction), limit=args.limit, team_id=args.team)
    return await _run_engine(args, ctx, options)


async def run_pull(args: argparse.Namespace, ctx: CliContext) -> int:
    options = SyncOptions(
        direction=SyncDirection.PULL,
        limit=args.limit,
        team_id=args.team,
        issue_id=args.issue_id,
        state_names=args.states,
    )
    return await _run_engine(args, ctx, options)


async def run_push(args: argparse.Namespace, ctx: CliContext) -> int:
    options = SyncOptions(
        direction=SyncDirection.PUSH,
        limit=args.limit,
        team_id=args.team,
        task_id=args.task_id,
        search_text=args.search_text,
    )
    return await _run_engine(args, ctx, options)


__all__ = ["format_sync_summary", "run_pull", "run_push", "run_sync"]
