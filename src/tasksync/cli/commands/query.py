"""Read-only Linear queries: teams, states, projects and issues."""

from __future__ import annotations

import argparse

from tasksync.cli.common import CliContext
from tasksync.contracts.linear import LinearIssue, LinearProject, LinearTeam, WorkflowState
from tasksync.providers.linear.client import build_issue_filter


def format_teams(teams: list[LinearTeam], default_team_id: str | None) -> str:
    if not teams:
        return "No teams found"
    lines = []
    for team in teams:
        marker = "*" if team.id == default_team_id else " "
        lines.append(f"{marker} {team.key:<8} {team.name:<30} {team.id}")
    return "\n".join(lines)


def format_states(states: list[WorkflowState]) -> str:
    if not states:
        return "No workflow states found"
    ordered = sorted(states, key=lambda state: (state.type, state.position))
    return "\n".join(f"  {state.type:<10} {state.name:<24} {state.id}" for state in ordered)


def format_projects(projects: list[LinearProject]) -> str:
    if not projects:
        return "No projects found"
    lines = []
    for project in projects:
        done = f"{project.progress:.0%}" if project.progress is not None else "-"
        lines.append(f"  {project.name:<30} {project.state or '-':<12} {done:>5}  {project.id}")
    return "\n".join(lines)


def format_issues(issues: list[LinearIssue]) -> str:
    if not issues:
        return "No issues found"
    lines = []
    for issue in issues:
        state = issue.state.name if issue.state else "-"
        assignee = issue.assignee.name if issue.assignee and issue.assignee.name else "unassigned"
        lines.append(f"  {issue.identifier or issue.id:<10} {state:<16} {issue.title}  ({assignee})")
    return "\n".join(lines)


async def run_teams(args: argparse.Namespace, ctx: CliContext) -> int:
    async with ctx.client() as client:
        teams = await client.list_teams()
    print(format_teams(teams, ctx.credentials.default_team_id))
    return 0


async def run_states(args: argparse.Namespace, ctx: CliContext) -> int:
    team_id = ctx.require_team(args.team)
    async with ctx.client() as client:
        states = await client.list_workflow_states(team_id)
    print(format_states(states))
    return 0


async def run_projects(args: argparse.Namespace, ctx: CliContext) -> int:
    team_id = ctx.require_team(args.team)
    async with ctx.client() as client:
        projects = await client.list_projects(team_id)
    print(format_projects(projects))
    return 0


async def run_issues(args: argparse.Namespace, ctx: CliContext) -> int:
    team_id = ctx.require_team(args.team)
    async with ctx.client() as client:
        assignee_id = args.assignee
        if assignee_id == "me":
            assignee_id = (await client.validate_credentials()).id
        issue_filter = build_issue_filter(team_id, state_names=args.states, assignee_id=assignee_id)
        issues = await client.list_issues(issue_filter, first=args.limit)
    print(format_issues(issues))
    return 0


__all__ = [
    "format_issues",
    "format_projects",
    "format_states",
    "format_teams",
    "run_issues",
    "run_projects",
    "run_states",
    "run_teams",
]
