"""Command-line interface for tasksync."""

from tasksync.cli.app import main
from tasksync.cli.parser import build_parser

__all__ = ["build_parser", "main"]
