"""tasksync: keep a local task list in sync with Linear."""

__version__ = "0.1.0"
