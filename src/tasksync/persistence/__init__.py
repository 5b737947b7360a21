"""Local task persistence."""

from tasksync.persistence.task_store import JsonTaskStore

__all__ = ["JsonTaskStore"]
