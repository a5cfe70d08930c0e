"""Storage collaborators for tasks and projects."""

from tasktree.repositories.base import ProjectStore, TaskStore
from tasktree.repositories.memory import InMemoryProjectStore, InMemoryTaskStore
from tasktree.repositories.sql import SqlProjectStore, SqlTaskStore

__all__ = [
    "ProjectStore",
    "TaskStore",
    "InMemoryProjectStore",
    "InMemoryTaskStore",
    "SqlProjectStore",
    "SqlTaskStore",
]
