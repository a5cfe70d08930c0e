"""
Storage ports used by the task-tree engines.

The engines depend on these Protocols instead of concrete implementations,
so the in-memory stores (tests) and the SQL stores (production) can be
swapped without touching engine logic.
"""

from typing import List, Optional, Protocol
from uuid import UUID

from tasktree.models import Project, Task, TaskStatus


class TaskStore(Protocol):
    """Persistence capability for tasks and task-tree queries."""

    async def create(self, task: Task) -> None:
        """Persist a new task. Raises AlreadyExistsError on id collision."""
        ...

    async def get(self, task_id: UUID) -> Task:
        """Fetch a task. Raises TaskNotFoundError."""
        ...

    async def get_subtasks_direct(self, parent_id: UUID) -> List[Task]:
        """Children at depth 1, sorted by order."""
        ...

    async def get_subtasks_deep(self, task_id: UUID) -> List[Task]:
        """All descendants in pre-order: a parent always precedes its subtasks."""
        ...

    async def get_tasks_in_project_root(self, project_id: UUID) -> List[Task]:
        """Root tasks of a project, sorted by order."""
        ...

    async def get_tasks_by_project(self, project_id: UUID) -> List[Task]: ...

    async def get_tasks_by_status(self, project_id: UUID, status: TaskStatus) -> List[Task]: ...

    async def list_tasks(self) -> List[Task]: ...

    async def rename(self, task_id: UUID, new_name: str) -> Task: ...

    async def batch_update_order(self, tasks: List[Task]) -> None:
        """Apply every task's order value, or none of them."""
        ...

    async def update_task_status(self, task_id: UUID, status: TaskStatus) -> None: ...

    async def delete(self, task_id: UUID) -> Task:
        """Remove a task and return the deleted record."""
        ...


class ProjectStore(Protocol):
    """Persistence capability for projects."""

    async def create(self, project: Project) -> None:
        """Persist a project. Raises AlreadyExistsError on id or name collision."""
        ...

    async def get(self, project_id: UUID) -> Project:
        """Fetch a project. Raises ProjectNotFoundError."""
        ...

    async def get_by_name(self, name: str) -> Optional[Project]: ...

    async def list_projects(self) -> List[Project]: ...
