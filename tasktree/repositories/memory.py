"""
In-memory stores.

Dictionary-backed implementations of TaskStore and ProjectStore. Every value
handed out is a deep copy, so callers can mutate returned tasks freely.
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from tasktree.errors import AlreadyExistsError, ProjectNotFoundError, TaskNotFoundError
from tasktree.logging_config import get_logger
from tasktree.models import Project, Task, TaskStatus

logger = get_logger(__name__)


def _by_order(tasks: List[Task]) -> List[Task]:
    return sorted(tasks, key=lambda t: t.order)


class InMemoryTaskStore:
    """TaskStore kept in a dict keyed by task id."""

    def __init__(self) -> None:
        self._tasks: Dict[UUID, Task] = {}

    def _copy(self, task: Task) -> Task:
        return task.model_copy(deep=True, update={"subtasks": []})

    def _get_stored(self, task_id: UUID) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task with id {task_id} not found")
        return task

    async def create(self, task: Task) -> None:
        if task.id in self._tasks:
            raise AlreadyExistsError(f"Task with id {task.id} already exists")
        self._tasks[task.id] = self._copy(task)
        logger.debug(f"Stored task {task.id} in memory")

    async def get(self, task_id: UUID) -> Task:
        return self._copy(self._get_stored(task_id))

    async def get_subtasks_direct(self, parent_id: UUID) -> List[Task]:
        self._get_stored(parent_id)
        children = [t for t in self._tasks.values() if t.parent_task_id == parent_id]
        return [self._copy(t) for t in _by_order(children)]

    async def get_subtasks_deep(self, task_id: UUID) -> List[Task]:
        self._get_stored(task_id)

        descendants: List[Task] = []
        stack = [task_id]
        while stack:
            current_id = stack.pop()
            if current_id != task_id:
                descendants.append(self._copy(self._tasks[current_id]))
            children = _by_order(
                [t for t in self._tasks.values() if t.parent_task_id == current_id]
            )
            # Reversed so the lowest order is popped first
            stack.extend(child.id for child in reversed(children))
        return descendants

    async def get_tasks_in_project_root(self, project_id: UUID) -> List[Task]:
        roots = [
            t for t in self._tasks.values()
            if t.project_id == project_id and t.parent_task_id is None
        ]
        return [self._copy(t) for t in _by_order(roots)]

    async def get_tasks_by_project(self, project_id: UUID) -> List[Task]:
        tasks = [t for t in self._tasks.values() if t.project_id == project_id]
        return [self._copy(t) for t in sorted(tasks, key=lambda t: t.created_at)]

    async def get_tasks_by_status(self, project_id: UUID, status: TaskStatus) -> List[Task]:
        tasks = await self.get_tasks_by_project(project_id)
        return [t for t in tasks if t.status == status]

    async def list_tasks(self) -> List[Task]:
        tasks = sorted(self._tasks.values(), key=lambda t: t.created_at)
        return [self._copy(t) for t in tasks]

    async def rename(self, task_id: UUID, new_name: str) -> Task:
        task = self._get_stored(task_id)
        task.name = new_name
        task.updated_at = datetime.utcnow()
        return self._copy(task)

    async def batch_update_order(self, tasks: List[Task]) -> None:
        # Resolve every id before writing anything
        stored = [self._get_stored(task.id) for task in tasks]
        now = datetime.utcnow()
        for target, task in zip(stored, tasks):
            target.order = task.order
            target.updated_at = now

    async def update_task_status(self, task_id: UUID, status: TaskStatus) -> None:
        task = self._get_stored(task_id)
        task.status = status
        task.updated_at = datetime.utcnow()

    async def delete(self, task_id: UUID) -> Task:
        task = self._get_stored(task_id)
        del self._tasks[task_id]
        return task


class InMemoryProjectStore:
    """ProjectStore kept in a dict keyed by project id."""

    def __init__(self) -> None:
        self._projects: Dict[UUID, Project] = {}

    async def create(self, project: Project) -> None:
        if project.id in self._projects:
            raise AlreadyExistsError(f"Project with id {project.id} already exists")
        if any(p.name == project.name for p in self._projects.values()):
            raise AlreadyExistsError(f"Project with name '{project.name}' already exists")
        self._projects[project.id] = project.model_copy(deep=True)

    async def get(self, project_id: UUID) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(f"Project with id {project_id} not found")
        return project.model_copy(deep=True)

    async def get_by_name(self, name: str) -> Optional[Project]:
        for project in self._projects.values():
            if project.name == name:
                return project.model_copy(deep=True)
        return None

    async def list_projects(self) -> List[Project]:
        projects = sorted(self._projects.values(), key=lambda p: p.created_at)
        return [p.model_copy(deep=True) for p in projects]
