"""
SQLAlchemy-backed stores.

Both stores work on a caller-owned AsyncSession. They flush but never commit:
the session context from DatabaseManager.get_session() decides whether the
whole service operation is committed or rolled back.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktree.database import ProjectORM, TaskORM
from tasktree.errors import AlreadyExistsError, ProjectNotFoundError, TaskNotFoundError
from tasktree.logging_config import get_logger
from tasktree.models import Project, Task, TaskStatus

logger = get_logger(__name__)


class SqlTaskStore:
    """TaskStore persisted through SQLAlchemy ORM."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize the store with a database session.

        Args:
            session: Active async database session
        """
        self.session = session

    # ==============================================================================
    # CONVERSION HELPERS
    # ==============================================================================

    @staticmethod
    def _orm_to_pydantic(task_orm: TaskORM) -> Task:
        return Task(
            id=UUID(task_orm.id),
            name=task_orm.name,
            project_id=UUID(task_orm.project_id),
            parent_task_id=UUID(task_orm.parent_task_id) if task_orm.parent_task_id else None,
            status=TaskStatus(task_orm.status),
            order=task_orm.order,
            created_at=task_orm.created_at,
            updated_at=task_orm.updated_at,
        )

    @staticmethod
    def _pydantic_to_orm(task: Task) -> TaskORM:
        return TaskORM(
            id=str(task.id),
            name=task.name,
            project_id=str(task.project_id),
            parent_task_id=str(task.parent_task_id) if task.parent_task_id else None,
            status=task.status.value,
            order=task.order,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )

    async def _get_orm_or_raise(self, task_id: UUID) -> TaskORM:
        task_orm = await self.session.get(TaskORM, str(task_id))
        if task_orm is None:
            raise TaskNotFoundError(f"Task with id {task_id} not found")
        return task_orm

    async def _fetch(self, query) -> List[Task]:
        result = await self.session.execute(query)
        return [self._orm_to_pydantic(t) for t in result.scalars().all()]

    def _query_children(self, parent_id: UUID):
        return (
            select(TaskORM)
            .where(TaskORM.parent_task_id == str(parent_id))
            .order_by(TaskORM.order)
        )

    # ==============================================================================
    # WRITE OPERATIONS
    # ==============================================================================

    async def create(self, task: Task) -> None:
        if await self.session.get(TaskORM, str(task.id)) is not None:
            raise AlreadyExistsError(f"Task with id {task.id} already exists")

        self.session.add(self._pydantic_to_orm(task))
        await self.session.flush()
        logger.debug(f"Inserted task row {task.id}")

    async def rename(self, task_id: UUID, new_name: str) -> Task:
        task_orm = await self._get_orm_or_raise(task_id)
        task_orm.name = new_name
        task_orm.updated_at = datetime.utcnow()
        await self.session.flush()
        return self._orm_to_pydantic(task_orm)

    async def batch_update_order(self, tasks: List[Task]) -> None:
        # Resolve every row before touching any of them
        rows = [await self._get_orm_or_raise(task.id) for task in tasks]
        now = datetime.utcnow()
        for row, task in zip(rows, tasks):
            row.order = task.order
            row.updated_at = now
        await self.session.flush()
        logger.debug(f"Batch updated order of {len(rows)} tasks")

    async def update_task_status(self, task_id: UUID, status: TaskStatus) -> None:
        task_orm = await self._get_orm_or_raise(task_id)
        task_orm.status = status.value
        task_orm.updated_at = datetime.utcnow()
        await self.session.flush()

    async def delete(self, task_id: UUID) -> Task:
        task_orm = await self._get_orm_or_raise(task_id)
        task = self._orm_to_pydantic(task_orm)
        await self.session.delete(task_orm)
        await self.session.flush()
        return task

    # ==============================================================================
    # READ OPERATIONS
    # ==============================================================================

    async def get(self, task_id: UUID) -> Task:
        return self._orm_to_pydantic(await self._get_orm_or_raise(task_id))

    async def get_subtasks_direct(self, parent_id: UUID) -> List[Task]:
        await self._get_orm_or_raise(parent_id)
        return await self._fetch(self._query_children(parent_id))

    async def get_subtasks_deep(self, task_id: UUID) -> List[Task]:
        await self._get_orm_or_raise(task_id)

        descendants: List[Task] = []
        stack = list(reversed(await self._fetch(self._query_children(task_id))))
        while stack:
            current = stack.pop()
            descendants.append(current)
            children = await self._fetch(self._query_children(current.id))
            stack.extend(reversed(children))
        return descendants

    async def get_tasks_in_project_root(self, project_id: UUID) -> List[Task]:
        return await self._fetch(
            select(TaskORM)
            .where(TaskORM.project_id == str(project_id))
            .where(TaskORM.parent_task_id.is_(None))
            .order_by(TaskORM.order)
        )

    async def get_tasks_by_project(self, project_id: UUID) -> List[Task]:
        return await self._fetch(
            select(TaskORM)
            .where(TaskORM.project_id == str(project_id))
            .order_by(TaskORM.created_at)
        )

    async def get_tasks_by_status(self, project_id: UUID, status: TaskStatus) -> List[Task]:
        return await self._fetch(
            select(TaskORM)
            .where(TaskORM.project_id == str(project_id))
            .where(TaskORM.status == status.value)
            .order_by(TaskORM.created_at)
        )

    async def list_tasks(self) -> List[Task]:
        return await self._fetch(select(TaskORM).order_by(TaskORM.created_at))


class SqlProjectStore:
    """ProjectStore persisted through SQLAlchemy ORM."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _orm_to_pydantic(project_orm: ProjectORM) -> Project:
        return Project(
            id=UUID(project_orm.id),
            name=project_orm.name,
            created_at=project_orm.created_at,
        )

    async def create(self, project: Project) -> None:
        if await self.session.get(ProjectORM, str(project.id)) is not None:
            raise AlreadyExistsError(f"Project with id {project.id} already exists")
        if await self.get_by_name(project.name) is not None:
            raise AlreadyExistsError(f"Project with name '{project.name}' already exists")

        self.session.add(
            ProjectORM(id=str(project.id), name=project.name, created_at=project.created_at)
        )
        await self.session.flush()

    async def get(self, project_id: UUID) -> Project:
        project_orm = await self.session.get(ProjectORM, str(project_id))
        if project_orm is None:
            raise ProjectNotFoundError(f"Project with id {project_id} not found")
        return self._orm_to_pydantic(project_orm)

    async def get_by_name(self, name: str) -> Optional[Project]:
        result = await self.session.execute(
            select(ProjectORM).where(ProjectORM.name == name)
        )
        project_orm = result.scalar_one_or_none()
        if project_orm is None:
            return None
        return self._orm_to_pydantic(project_orm)

    async def list_projects(self) -> List[Project]:
        result = await self.session.execute(
            select(ProjectORM).order_by(ProjectORM.created_at)
        )
        return [self._orm_to_pydantic(p) for p in result.scalars().all()]
