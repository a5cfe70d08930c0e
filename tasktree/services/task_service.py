"""
Task service for tasktree.

Composes the ordering engine and the status propagation machine, validates
cross-entity rules (project exists, parent belongs to the same project), and
serializes tree mutations per project.
"""

from typing import Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tasktree.errors import (
    InvalidError,
    NotFoundError,
    TaskNotFoundError,
    TaskTreeError,
    wrap_error,
)
from tasktree.logging_config import get_logger
from tasktree.models import Task, TaskStatus, check_task_name
from tasktree.repositories.base import ProjectStore, TaskStore
from tasktree.repositories.sql import SqlProjectStore, SqlTaskStore
from tasktree.services.ordering import OrderingEngine
from tasktree.services.status import StatusPropagation
from tasktree.services.tree_lock import TreeLocks

logger = get_logger(__name__)

# Shared so that services built per session still exclude each other
_default_locks = TreeLocks()


class TaskService:
    """
    Service layer for task operations.

    Handles creation, deletion, reordering, renaming and status changes of
    tasks, plus the read queries exposed to callers.
    """

    def __init__(
        self,
        task_store: TaskStore,
        project_store: ProjectStore,
        locks: Optional[TreeLocks] = None,
    ) -> None:
        """
        Initialize task service with its storage collaborators.

        Args:
            task_store: Storage for tasks
            project_store: Storage for projects (existence checks only)
            locks: Lock registry, defaults to a process-wide registry
        """
        self.task_store = task_store
        self.project_store = project_store
        self.locks = locks if locks is not None else _default_locks
        self.ordering = OrderingEngine(task_store)
        self.status = StatusPropagation(task_store)

    @classmethod
    def from_session(cls, session: AsyncSession, locks: Optional[TreeLocks] = None) -> "TaskService":
        """
        Build a service over SQL stores sharing one session.

        Args:
            session: Active async database session
            locks: Optional lock registry

        Returns:
            TaskService instance
        """
        return cls(SqlTaskStore(session), SqlProjectStore(session), locks)

    # ==============================================================================
    # VALIDATION HELPERS
    # ==============================================================================

    async def _validate_new_task(self, task: Task) -> None:
        """
        Check that a task's project exists and its parent lives in that project.

        Args:
            task: Task about to be created

        Raises:
            ProjectNotFoundError: If the project does not exist
            TaskNotFoundError: If the parent task does not exist
            InvalidError: If the parent task belongs to another project
        """
        await self.project_store.get(task.project_id)

        if task.parent_task_id is None:
            return

        parent = await self.task_store.get(task.parent_task_id)
        if parent.project_id != task.project_id:
            raise InvalidError(
                f"Parent task {parent.id} belongs to project {parent.project_id}, "
                f"not {task.project_id}"
            )

    # ==============================================================================
    # CREATE OPERATIONS
    # ==============================================================================

    async def create_task(
        self,
        name: str,
        project_id: UUID,
        parent_task_id: Optional[UUID] = None,
    ) -> Task:
        """
        Create a new task at the end of its sibling group.

        Args:
            name: Task name
            project_id: UUID of the owning project
            parent_task_id: Optional parent task UUID (for subtasks)

        Returns:
            Created Task instance

        Raises:
            ProjectNotFoundError: If the project does not exist
            TaskNotFoundError: If the parent task does not exist
            InvalidError: If the name is blank or the parent is in another project
        """
        logger.debug(
            f"Creating task: name='{name}', project_id={project_id}, "
            f"parent_task_id={parent_task_id}"
        )
        check_task_name(name)
        task = Task(name=name, project_id=project_id, parent_task_id=parent_task_id)

        async with self.locks.hold(project_id):
            try:
                await self._validate_new_task(task)
            except TaskTreeError as e:
                logger.error(f"Could not validate task: {e}")
                wrap_error(e, f"Could not create task '{name}'")

            task = await self.ordering.create(task)

        logger.info(f"Created task: id={task.id}, name='{name}', order={task.order}")
        return task

    # ==============================================================================
    # READ OPERATIONS
    # ==============================================================================

    async def get_task(self, task_id: UUID, with_subtasks: bool = False) -> Task:
        """
        Get a task by its ID, optionally with its nested subtask tree.

        Args:
            task_id: UUID of the task
            with_subtasks: Populate subtasks recursively, each level by order

        Returns:
            Task instance

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        task = await self.task_store.get(task_id)
        if with_subtasks:
            descendants = await self.task_store.get_subtasks_deep(task.id)
            self._attach_subtasks(task, descendants)
        return task

    @staticmethod
    def _attach_subtasks(root: Task, descendants: List[Task]) -> None:
        by_parent: Dict[UUID, List[Task]] = {}
        for descendant in descendants:
            by_parent.setdefault(descendant.parent_task_id, []).append(descendant)

        stack = [root]
        while stack:
            current = stack.pop()
            current.subtasks = sorted(by_parent.get(current.id, []), key=lambda t: t.order)
            stack.extend(current.subtasks)

    async def list_tasks(self) -> List[Task]:
        """Get every task of every project."""
        return await self.task_store.list_tasks()

    async def list_project_tasks(self, project_id: UUID) -> List[Task]:
        """
        Get all tasks of a project, flat.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        await self.project_store.get(project_id)
        return await self.task_store.get_tasks_by_project(project_id)

    async def get_project_tree(self, project_id: UUID) -> List[Task]:
        """
        Get the root tasks of a project with their subtask trees expanded.

        Args:
            project_id: UUID of the project

        Returns:
            Root tasks sorted by order

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        await self.project_store.get(project_id)
        roots = await self.task_store.get_tasks_in_project_root(project_id)
        for root in roots:
            self._attach_subtasks(root, await self.task_store.get_subtasks_deep(root.id))
        return roots

    async def get_subtasks(self, task_id: UUID, deep: bool = False) -> List[Task]:
        """
        Get the subtasks of a task.

        Args:
            task_id: UUID of the parent task
            deep: Return every descendant (pre-order) instead of direct children

        Returns:
            List of Task instances

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        if deep:
            return await self.task_store.get_subtasks_deep(task_id)
        return await self.task_store.get_subtasks_direct(task_id)

    async def search_tasks_by_status(
        self,
        project_id: UUID,
        status: Union[TaskStatus, str],
    ) -> List[Task]:
        """
        Get the tasks of a project that have the given status.

        Raises:
            InvalidError: If status is not a known value
            ProjectNotFoundError: If the project does not exist
        """
        target = TaskStatus.parse(status)
        await self.project_store.get(project_id)
        return await self.task_store.get_tasks_by_status(project_id, target)

    # ==============================================================================
    # UPDATE OPERATIONS
    # ==============================================================================

    async def rename_task(self, task_id: UUID, new_name: str) -> Task:
        """
        Change the name of a task. Order and status are left untouched.

        Raises:
            TaskNotFoundError: If the task does not exist
            InvalidError: If the new name is blank or too long
        """
        check_task_name(new_name)

        try:
            task = await self.task_store.rename(task_id, new_name)
        except TaskTreeError as e:
            logger.error(f"Failed to rename task {task_id}: {e}")
            wrap_error(e, f"Could not rename task {task_id}")

        logger.info(f"Renamed task: id={task_id}, name='{new_name}'")
        return task

    async def reorder_task(self, task_id: UUID, new_order: int) -> Task:
        """
        Move a task within its sibling group.

        Args:
            task_id: UUID of the task
            new_order: Requested position, clamped into range

        Returns:
            The task with its final order

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        task = await self.task_store.get(task_id)
        async with self.locks.hold(task.project_id):
            try:
                task = await self.ordering.reorder(task_id, new_order)
            except NotFoundError as e:
                logger.error(f"Failed to reorder task {task_id}: {e}")
                raise

        logger.info(f"Reordered task: id={task_id}, order={task.order}")
        return task

    async def update_task_status(self, task_id: UUID, status: Union[TaskStatus, str]) -> Task:
        """
        Set a task's status with the cascades of the status state machine.

        Args:
            task_id: UUID of the task
            status: "pending" or "completed" (or the enum member)

        Returns:
            The updated task

        Raises:
            InvalidError: If status is not a known value
            TaskNotFoundError: If the task does not exist
        """
        target = TaskStatus.parse(status)
        task = await self.task_store.get(task_id)

        async with self.locks.hold(task.project_id):
            try:
                task = await self.status.apply(task_id, target)
            except TaskTreeError as e:
                logger.error(f"Failed to set task {task_id} to {target.value}: {e}")
                wrap_error(e, f"Could not update status of task {task_id}")

        logger.info(f"Task status updated: id={task_id}, status={target.value}")
        return task

    async def complete_task(self, task_id: UUID) -> Task:
        return await self.update_task_status(task_id, TaskStatus.COMPLETED)

    async def mark_task_pending(self, task_id: UUID) -> Task:
        return await self.update_task_status(task_id, TaskStatus.PENDING)

    # ==============================================================================
    # DELETE OPERATIONS
    # ==============================================================================

    async def delete_task(self, task_id: UUID) -> Optional[Task]:
        """
        Delete a task and all its descendants, renumbering its former siblings.

        Deleting a task that does not exist is a no-op.

        Args:
            task_id: UUID of the task to delete

        Returns:
            The deleted task, or None if there was nothing to delete
        """
        try:
            task = await self.task_store.get(task_id)
        except TaskNotFoundError:
            logger.warning(f"Task {task_id} does not exist, nothing to do")
            return None

        async with self.locks.hold(task.project_id):
            deleted = await self.ordering.delete(task_id)

        if deleted is not None:
            logger.info(f"Deleted task: id={task_id}, name='{deleted.name}'")
        return deleted
