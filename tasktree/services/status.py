"""
Status propagation between tasks.

Completing a task completes its whole subtree and, when it was the last open
task of its sibling group, its ancestors. Reopening a task reopens all of its
ancestors but leaves its subtree alone.
"""

from typing import Union
from uuid import UUID

from tasktree.logging_config import get_logger
from tasktree.models import Task, TaskStatus
from tasktree.repositories.base import TaskStore

logger = get_logger(__name__)


class StatusPropagation:
    """Pending/completed state machine with cascading transitions."""

    def __init__(self, task_store: TaskStore) -> None:
        self.task_store = task_store

    async def apply(self, task_id: UUID, status: Union[TaskStatus, str]) -> Task:
        """
        Move a task to the given status with all cascades.

        Args:
            task_id: UUID of the task
            status: Target status, enum member or its string value

        Returns:
            The task as stored after the transition

        Raises:
            InvalidError: If status is not a known value
            TaskNotFoundError: If the task does not exist
        """
        target = TaskStatus.parse(status)
        if target == TaskStatus.COMPLETED:
            return await self.complete(task_id)
        return await self.mark_pending(task_id)

    async def complete(self, task_id: UUID) -> Task:
        """
        Complete a task, its descendants, and every ancestor left with no open child.

        Args:
            task_id: UUID of the task to complete

        Returns:
            The completed task
        """
        task = await self.task_store.get(task_id)
        await self.task_store.update_task_status(task.id, TaskStatus.COMPLETED)
        logger.debug(f"Marked task {task.id} as completed")

        # Downwards
        descendants = await self.task_store.get_subtasks_deep(task.id)
        if descendants:
            logger.debug(f"Task {task.id} has {len(descendants)} subtasks, completing them")
        for descendant in descendants:
            await self.task_store.update_task_status(descendant.id, TaskStatus.COMPLETED)

        # Upwards
        current = task
        while current.parent_task_id is not None:
            parent = await self.task_store.get(current.parent_task_id)
            if parent.status == TaskStatus.COMPLETED:
                break

            siblings = await self.task_store.get_subtasks_direct(parent.id)
            pending = [s for s in siblings if s.status != TaskStatus.COMPLETED]
            if pending:
                logger.debug(
                    f"Parent {parent.id} still has {len(pending)} pending subtasks, "
                    f"leaving it open"
                )
                break

            # Every child is complete, so the parent's subtree already is too
            await self.task_store.update_task_status(parent.id, TaskStatus.COMPLETED)
            logger.debug(f"All subtasks of {parent.id} completed, completing parent")
            current = parent

        task.status = TaskStatus.COMPLETED
        return task

    async def mark_pending(self, task_id: UUID) -> Task:
        """
        Reopen a task and every completed ancestor above it.

        Descendants keep their status. Already pending tasks are left as is.

        Args:
            task_id: UUID of the task to reopen

        Returns:
            The pending task
        """
        task = await self.task_store.get(task_id)
        if task.status == TaskStatus.PENDING:
            logger.debug(f"Task {task.id} is already pending")
            return task

        await self.task_store.update_task_status(task.id, TaskStatus.PENDING)
        logger.debug(f"Marked task {task.id} as pending")

        current = task
        while current.parent_task_id is not None:
            parent = await self.task_store.get(current.parent_task_id)
            if parent.status == TaskStatus.PENDING:
                break
            await self.task_store.update_task_status(parent.id, TaskStatus.PENDING)
            logger.debug(f"Reopened ancestor {parent.id} of task {task.id}")
            current = parent

        task.status = TaskStatus.PENDING
        return task
