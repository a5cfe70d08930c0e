"""
Sibling ordering engine.

Keeps the order values of every sibling group dense (0..n-1) across task
creation, deletion, and explicit reordering. Cross-entity validation (project
existence, parent project) happens in TaskService before these methods run.
"""

from typing import List, Optional
from uuid import UUID

from tasktree.errors import TaskNotFoundError, TaskTreeError, wrap_error
from tasktree.logging_config import get_logger
from tasktree.models import Task
from tasktree.repositories.base import TaskStore

logger = get_logger(__name__)


class OrderingEngine:
    """
    Structural mutations of the task tree.

    All reads and writes go through the TaskStore; the engine holds no state.
    """

    def __init__(self, task_store: TaskStore) -> None:
        self.task_store = task_store

    async def fetch_siblings(self, task: Task) -> List[Task]:
        """
        Fetch the sibling group of a task, sorted by order.

        The group includes the task itself when it is already persisted.
        Root tasks are siblings of every other root task in the same project.

        Args:
            task: Task whose group is requested

        Returns:
            Tasks sharing the task's parent (or project root)
        """
        if task.parent_task_id is None:
            siblings = await self.task_store.get_tasks_in_project_root(task.project_id)
        else:
            siblings = await self.task_store.get_subtasks_direct(task.parent_task_id)
        return sorted(siblings, key=lambda t: t.order)

    async def create(self, task: Task) -> Task:
        """
        Append a new task to the end of its sibling group and persist it.

        Args:
            task: Validated, not yet persisted task

        Returns:
            The persisted task with its order set
        """
        try:
            siblings = await self.fetch_siblings(task)
            task.order = len(siblings)
            await self.task_store.create(task)
        except TaskTreeError as e:
            wrap_error(e, f"Could not create task '{task.name}'")

        logger.debug(f"Appended task {task.id} at order {task.order}")
        return task

    async def delete(self, task_id: UUID) -> Optional[Task]:
        """
        Delete a task and its whole subtree, closing the gap it leaves.

        Descendants are removed deepest first, then the remaining siblings are
        renumbered in one batch, and only then is the task itself removed.

        Args:
            task_id: UUID of the task to delete

        Returns:
            The deleted task, or None when it did not exist
        """
        try:
            task = await self.task_store.get(task_id)
        except TaskNotFoundError:
            logger.warning(f"Task {task_id} does not exist, nothing to delete")
            return None

        try:
            descendants = await self.task_store.get_subtasks_deep(task.id)
            # Pre-order list reversed gives children before their parents
            for descendant in reversed(descendants):
                await self.task_store.delete(descendant.id)
            if descendants:
                logger.debug(f"Deleted {len(descendants)} descendants of task {task.id}")

            await self._close_gap(task)
            return await self.task_store.delete(task.id)
        except TaskTreeError as e:
            wrap_error(e, f"Failed to delete task {task.id}")

    async def _close_gap(self, task: Task) -> None:
        siblings = await self.fetch_siblings(task)
        if len(siblings) <= 1:
            return

        shifted = []
        for sibling in siblings:
            if sibling.order > task.order:
                sibling.order -= 1
                shifted.append(sibling)

        if shifted:
            await self.task_store.batch_update_order(shifted)
            logger.debug(
                f"Renumbered {len(shifted)} siblings after removing task {task.id} "
                f"at order {task.order}"
            )

    async def reorder(self, task_id: UUID, new_order: int) -> Task:
        """
        Move a task to another position within its sibling group.

        Out of range targets are clamped: negative values move the task to the
        front, values past the end move it to the back. Every sibling between
        the old and new position shifts by one toward the vacated slot.

        Args:
            task_id: UUID of the task to move
            new_order: Requested position

        Returns:
            The task with its final order

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        task = await self.task_store.get(task_id)

        try:
            siblings = await self.fetch_siblings(task)
        except TaskTreeError as e:
            wrap_error(e, f"Failed to fetch siblings of task {task.id}")

        if len(siblings) <= 1:
            return task

        new_order = max(0, min(new_order, len(siblings) - 1))
        if new_order == task.order:
            logger.debug(f"Task {task.id} already at order {new_order}")
            return task

        old_index = next(i for i, s in enumerate(siblings) if s.id == task.id)
        moved = siblings.pop(old_index)
        siblings.insert(new_order, moved)

        low, high = sorted((old_index, new_order))
        affected = siblings[low:high + 1]
        for offset, sibling in enumerate(affected):
            sibling.order = low + offset

        try:
            await self.task_store.batch_update_order(affected)
        except TaskTreeError as e:
            wrap_error(e, f"Failed to reorder task {task.id}")

        logger.debug(
            f"Moved task {task.id} from order {old_index} to {new_order}, "
            f"{len(affected) - 1} siblings shifted"
        )
        task.order = new_order
        return task
