"""
Pydantic models for tasktree.

Defines the core data structures for projects and hierarchical tasks with
validation and a few convenience properties.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from tasktree.errors import InvalidError

MAX_TASK_NAME_LENGTH = 500


def check_task_name(name: str) -> str:
    """
    Validate a task name outside of model construction.

    Args:
        name: Proposed task name

    Returns:
        The name unchanged

    Raises:
        InvalidError: If the name is blank or too long
    """
    if not name or not name.strip():
        raise InvalidError("Task name cannot be blank")
    if len(name) > MAX_TASK_NAME_LENGTH:
        raise InvalidError(f"Task name cannot exceed {MAX_TASK_NAME_LENGTH} characters")
    return name


class TaskStatus(str, Enum):
    """Completion state of a task."""

    PENDING = "pending"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: Union["TaskStatus", str]) -> "TaskStatus":
        """
        Convert a user supplied value into a TaskStatus.

        Args:
            value: A TaskStatus member or its (case-insensitive) string value

        Returns:
            The matching TaskStatus

        Raises:
            InvalidError: If the value does not name a known status
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidError(f"Invalid task status: {value!r}") from None


class Project(BaseModel):
    """
    Represents a project, the container that groups tasks.

    Tasks reference their project through project_id; the project itself
    holds no collection of task ids.
    """

    id: UUID = Field(default_factory=uuid4, description="Unique identifier for the project")
    name: str = Field(..., min_length=1, max_length=100, description="Project name")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Creation timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Home renovation",
                "created_at": "2025-01-14T10:00:00",
            }
        }
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Project name cannot be blank")
        return v


class Task(BaseModel):
    """
    Represents a single task in a project's task tree.

    A task without parent_task_id is a root task of its project. The order
    field is the task's position among its siblings, starting from 0.
    """

    id: UUID = Field(default_factory=uuid4, description="Unique identifier for the task")
    name: str = Field(..., min_length=1, max_length=MAX_TASK_NAME_LENGTH, description="Task name")
    project_id: UUID = Field(..., description="ID of the project this task belongs to")
    parent_task_id: Optional[UUID] = Field(default=None, description="Parent task ID, None for root tasks")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Pending or completed")
    order: int = Field(default=0, ge=0, description="Position among siblings")

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.utcnow, description="Last update timestamp")

    # Populated on demand by tree queries, never persisted
    subtasks: List["Task"] = Field(default_factory=list, description="Nested subtasks")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174001",
                "name": "Buy paint",
                "project_id": "123e4567-e89b-12d3-a456-426614174000",
                "parent_task_id": None,
                "status": "pending",
                "order": 0,
                "created_at": "2025-01-14T10:00:00",
                "updated_at": "2025-01-14T10:00:00",
                "subtasks": [],
            }
        }
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """
        Reject names made only of whitespace.

        Args:
            v: The name to validate

        Returns:
            The validated name

        Raises:
            ValueError: If the name is blank
        """
        if not v.strip():
            raise ValueError("Task name cannot be blank")
        return v

    @computed_field
    @property
    def is_in_project_root(self) -> bool:
        """True when the task has no parent task."""
        return self.parent_task_id is None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def subtask_count(self) -> int:
        """
        Count the loaded subtasks at every depth.

        Returns:
            Number of tasks nested under this one in the subtasks field
        """
        count = 0
        stack = list(self.subtasks)
        while stack:
            current = stack.pop()
            count += 1
            stack.extend(current.subtasks)
        return count

    def __str__(self) -> str:
        return (
            f"Task(id={self.id}, name='{self.name}', status={self.status.value}, "
            f"order={self.order}, parent_task_id={self.parent_task_id})"
        )
