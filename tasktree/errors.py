"""
Exception hierarchy shared by the stores and services.

Every error raised for a domain reason derives from TaskTreeError and falls
into one of three kinds: not found, already exists, or invalid.
"""

from typing import NoReturn


class TaskTreeError(Exception):
    """Base exception for tasktree errors."""
    pass


class NotFoundError(TaskTreeError):
    """Raised when a task, project, or parent task does not exist."""
    pass


class TaskNotFoundError(NotFoundError):
    """Raised when a task is not found."""
    pass


class ProjectNotFoundError(NotFoundError):
    """Raised when a project is not found."""
    pass


class AlreadyExistsError(TaskTreeError):
    """Raised on duplicate identity or name collision."""
    pass


class InvalidError(TaskTreeError):
    """Raised for malformed input or a parent task from another project."""
    pass


def wrap_error(err: TaskTreeError, context: str) -> NoReturn:
    """
    Re-raise a domain error with operation context, keeping its class.

    Args:
        err: The original error
        context: Description of the failed operation

    Raises:
        The same TaskTreeError subclass as err, chained to it
    """
    raise type(err)(f"{context}: {err}") from err
