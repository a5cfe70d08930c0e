"""
Project service for tasktree.

Projects only need to exist and have unique names for the task tree to work,
so this service covers creation and lookups.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from tasktree.errors import AlreadyExistsError, InvalidError
from tasktree.logging_config import get_logger
from tasktree.models import Project
from tasktree.repositories.base import ProjectStore
from tasktree.repositories.sql import SqlProjectStore

logger = get_logger(__name__)


class ProjectService:
    """Service layer for project creation and lookup."""

    def __init__(self, project_store: ProjectStore) -> None:
        self.project_store = project_store

    @classmethod
    def from_session(cls, session: AsyncSession) -> "ProjectService":
        return cls(SqlProjectStore(session))

    async def create_project(self, name: str) -> Project:
        """
        Create a new project.

        Args:
            name: Name of the project, unique across projects

        Returns:
            Created Project model

        Raises:
            AlreadyExistsError: If a project with the same name exists
            InvalidError: If the name is blank or too long
        """
        logger.debug(f"Creating project: name='{name}'")

        existing = await self.project_store.get_by_name(name)
        if existing is not None:
            logger.warning(f"Project creation failed - name already exists: '{name}'")
            raise AlreadyExistsError(f"Project with name '{name}' already exists")

        try:
            project = Project(name=name)
        except ValidationError as e:
            raise InvalidError(f"Invalid project name {name!r}: {e.errors()[0]['msg']}") from e

        await self.project_store.create(project)
        logger.info(f"Created project: id={project.id}, name='{name}'")
        return project

    async def get_project(self, project_id: UUID) -> Project:
        """
        Get a project by ID.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        return await self.project_store.get(project_id)

    async def get_project_by_name(self, name: str) -> Optional[Project]:
        return await self.project_store.get_by_name(name)

    async def list_projects(self) -> List[Project]:
        """Get all projects ordered by creation date."""
        return await self.project_store.list_projects()
