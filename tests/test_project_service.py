"""
Tests for the ProjectService class.
"""

import pytest
from datetime import datetime
from uuid import UUID, uuid4

from tasktree.errors import AlreadyExistsError, InvalidError, ProjectNotFoundError
from tasktree.services.project_service import ProjectService


class TestProjectServiceCreate:
    """Test project creation operations."""

    @pytest.mark.asyncio
    async def test_create_project_basic(self, project_store):
        service = ProjectService(project_store)

        project = await service.create_project("Garden")

        assert project.name == "Garden"
        assert isinstance(project.id, UUID)
        assert isinstance(project.created_at, datetime)

    @pytest.mark.asyncio
    async def test_create_project_duplicate_name_fails(self, project_store):
        service = ProjectService(project_store)
        await service.create_project("Garden")

        with pytest.raises(AlreadyExistsError, match="Project with name 'Garden' already exists"):
            await service.create_project("Garden")

    @pytest.mark.asyncio
    async def test_create_project_blank_name_fails(self, project_store):
        service = ProjectService(project_store)

        with pytest.raises(InvalidError):
            await service.create_project("  ")


class TestProjectServiceRead:
    """Test project lookups."""

    @pytest.mark.asyncio
    async def test_get_project(self, project_store):
        service = ProjectService(project_store)
        created = await service.create_project("Garden")

        project = await service.get_project(created.id)

        assert project.id == created.id

    @pytest.mark.asyncio
    async def test_get_missing_project(self, project_store):
        service = ProjectService(project_store)

        with pytest.raises(ProjectNotFoundError):
            await service.get_project(uuid4())

    @pytest.mark.asyncio
    async def test_get_by_name_and_list(self, project_store):
        service = ProjectService(project_store)
        await service.create_project("Garden")
        await service.create_project("Attic")

        assert (await service.get_project_by_name("Attic")).name == "Attic"
        assert await service.get_project_by_name("Cellar") is None
        assert {p.name for p in await service.list_projects()} == {"Garden", "Attic"}

    @pytest.mark.asyncio
    async def test_from_session(self, db_session):
        service = ProjectService.from_session(db_session)

        created = await service.create_project("Garden")

        assert (await service.get_project(created.id)).name == "Garden"
