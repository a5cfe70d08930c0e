"""
Pytest configuration and fixtures for tasktree tests.

Provides database fixtures, store fixtures for both backends, and small
factories for building task trees.
"""

import pytest
import pytest_asyncio
from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from tasktree.database import DatabaseManager, ProjectORM
from tasktree.models import Project, Task, TaskStatus
from tasktree.repositories.memory import InMemoryProjectStore, InMemoryTaskStore
from tasktree.repositories.sql import SqlProjectStore, SqlTaskStore
from tasktree.services.task_service import TaskService
from tasktree.services.tree_lock import TreeLocks

IN_MEMORY_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_manager():
    """
    Create an in-memory SQLite database for testing.

    Yields:
        DatabaseManager instance with in-memory database
    """
    manager = DatabaseManager(IN_MEMORY_DB_URL)
    await manager.initialize()

    yield manager

    await manager.close()


@pytest_asyncio.fixture
async def db_session(db_manager):
    """
    Provide a database session for tests.

    Yields:
        AsyncSession for database operations
    """
    async with db_manager.get_session() as session:
        yield session


@pytest.fixture
def sample_project_id():
    """Generate a consistent UUID for testing projects."""
    return UUID("12345678-1234-5678-1234-567812345678")


@pytest_asyncio.fixture
async def sample_project_orm(db_session, sample_project_id):
    """
    Create a sample project row in the database.

    Returns:
        ProjectORM instance
    """
    project = ProjectORM(
        id=str(sample_project_id),
        name="Home",
        created_at=datetime.utcnow()
    )
    db_session.add(project)
    await db_session.commit()
    return project


@pytest_asyncio.fixture(params=["memory", "sql"])
async def stores(request):
    """
    Provide a (task_store, project_store) pair for each backend.

    Tests using this fixture run once against the in-memory stores and once
    against the SQL stores on an in-memory SQLite database.
    """
    if request.param == "memory":
        yield InMemoryTaskStore(), InMemoryProjectStore()
        return

    manager = DatabaseManager(IN_MEMORY_DB_URL)
    await manager.initialize()
    async with manager.get_session() as session:
        yield SqlTaskStore(session), SqlProjectStore(session)
    await manager.close()


@pytest.fixture
def task_store(stores):
    return stores[0]


@pytest.fixture
def project_store(stores):
    return stores[1]


@pytest.fixture
def service(stores):
    """TaskService over the parametrized stores with its own lock registry."""
    task_store, project_store = stores
    return TaskService(task_store, project_store, locks=TreeLocks())


@pytest_asyncio.fixture
async def project(project_store, sample_project_id):
    """Persist and return a sample project."""
    project = Project(id=sample_project_id, name="Home")
    await project_store.create(project)
    return project


@pytest_asyncio.fixture
async def other_project(project_store):
    """Persist and return a second project."""
    project = Project(name="Work")
    await project_store.create(project)
    return project


@pytest_asyncio.fixture
async def task_hierarchy(service, project):
    """
    Create a three-level task hierarchy.

    Creates:
        - Parent
          - Child 1
            - Grandchild 1
            - Grandchild 2
          - Child 2

    Returns:
        Dictionary of created tasks by role
    """
    parent = await service.create_task("Parent", project.id)
    child1 = await service.create_task("Child 1", project.id, parent.id)
    child2 = await service.create_task("Child 2", project.id, parent.id)
    grandchild1 = await service.create_task("Grandchild 1", project.id, child1.id)
    grandchild2 = await service.create_task("Grandchild 2", project.id, child1.id)

    return {
        "parent": parent,
        "child1": child1,
        "child2": child2,
        "grandchild1": grandchild1,
        "grandchild2": grandchild2,
    }


@pytest.fixture
def sibling_orders(task_store):
    """
    Factory fixture reading the order values of a sibling group.

    Example:
        async def test_something(sibling_orders, project):
            assert await sibling_orders(project.id) == [0, 1, 2]
    """
    async def _sibling_orders(project_id: UUID, parent_id: Optional[UUID] = None) -> List[int]:
        if parent_id is None:
            siblings = await task_store.get_tasks_in_project_root(project_id)
        else:
            siblings = await task_store.get_subtasks_direct(parent_id)
        return sorted(s.order for s in siblings)
    return _sibling_orders


@pytest.fixture
def status_of(task_store):
    """Factory fixture returning the stored status of a task."""
    async def _status_of(task_id: UUID) -> TaskStatus:
        return (await task_store.get(task_id)).status
    return _status_of


@pytest.fixture
def make_task():
    """
    Factory fixture for creating Task Pydantic models.

    Example:
        def test_something(make_task):
            task = make_task(name="Custom Task", order=2)
    """
    def _make_task(
        id: UUID = None,
        name: str = "Test Task",
        project_id: UUID = None,
        parent_task_id: UUID = None,
        status: TaskStatus = TaskStatus.PENDING,
        order: int = 0,
    ) -> Task:
        return Task(
            id=id or uuid4(),
            name=name,
            project_id=project_id or uuid4(),
            parent_task_id=parent_task_id,
            status=status,
            order=order,
        )
    return _make_task
