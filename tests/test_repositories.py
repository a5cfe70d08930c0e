"""
Tests for the task and project stores.

Every test runs against both the in-memory stores and the SQL stores through
the parametrized ``stores`` fixture.
"""

import pytest
from uuid import uuid4

from tasktree.errors import AlreadyExistsError, ProjectNotFoundError, TaskNotFoundError
from tasktree.models import Project, TaskStatus


class TestTaskStoreWrites:
    """Tests for create/update/delete operations."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, task_store, project, make_task):
        task = make_task(name="Buy paint", project_id=project.id)
        await task_store.create(task)

        stored = await task_store.get(task.id)

        assert stored.id == task.id
        assert stored.name == "Buy paint"
        assert stored.project_id == project.id
        assert stored.status == TaskStatus.PENDING

    @pytest.mark.asyncio
    async def test_create_duplicate_id_fails(self, task_store, project, make_task):
        task = make_task(project_id=project.id)
        await task_store.create(task)

        with pytest.raises(AlreadyExistsError):
            await task_store.create(task)

    @pytest.mark.asyncio
    async def test_get_missing_task_fails(self, task_store):
        with pytest.raises(TaskNotFoundError):
            await task_store.get(uuid4())

    @pytest.mark.asyncio
    async def test_returned_tasks_do_not_alias_storage(self, task_store, project, make_task):
        task = make_task(project_id=project.id)
        await task_store.create(task)

        fetched = await task_store.get(task.id)
        fetched.order = 42
        fetched.name = "Changed locally"

        stored = await task_store.get(task.id)
        assert stored.order == 0
        assert stored.name == task.name

    @pytest.mark.asyncio
    async def test_rename(self, task_store, project, make_task):
        task = make_task(name="Old", project_id=project.id)
        await task_store.create(task)

        renamed = await task_store.rename(task.id, "New")

        assert renamed.name == "New"
        assert (await task_store.get(task.id)).name == "New"

    @pytest.mark.asyncio
    async def test_update_task_status(self, task_store, project, make_task):
        task = make_task(project_id=project.id)
        await task_store.create(task)

        await task_store.update_task_status(task.id, TaskStatus.COMPLETED)

        assert (await task_store.get(task.id)).status == TaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_batch_update_order(self, task_store, project, make_task):
        first = make_task(name="First", project_id=project.id, order=0)
        second = make_task(name="Second", project_id=project.id, order=1)
        await task_store.create(first)
        await task_store.create(second)

        first.order, second.order = 1, 0
        await task_store.batch_update_order([first, second])

        roots = await task_store.get_tasks_in_project_root(project.id)
        assert [t.name for t in roots] == ["Second", "First"]

    @pytest.mark.asyncio
    async def test_batch_update_order_is_all_or_nothing(self, task_store, project, make_task):
        existing = make_task(project_id=project.id, order=0)
        await task_store.create(existing)
        ghost = make_task(project_id=project.id, order=0)

        existing.order = 5
        with pytest.raises(TaskNotFoundError):
            await task_store.batch_update_order([existing, ghost])

        assert (await task_store.get(existing.id)).order == 0

    @pytest.mark.asyncio
    async def test_delete_returns_record(self, task_store, project, make_task):
        task = make_task(name="Doomed", project_id=project.id)
        await task_store.create(task)

        deleted = await task_store.delete(task.id)

        assert deleted.id == task.id
        assert deleted.name == "Doomed"
        with pytest.raises(TaskNotFoundError):
            await task_store.get(task.id)

    @pytest.mark.asyncio
    async def test_delete_missing_task_fails(self, task_store):
        with pytest.raises(TaskNotFoundError):
            await task_store.delete(uuid4())


class TestTaskStoreQueries:
    """Tests for tree queries."""

    @pytest.mark.asyncio
    async def test_subtasks_direct_sorted_by_order(self, task_store, project, make_task):
        parent = make_task(name="Parent", project_id=project.id)
        await task_store.create(parent)
        for name, order in [("B", 1), ("C", 2), ("A", 0)]:
            await task_store.create(
                make_task(name=name, project_id=project.id, parent_task_id=parent.id, order=order)
            )

        children = await task_store.get_subtasks_direct(parent.id)

        assert [c.name for c in children] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_subtasks_direct_missing_parent_fails(self, task_store):
        with pytest.raises(TaskNotFoundError):
            await task_store.get_subtasks_direct(uuid4())

    @pytest.mark.asyncio
    async def test_subtasks_deep_is_preorder(self, task_store, task_hierarchy):
        h = task_hierarchy

        descendants = await task_store.get_subtasks_deep(h["parent"].id)

        assert [d.id for d in descendants] == [
            h["child1"].id,
            h["grandchild1"].id,
            h["grandchild2"].id,
            h["child2"].id,
        ]

    @pytest.mark.asyncio
    async def test_subtasks_deep_of_leaf_is_empty(self, task_store, task_hierarchy):
        assert await task_store.get_subtasks_deep(task_hierarchy["child2"].id) == []

    @pytest.mark.asyncio
    async def test_project_root_excludes_subtasks_and_other_projects(
        self, task_store, project, other_project, make_task
    ):
        root = make_task(name="Root", project_id=project.id)
        await task_store.create(root)
        await task_store.create(make_task(name="Sub", project_id=project.id, parent_task_id=root.id))
        await task_store.create(make_task(name="Elsewhere", project_id=other_project.id))

        roots = await task_store.get_tasks_in_project_root(project.id)

        assert [t.name for t in roots] == ["Root"]

    @pytest.mark.asyncio
    async def test_tasks_by_project_and_status(self, task_store, project, other_project, make_task):
        done = make_task(name="Done", project_id=project.id, status=TaskStatus.COMPLETED)
        todo = make_task(name="Todo", project_id=project.id, order=1)
        await task_store.create(done)
        await task_store.create(todo)
        await task_store.create(make_task(name="Elsewhere", project_id=other_project.id))

        assert {t.name for t in await task_store.get_tasks_by_project(project.id)} == {"Done", "Todo"}
        completed = await task_store.get_tasks_by_status(project.id, TaskStatus.COMPLETED)
        assert [t.name for t in completed] == ["Done"]
        assert len(await task_store.list_tasks()) == 3


class TestProjectStore:
    """Tests for project persistence."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, project_store):
        project = Project(name="Garden")
        await project_store.create(project)

        stored = await project_store.get(project.id)

        assert stored.name == "Garden"

    @pytest.mark.asyncio
    async def test_get_missing_project_fails(self, project_store):
        with pytest.raises(ProjectNotFoundError):
            await project_store.get(uuid4())

    @pytest.mark.asyncio
    async def test_duplicate_name_fails(self, project_store):
        await project_store.create(Project(name="Garden"))

        with pytest.raises(AlreadyExistsError):
            await project_store.create(Project(name="Garden"))

    @pytest.mark.asyncio
    async def test_duplicate_id_fails(self, project_store):
        project = Project(name="Garden")
        await project_store.create(project)

        with pytest.raises(AlreadyExistsError):
            await project_store.create(Project(id=project.id, name="Shed"))

    @pytest.mark.asyncio
    async def test_get_by_name_and_list(self, project_store):
        await project_store.create(Project(name="Garden"))
        await project_store.create(Project(name="Shed"))

        assert (await project_store.get_by_name("Shed")).name == "Shed"
        assert await project_store.get_by_name("Attic") is None
        assert sorted(p.name for p in await project_store.list_projects()) == ["Garden", "Shed"]
