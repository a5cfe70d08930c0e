"""Entry point for tasktree.

This module allows running tasktree as a module:
    python -m tasktree tree "Home"

Or as an installed command:
    tasktree add "Home" "Buy paint"
"""

import argparse
import asyncio
import sys
from typing import List, Optional
from uuid import UUID

from tasktree.config import Config
from tasktree.database import DatabaseManager
from tasktree.errors import ProjectNotFoundError, TaskTreeError
from tasktree.logging_config import get_logger, setup_logging
from tasktree.models import Project, Task
from tasktree.services.project_service import ProjectService
from tasktree.services.task_service import TaskService

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tasktree",
        description="Manage hierarchical to-do lists grouped into projects",
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (default: from config)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("project-add", help="Create a project")
    p.add_argument("name")

    sub.add_parser("projects", help="List projects")

    p = sub.add_parser("add", help="Create a task")
    p.add_argument("project", help="Project name")
    p.add_argument("name", help="Task name")
    p.add_argument("--parent", type=UUID, help="Parent task id")

    p = sub.add_parser("rename", help="Rename a task")
    p.add_argument("task_id", type=UUID)
    p.add_argument("name")

    p = sub.add_parser("move", help="Move a task within its siblings")
    p.add_argument("task_id", type=UUID)
    p.add_argument("order", type=int)

    p = sub.add_parser("done", help="Mark a task completed")
    p.add_argument("task_id", type=UUID)

    p = sub.add_parser("undo", help="Mark a task pending")
    p.add_argument("task_id", type=UUID)

    p = sub.add_parser("rm", help="Delete a task and its subtasks")
    p.add_argument("task_id", type=UUID)

    p = sub.add_parser("show", help="Show a task with its subtasks")
    p.add_argument("task_id", type=UUID)

    p = sub.add_parser("tree", help="Show the task tree of a project")
    p.add_argument("project", help="Project name")

    return parser


def format_tree(tasks: List[Task], depth: int = 0) -> List[str]:
    """Render tasks and their loaded subtasks as indented lines."""
    lines = []
    for task in tasks:
        mark = "x" if task.is_completed else " "
        lines.append(f"{'  ' * depth}[{mark}] {task.order}. {task.name} ({task.id})")
        lines.extend(format_tree(task.subtasks, depth + 1))
    return lines


async def _project_by_name(projects: ProjectService, name: str) -> Project:
    project = await projects.get_project_by_name(name)
    if project is None:
        raise ProjectNotFoundError(f"Project '{name}' not found")
    return project


async def run_command(args: argparse.Namespace, db_manager: DatabaseManager) -> List[str]:
    """
    Execute a parsed command inside one database session.

    Args:
        args: Parsed command line
        db_manager: Initialized database manager

    Returns:
        Lines to print
    """
    async with db_manager.get_session() as session:
        projects = ProjectService.from_session(session)
        tasks = TaskService.from_session(session)

        if args.command == "project-add":
            project = await projects.create_project(args.name)
            return [f"Created project '{project.name}' ({project.id})"]

        if args.command == "projects":
            return [f"{p.name} ({p.id})" for p in await projects.list_projects()]

        if args.command == "add":
            project = await _project_by_name(projects, args.project)
            task = await tasks.create_task(args.name, project.id, args.parent)
            return [f"Created task '{task.name}' ({task.id}) at order {task.order}"]

        if args.command == "rename":
            task = await tasks.rename_task(args.task_id, args.name)
            return [f"Renamed task {task.id} to '{task.name}'"]

        if args.command == "move":
            task = await tasks.reorder_task(args.task_id, args.order)
            return [f"Task {task.id} is now at order {task.order}"]

        if args.command == "done":
            task = await tasks.complete_task(args.task_id)
            return [f"Completed task {task.id}"]

        if args.command == "undo":
            task = await tasks.mark_task_pending(args.task_id)
            return [f"Task {task.id} is pending"]

        if args.command == "rm":
            deleted = await tasks.delete_task(args.task_id)
            if deleted is None:
                return [f"Task {args.task_id} does not exist, nothing deleted"]
            return [f"Deleted task '{deleted.name}' ({deleted.id})"]

        if args.command == "show":
            return format_tree([await tasks.get_task(args.task_id, with_subtasks=True)])

        if args.command == "tree":
            project = await _project_by_name(projects, args.project)
            return [project.name] + format_tree(await tasks.get_project_tree(project.id), 1)

    raise ValueError(f"Unknown command: {args.command}")


async def _run(args: argparse.Namespace, database_url: str, echo: bool) -> List[str]:
    db_manager = DatabaseManager(database_url, echo=echo)
    await db_manager.initialize()
    try:
        return await run_command(args, db_manager)
    finally:
        await db_manager.close()


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point for tasktree.

    Args:
        args: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args is None:
        args = sys.argv[1:]

    parsed = build_parser().parse_args(args)

    config = Config()
    logging_config = config.get_logging_config()
    setup_logging(logging_config['level'], console=logging_config['console'])

    db_config = config.get_database_config()
    database_url = parsed.database_url or db_config['url']

    try:
        lines = asyncio.run(_run(parsed, database_url, db_config['echo']))
    except TaskTreeError as e:
        logger.error(f"Command '{parsed.command}' failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("tasktree interrupted by user (Ctrl+C)")
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
