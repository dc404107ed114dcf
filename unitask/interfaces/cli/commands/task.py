"""Task management CLI commands.

Commands for the task lifecycle: create, show, list, update, delete,
hierarchy moves and status transitions.
"""

from datetime import datetime

import typer

from unitask.domain.shared import is_err, utc_now
from unitask.domain.task import TaskFilter, TaskOwner, TaskPriority, TaskStatus
from unitask.interfaces.cli.common import (
    actor_option,
    format_task_line,
    open_workspace,
    parse_json,
    print_error,
    print_info,
    print_separator,
    print_success,
    print_task,
    unwrap_or_exit,
)

app = typer.Typer(help="Task management commands")


def _owner(owner_type: str | None, owner_id: str | None) -> TaskOwner | None:
    if owner_type is None and owner_id is None:
        return None
    if not owner_type or not owner_id:
        print_error("--owner-type and --owner-id must be given together")
        raise typer.Exit(1)
    return TaskOwner(owner_type=owner_type, owner_id=owner_id)


# =============================================================================
# CRUD
# =============================================================================


@app.command("create")
def create(
    title: str = typer.Argument(..., help="Task title"),
    description: str = typer.Option("", "--description", "-d", help="Task description"),
    task_type: str | None = typer.Option(None, "--type", help="Free-form task type"),
    priority: TaskPriority = typer.Option(TaskPriority.MEDIUM, "--priority", help="Task priority"),
    parent: str | None = typer.Option(None, "--parent", help="Parent task id"),
    due: datetime | None = typer.Option(None, "--due", help="Due date (ISO format, UTC)"),
    estimated_hours: float = typer.Option(0.0, "--hours", help="Estimated effort in hours"),
    tags: list[str] | None = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
    metadata: str | None = typer.Option(None, "--metadata", help="Metadata as a JSON object"),
    owner_type: str | None = typer.Option(None, "--owner-type", help="Owning record type"),
    owner_id: str | None = typer.Option(None, "--owner-id", help="Owning record id"),
    actor: str = actor_option,
) -> None:
    """Create a task."""
    workspace = open_workspace()
    data = {
        "title": title,
        "description": description,
        "task_type": task_type,
        "priority": priority,
        "parent_task_id": parent,
        "owner": _owner(owner_type, owner_id),
        "estimated_hours": estimated_hours,
        "due_date": due,
        "tags": tags or [],
        "metadata": parse_json(metadata, "--metadata") or {},
    }
    task = unwrap_or_exit(workspace.tasks.create_task(data, actor))
    print_success(f"Created task {task.id}")


@app.command("show")
def show(task_id: str = typer.Argument(..., help="Task id")) -> None:
    """Show a task with its subtasks, dependencies and assignments."""
    workspace = open_workspace()
    details = unwrap_or_exit(workspace.tasks.get_task_details(task_id))
    print_task(details.task)

    if details.subtasks:
        typer.echo("\nSubtasks:")
        for subtask in details.subtasks:
            typer.echo(f"  {format_task_line(subtask)}")
    if details.dependencies:
        typer.echo("\nDepends on:")
        for dependency in details.dependencies:
            typer.echo(f"  {dependency.depends_on_task_id} ({dependency.dependency_type.value})")
    if details.dependents:
        typer.echo("\nRequired by:")
        for dependency in details.dependents:
            typer.echo(f"  {dependency.task_id} ({dependency.dependency_type.value})")
    if details.assignments:
        typer.echo("\nAssigned:")
        for assignment in details.assignments:
            primary = " *" if assignment.is_primary else ""
            role = f" as {assignment.role}" if assignment.role else ""
            typer.echo(f"  {assignment.user_id}{role}{primary}")
    print_separator()


@app.command("list")
def list_tasks(
    status: TaskStatus | None = typer.Option(None, "--status", "-s", help="Filter by status"),
    priority: TaskPriority | None = typer.Option(None, "--priority", help="Filter by priority"),
    task_type: str | None = typer.Option(None, "--type", help="Filter by task type"),
    parent: str | None = typer.Option(None, "--parent", help="Only children of this task"),
    root_only: bool = typer.Option(False, "--root", help="Only tasks without a parent"),
    tag: str | None = typer.Option(None, "--tag", "-t", help="Filter by tag"),
    overdue: bool = typer.Option(False, "--overdue", help="Only overdue tasks"),
    include_deleted: bool = typer.Option(False, "--all", help="Include soft-deleted tasks"),
) -> None:
    """List tasks."""
    workspace = open_workspace()
    filters = TaskFilter(
        status=status,
        priority=priority,
        task_type=task_type,
        parent_task_id=parent,
        root_only=root_only,
        tag=tag,
        overdue=True if overdue else None,
        include_deleted=include_deleted,
    )
    tasks = workspace.tasks.list_tasks(filters)
    if not tasks:
        print_info("No tasks found")
        return

    now = utc_now()
    for task in tasks:
        typer.echo(format_task_line(task, now))


@app.command("update")
def update(
    task_id: str = typer.Argument(..., help="Task id"),
    title: str | None = typer.Option(None, "--title", help="New title"),
    description: str | None = typer.Option(None, "--description", "-d", help="New description"),
    priority: TaskPriority | None = typer.Option(None, "--priority", help="New priority"),
    due: datetime | None = typer.Option(None, "--due", help="New due date (ISO format, UTC)"),
    estimated_hours: float | None = typer.Option(None, "--hours", help="Estimated effort"),
    actual_hours: float | None = typer.Option(None, "--actual-hours", help="Actual effort"),
    tags: list[str] | None = typer.Option(None, "--tag", "-t", help="Replace tags (repeatable)"),
    actor: str = actor_option,
) -> None:
    """Update plain task fields."""
    changes = {
        "title": title,
        "description": description,
        "priority": priority,
        "due_date": due,
        "estimated_hours": estimated_hours,
        "actual_hours": actual_hours,
        "tags": tags or None,
    }
    changes = {name: value for name, value in changes.items() if value is not None}
    if not changes:
        print_error("Nothing to update")
        raise typer.Exit(1)

    workspace = open_workspace()
    task = unwrap_or_exit(workspace.tasks.update_task(task_id, changes, actor))
    print_success(f"Updated task {task.id}")


@app.command("delete")
def delete(
    task_id: str = typer.Argument(..., help="Task id"),
    actor: str = actor_option,
) -> None:
    """Soft-delete a task."""
    workspace = open_workspace()
    unwrap_or_exit(workspace.tasks.soft_delete_task(task_id, actor))
    print_success(f"Deleted task {task_id}")


# =============================================================================
# Hierarchy
# =============================================================================


@app.command("move")
def move(
    task_id: str = typer.Argument(..., help="Task id"),
    parent: str | None = typer.Option(None, "--parent", help="New parent task id"),
    root: bool = typer.Option(False, "--root", help="Detach from the current parent"),
    actor: str = actor_option,
) -> None:
    """Move a task under a new parent."""
    if (parent is None) == (not root):
        print_error("Give exactly one of --parent or --root")
        raise typer.Exit(1)

    workspace = open_workspace()
    unwrap_or_exit(workspace.tasks.set_parent(task_id, parent, actor))
    print_success(f"Moved task {task_id} to {parent or 'the root'}")


@app.command("ancestors")
def ancestors(task_id: str = typer.Argument(..., help="Task id")) -> None:
    """Show the parent chain up to the root."""
    workspace = open_workspace()
    tasks = unwrap_or_exit(workspace.tasks.get_ancestors(task_id))
    if not tasks:
        print_info("Task has no parent")
        return
    for depth, task in enumerate(tasks, start=1):
        typer.echo(f"{'  ' * depth}^ {format_task_line(task)}")


@app.command("tree")
def tree(task_id: str = typer.Argument(..., help="Task id")) -> None:
    """Show a task and everything below it."""
    workspace = open_workspace()
    root = unwrap_or_exit(workspace.tasks.get_hierarchy_tree(task_id))

    typer.echo(format_task_line(root.task))
    stack = [(child, 1) for child in reversed(root.children)]
    while stack:
        node, depth = stack.pop()
        typer.echo(f"{'  ' * depth}- {format_task_line(node.task)}")
        stack.extend((child, depth + 1) for child in reversed(node.children))


# =============================================================================
# Status
# =============================================================================


@app.command("status")
def status(
    task_id: str = typer.Argument(..., help="Task id"),
    new_status: TaskStatus = typer.Argument(..., help="Target status"),
    reason: str | None = typer.Option(None, "--reason", "-r", help="Blocked reason"),
    notes: str | None = typer.Option(None, "--notes", "-n", help="Notes for the history"),
    actor: str = actor_option,
) -> None:
    """Move a task to a new status."""
    workspace = open_workspace()
    task = unwrap_or_exit(
        workspace.tasks.transition_status(task_id, new_status, actor, blocked_reason=reason, notes=notes)
    )
    print_success(f"Task {task.id} is now {task.status.value}")


@app.command("check")
def check(
    task_id: str = typer.Argument(..., help="Task id"),
    new_status: TaskStatus = typer.Argument(..., help="Target status"),
) -> None:
    """Check whether a status transition would be allowed."""
    workspace = open_workspace()
    result = workspace.tasks.can_transition_to(task_id, new_status)
    if is_err(result):
        print_error(f"Not allowed: {result.error.message}")
        raise typer.Exit(1)
    print_success(f"Transition to {new_status.value} allowed")
