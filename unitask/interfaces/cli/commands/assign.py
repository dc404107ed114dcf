"""Assignment CLI commands."""

from datetime import datetime

import typer

from unitask.interfaces.cli.common import (
    actor_option,
    format_timestamp,
    open_workspace,
    print_error,
    print_info,
    print_success,
    unwrap_or_exit,
)

app = typer.Typer(help="Assignment commands")


@app.command("add")
def add(
    task_id: str = typer.Argument(..., help="Task id"),
    users: list[str] = typer.Argument(..., help="User ids, in priority order"),
    primary: str | None = typer.Option(None, "--primary", help="User to mark primary"),
    role: str | None = typer.Option(None, "--role", help="Role label for every user"),
    expires: datetime | None = typer.Option(None, "--expires", help="Expiry (ISO format, UTC)"),
    replace: bool = typer.Option(False, "--replace", help="Remove existing assignments first"),
    actor: str = actor_option,
) -> None:
    """Assign one or more users to a task."""
    if primary is not None and primary not in users:
        print_error(f"--primary {primary} is not among the assigned users")
        raise typer.Exit(1)

    entries = [
        {"user_id": user, "role": role, "is_primary": user == primary, "expires_at": expires}
        for user in users
    ]
    workspace = open_workspace()
    written = unwrap_or_exit(
        workspace.assignments.assign_users(task_id, entries, actor, replace_existing=replace)
    )
    print_success(f"Assigned {len(written)} user(s) to task {task_id}")


@app.command("remove")
def remove(
    task_id: str = typer.Argument(..., help="Task id"),
    assignment_id: str = typer.Argument(..., help="Assignment id"),
    actor: str = actor_option,
) -> None:
    """Remove one assignment."""
    workspace = open_workspace()
    unwrap_or_exit(workspace.assignments.remove_assignment(task_id, assignment_id, actor))
    print_success(f"Removed assignment {assignment_id}")


@app.command("list")
def list_assignments(
    task_id: str = typer.Argument(..., help="Task id"),
    active_only: bool = typer.Option(False, "--active", help="Only unexpired assignments"),
) -> None:
    """List the assignments of a task."""
    workspace = open_workspace()
    assignments = unwrap_or_exit(workspace.assignments.list_assignments(task_id, active_only))
    if not assignments:
        print_info("No assignments")
        return

    for assignment in assignments:
        primary = " [primary]" if assignment.is_primary else ""
        role = f" as {assignment.role}" if assignment.role else ""
        expiry = f" until {format_timestamp(assignment.expires_at)}" if assignment.expires_at else ""
        typer.echo(f"{assignment.id}  {assignment.user_id}{role}{primary}{expiry}")


@app.command("who")
def who(task_id: str = typer.Argument(..., help="Task id")) -> None:
    """Show the effective assignee of a task."""
    workspace = open_workspace()
    assignee = unwrap_or_exit(workspace.assignments.get_effective_assignee(task_id))
    if assignee is None:
        print_info("Nobody is assigned")
        return

    source = f" (inherited from {assignee.source_task_id})" if assignee.inherited else ""
    typer.echo(f"{assignee.user_id}{source}")
