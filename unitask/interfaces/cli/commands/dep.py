"""Dependency CLI commands."""

import typer

from unitask.domain.dependency import DependencyType
from unitask.interfaces.cli.common import (
    actor_option,
    format_task_line,
    get_settings,
    open_workspace,
    print_info,
    print_success,
    unwrap_or_exit,
)

app = typer.Typer(help="Dependency commands")


@app.command("add")
def add(
    task_id: str = typer.Argument(..., help="Dependent task id"),
    depends_on: str = typer.Argument(..., help="Prerequisite task id"),
    dependency_type: DependencyType | None = typer.Option(
        None, "--type", help="Edge type (default from settings)"
    ),
    actor: str = actor_option,
) -> None:
    """Make TASK_ID depend on DEPENDS_ON."""
    workspace = open_workspace()
    edge_type = dependency_type or get_settings().default_dependency_type
    dependency = unwrap_or_exit(
        workspace.dependencies.add_dependency(task_id, depends_on, actor, edge_type)
    )
    print_success(f"Added dependency {dependency.id} ({dependency.dependency_type.value})")


@app.command("remove")
def remove(
    dependency_id: str = typer.Argument(..., help="Dependency id"),
    actor: str = actor_option,
) -> None:
    """Remove a dependency edge."""
    workspace = open_workspace()
    unwrap_or_exit(workspace.dependencies.remove_dependency(dependency_id, actor))
    print_success(f"Removed dependency {dependency_id}")


@app.command("list")
def list_dependencies(task_id: str = typer.Argument(..., help="Task id")) -> None:
    """Show the edges into and out of a task."""
    workspace = open_workspace()
    outgoing = unwrap_or_exit(workspace.dependencies.list_dependencies(task_id))
    incoming = unwrap_or_exit(workspace.dependencies.list_dependents(task_id))
    if not outgoing and not incoming:
        print_info("No dependencies")
        return

    for dependency in outgoing:
        typer.echo(
            f"{dependency.id}  depends on {dependency.depends_on_task_id} "
            f"({dependency.dependency_type.value})"
        )
    for dependency in incoming:
        typer.echo(
            f"{dependency.id}  required by {dependency.task_id} "
            f"({dependency.dependency_type.value})"
        )


@app.command("chain")
def chain(task_id: str = typer.Argument(..., help="Task id")) -> None:
    """Show every task TASK_ID transitively depends on."""
    workspace = open_workspace()
    tasks = unwrap_or_exit(workspace.dependencies.get_dependency_chain(task_id))
    if not tasks:
        print_info("No dependencies")
        return
    for task in tasks:
        typer.echo(format_task_line(task))

    blocked = unwrap_or_exit(workspace.dependencies.has_incomplete_dependencies(task_id))
    if blocked:
        print_info("Some blocking prerequisites are still open")
