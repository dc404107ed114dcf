"""Template CLI commands.

Templates are read from JSON files shaped like ``TemplateCreate``:

    {
      "name": "Site install",
      "variables": [{"name": "site", "required": true}],
      "body": {
        "tasks": [
          {"id": "t1", "title": "Prep {{site}}"},
          {"id": "t2", "title": "Install {{site}}", "depends_on": "t1"}
        ]
      }
    }
"""

from pathlib import Path

import typer

from unitask.domain.task import TaskOwner
from unitask.domain.template import InstantiationContext
from unitask.interfaces.cli.common import (
    actor_option,
    format_task_line,
    open_workspace,
    parse_assignments,
    parse_json,
    print_error,
    print_header,
    print_info,
    print_success,
    read_json_file,
    unwrap_or_exit,
)

app = typer.Typer(help="Template commands")


@app.command("create")
def create(
    path: Path = typer.Argument(..., help="JSON file with the template definition"),
    actor: str = actor_option,
) -> None:
    """Create a template from a JSON file."""
    workspace = open_workspace()
    template = unwrap_or_exit(workspace.templates.create_template(read_json_file(path), actor))
    print_success(f"Created template {template.id} '{template.name}' v{template.version}")


@app.command("version")
def new_version(
    template_id: str = typer.Argument(..., help="Template id to supersede"),
    path: Path = typer.Argument(..., help="JSON file with the fields to change"),
    actor: str = actor_option,
) -> None:
    """Create a new version of a template."""
    workspace = open_workspace()
    template = unwrap_or_exit(
        workspace.templates.create_new_version(template_id, read_json_file(path), actor)
    )
    print_success(f"Created version {template.version} as {template.id}")


@app.command("list")
def list_templates(
    active_only: bool = typer.Option(False, "--active", help="Only active versions"),
    category: str | None = typer.Option(None, "--category", "-c", help="Only this category"),
) -> None:
    """List templates."""
    workspace = open_workspace()
    templates = workspace.templates.list_templates(active_only=active_only, category=category)
    if not templates:
        print_info("No templates")
        return
    for template in templates:
        state = "active" if template.is_active else "inactive"
        typer.echo(f"{template.id}  {template.name} v{template.version} [{state}]")


@app.command("show")
def show(template_id: str = typer.Argument(..., help="Template id")) -> None:
    """Show a template's variables and blueprints."""
    workspace = open_workspace()
    template = unwrap_or_exit(workspace.templates.get_template(template_id))
    print_header(f"Template: {template.name} v{template.version}")
    if template.description:
        typer.echo(template.description)
    if template.variables:
        typer.echo("\nVariables:")
        for spec in template.variables:
            required = " (required)" if spec.required else ""
            typer.echo(f"  {spec.name}: {spec.type}{required}")
    typer.echo("\nBlueprints:")
    for blueprint in template.body.tasks:
        after = f" after {', '.join(blueprint.depends_on)}" if blueprint.depends_on else ""
        typer.echo(f"  {blueprint.id}: {blueprint.title}{after}")


@app.command("versions")
def versions(template_id: str = typer.Argument(..., help="Any version's id")) -> None:
    """Show the version chain of a template."""
    workspace = open_workspace()
    chain = unwrap_or_exit(workspace.templates.list_versions(template_id))
    for template in chain:
        marker = " *" if template.is_active else ""
        typer.echo(f"v{template.version}  {template.id}{marker}")


@app.command("instantiate")
def instantiate(
    template_id: str = typer.Argument(..., help="Template id"),
    variables: list[str] | None = typer.Option(None, "--var", help="Variable as name=value (repeatable)"),
    parent: str | None = typer.Option(None, "--parent", help="Parent for the created root tasks"),
    assignee: str | None = typer.Option(None, "--assignee", help="Primary assignee of every task"),
    owner_type: str | None = typer.Option(None, "--owner-type", help="Owning record type"),
    owner_id: str | None = typer.Option(None, "--owner-id", help="Owning record id"),
    metadata: str | None = typer.Option(None, "--metadata", help="Extra metadata as a JSON object"),
    actor: str = actor_option,
) -> None:
    """Create tasks and dependencies from a template."""
    owner = None
    if owner_type or owner_id:
        if not (owner_type and owner_id):
            print_error("--owner-type and --owner-id must be given together")
            raise typer.Exit(1)
        owner = TaskOwner(owner_type=owner_type, owner_id=owner_id)

    context = InstantiationContext(
        owner=owner,
        parent_task_id=parent,
        assignee_user_id=assignee,
        metadata=parse_json(metadata, "--metadata") or {},
    )
    workspace = open_workspace()
    result = unwrap_or_exit(
        workspace.templates.instantiate(template_id, parse_assignments(variables or []), actor, context)
    )

    print_success(
        f"Created {len(result.tasks)} task(s) and {len(result.dependencies)} "
        f"dependency edge(s) from template v{result.template_version}"
    )
    for task in result.tasks:
        typer.echo(f"  {format_task_line(task)}")
