"""History CLI commands."""

from datetime import datetime

import typer

from unitask.domain.history import HistoryAction
from unitask.interfaces.cli.common import (
    format_timestamp,
    open_workspace,
    print_info,
    unwrap_or_exit,
)

app = typer.Typer(help="Change history commands")


@app.command("show")
def show(
    task_id: str = typer.Argument(..., help="Task id"),
    action: HistoryAction | None = typer.Option(None, "--action", help="Only this action"),
    field_name: str | None = typer.Option(None, "--field", help="Only changes to this field"),
    by: str | None = typer.Option(None, "--by", help="Only changes made by this actor"),
    since: datetime | None = typer.Option(None, "--since", help="Only changes at or after this time (UTC)"),
    until: datetime | None = typer.Option(None, "--until", help="Only changes at or before this time (UTC)"),
) -> None:
    """Show the change history of a task, oldest first."""
    workspace = open_workspace()
    records = unwrap_or_exit(workspace.history.for_task(
        task_id, action, field_name=field_name, actor=by, since=since, until=until
    ))
    if not records:
        print_info("No history")
        return

    for record in records:
        change = ""
        if record.field_name:
            change = f" {record.field_name}: {record.old_value or '-'} -> {record.new_value or '-'}"
        typer.echo(
            f"{format_timestamp(record.timestamp)}  {record.actor}  "
            f"{record.action.value}{change}"
        )
