"""CLI interface for unitask using Typer.

This module provides the command-line interface over the work-tracking
core.

Usage:
    unitask task create "Survey site"      # Create a task
    unitask dep add <task> <prerequisite>  # Add a dependency edge
    unitask task status <task> in_progress # Move a task
    unitask template instantiate <id> --var site=Nairobi

The CLI is structured as:
- app: Main Typer application
- commands/: Individual command groups (task, dep, assign, template, history)
- common.py: Shared utilities for CLI commands
- main.py: Entry point that runs the app
"""

from pathlib import Path

import typer

from unitask import __version__

# Import command groups
from unitask.interfaces.cli.commands import assign, dep, history, task, template
from unitask.interfaces.cli.common import STATE, configure_logging, get_settings

# Create the main Typer application
app = typer.Typer(
    name="unitask",
    help="Task graphs with dependencies, assignments and templates",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"unitask version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    store: Path | None = typer.Option(
        None,
        "--store",
        help="JSON store file (or set UNITASK_STORE env var)",
        envvar="UNITASK_STORE",
    ),
) -> None:
    """unitask - a work-tracking core with a thin CLI.

    Tasks form a hierarchy, depend on each other through typed edges and
    can be stamped out from versioned templates.
    """
    STATE["store_path"] = store
    STATE["settings"] = None
    configure_logging(get_settings().log_level)


# =============================================================================
# Register Command Groups
# =============================================================================

app.add_typer(task.app, name="task")
app.add_typer(dep.app, name="dep")
app.add_typer(assign.app, name="assign")
app.add_typer(template.app, name="template")
app.add_typer(history.app, name="history")


__all__ = ["app"]
