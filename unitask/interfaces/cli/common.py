"""Shared utilities for unitask CLI commands.

This module provides common utilities used across CLI commands:
- Store resolution and workspace wiring
- Result handling (exit 1 on error)
- Formatted output helpers (error, success, info)
- Task and record formatting for display
"""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TypeVar

import typer

from unitask.application import Workspace
from unitask.config import Settings, load_settings
from unitask.domain.shared import Result, UnitaskError, is_err, utc_now
from unitask.domain.task import Task
from unitask.infrastructure.storage import JsonFileStore

T = TypeVar("T")

# Reusable actor option for mutating commands
# Usage: def my_command(actor: str = actor_option) -> None:
actor_option = typer.Option(
    "cli",
    "--actor",
    "-a",
    help="Id recorded as the author of the change (or set UNITASK_ACTOR)",
    envvar="UNITASK_ACTOR",
)

# Set by the app callback
STATE: dict[str, Any] = {"store_path": None, "settings": None}


def get_settings() -> Settings:
    if STATE["settings"] is None:
        STATE["settings"] = load_settings()
    return STATE["settings"]


def configure_logging(level: str) -> None:
    """Configure the root logger for CLI runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def open_workspace() -> Workspace:
    """Open the JSON store and wire the services over it.

    Resolution order for the store file:
    1. --store option / UNITASK_STORE env var
    2. store_path from the config file
    3. store.json in the config directory

    Raises:
        typer.Exit: If the store file cannot be read.
    """
    settings = get_settings()
    path = STATE["store_path"] or settings.resolved_store_path()

    result = JsonFileStore.open(Path(path))
    if is_err(result):
        print_error(result.error)
        raise typer.Exit(1)
    return Workspace(result.value, default_priority=settings.default_priority)


def unwrap_or_exit(result: Result[T, UnitaskError]) -> T:
    """Return the value of a Result or print its error and exit 1."""
    if is_err(result):
        error = result.error
        print_error(f"{error.message} [{error.code}]")
        raise typer.Exit(1)
    return result.value


def parse_json(value: str | None, what: str) -> Any:
    """Parse a JSON command-line value, exiting on malformed input."""
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        print_error(f"Invalid JSON for {what}: {e}")
        raise typer.Exit(1)


def read_json_file(path: Path) -> Any:
    """Read a JSON document given on the command line ('-' not supported)."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        print_error(f"Cannot read {path}: {e}")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        print_error(f"Invalid JSON in {path}: {e}")
        raise typer.Exit(1)


def parse_assignments(pairs: list[str]) -> dict[str, Any]:
    """Parse ``name=value`` pairs; values are read as JSON when possible.

    Examples:
        >>> parse_assignments(["site=Nairobi", "crew=4", "urgent=true"])
        {'site': 'Nairobi', 'crew': 4, 'urgent': True}
    """
    parsed: dict[str, Any] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep or not name:
            print_error(f"Expected name=value, got '{pair}'")
            raise typer.Exit(1)
        try:
            parsed[name] = json.loads(raw)
        except json.JSONDecodeError:
            parsed[name] = raw
    return parsed


def print_error(msg: str) -> None:
    """Print a formatted error message.

    Args:
        msg: Error message to display
    """
    typer.echo(typer.style(f"Error: {msg}", fg=typer.colors.RED), err=True)


def print_success(msg: str) -> None:
    """Print a formatted success message.

    Args:
        msg: Success message to display
    """
    typer.echo(typer.style(msg, fg=typer.colors.GREEN))


def print_info(msg: str) -> None:
    """Print a formatted info message.

    Args:
        msg: Info message to display
    """
    typer.echo(typer.style(msg, fg=typer.colors.BLUE))


def print_separator(char: str = "=", width: int = 60) -> None:
    typer.echo(char * width)


def print_header(title: str, width: int = 60) -> None:
    """Print a formatted header with separators."""
    print_separator("=", width)
    typer.echo(title)
    print_separator("=", width)


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.astimezone(UTC).strftime("%Y-%m-%d %H:%M")


def format_task_line(task: Task, now: datetime | None = None) -> str:
    """One-line summary: id, display status, priority and title."""
    status = task.display_status(now or utc_now()).value
    deleted = " (deleted)" if task.is_deleted else ""
    return f"{task.id}  [{status}] ({task.priority.value}) {task.title}{deleted}"


def print_task(task: Task) -> None:
    """Print every user-facing field of a task."""
    print_header(f"Task: {task.title}")
    typer.echo(f"ID:          {task.id}")
    typer.echo(f"Status:      {task.display_status(utc_now()).value}")
    typer.echo(f"Priority:    {task.priority.value}")
    if task.task_type:
        typer.echo(f"Type:        {task.task_type}")
    if task.parent_task_id:
        typer.echo(f"Parent:      {task.parent_task_id}")
    if task.owner:
        typer.echo(f"Owner:       {task.owner.owner_type}:{task.owner.owner_id}")
    typer.echo(f"Due:         {format_timestamp(task.due_date)}")
    typer.echo(f"Hours:       {task.actual_hours:g} / {task.estimated_hours:g}")
    typer.echo(f"Completion:  {task.completion_percentage:g}%")
    if task.blocked_reason:
        typer.echo(f"Blocked:     {task.blocked_reason}")
    if task.tags:
        typer.echo(f"Tags:        {', '.join(task.tags)}")
    if task.description:
        typer.echo(f"\n{task.description}")


__all__ = [
    "STATE",
    "actor_option",
    "configure_logging",
    "format_task_line",
    "format_timestamp",
    "get_settings",
    "open_workspace",
    "parse_assignments",
    "parse_json",
    "print_error",
    "print_header",
    "print_info",
    "print_separator",
    "print_success",
    "print_task",
    "read_json_file",
    "unwrap_or_exit",
]
