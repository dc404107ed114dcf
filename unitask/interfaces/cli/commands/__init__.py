"""CLI command groups for unitask.

This package contains individual command groups that are registered
with the main Typer app. Each module provides a set of related commands.

Command groups:
- task: Task CRUD, hierarchy and status (create, list, move, status, etc.)
- dep: Dependency edges (add, remove, list, chain)
- assign: Assignments (add, remove, list, who)
- template: Templates (create, version, versions, instantiate, etc.)
- history: Change history (show)

Each command group is a Typer app that gets registered
with the main app using app.add_typer().
"""

from unitask.interfaces.cli.commands import assign, dep, history, task, template

__all__ = ["task", "dep", "assign", "template", "history"]
