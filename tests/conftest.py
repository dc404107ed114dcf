"""
Shared pytest fixtures for the unitask test suite.

This module provides fixtures for:
- A controllable clock
- An in-memory store and the services wired over it
- Small factories for tasks and templates
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from unitask.application import Workspace
from unitask.domain.shared import unwrap
from unitask.domain.task import Task
from unitask.domain.template import Template
from unitask.infrastructure.storage import InMemoryStore

ACTOR = "user-1"


class FakeClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=UTC))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def workspace(store: InMemoryStore, clock: FakeClock) -> Workspace:
    return Workspace(store, clock=clock)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_task(workspace: Workspace) -> Callable[..., Task]:
    """Create a task and return it, failing the test on error."""

    def factory(title: str = "Task", **fields: Any) -> Task:
        return unwrap(workspace.tasks.create_task({"title": title, **fields}, ACTOR))

    return factory


@pytest.fixture
def make_template(workspace: Workspace) -> Callable[..., Template]:
    """Create a template from a blueprint list (and optional extras)."""

    def factory(tasks: list[dict[str, Any]], **fields: Any) -> Template:
        body = {"tasks": tasks, "dependencies": fields.pop("dependencies", [])}
        data = {"name": fields.pop("name", "Template"), "body": body, **fields}
        return unwrap(workspace.templates.create_template(data, ACTOR))

    return factory
