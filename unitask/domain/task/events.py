"""Task domain events.

Immutable records of state changes on a task. Every mutating service call
emits at least one of these; the history recorder persists them inside the
same transaction.

All events are pure data structures - no I/O, no side effects.
"""

from typing import Any

from unitask.domain.shared.events import DomainEvent


class TaskEvent(DomainEvent):
    """Base class for events about a single task."""

    task_id: str


class TaskCreated(TaskEvent):
    """Event raised when a task is created."""

    title: str
    template_id: str | None = None


class TaskFieldChanged(TaskEvent):
    """Event raised for each plain field changed by an update."""

    field_name: str
    old_value: Any = None
    new_value: Any = None


class TaskDeleted(TaskEvent):
    """Event raised when a task is soft-deleted."""


class TaskStatusChanged(TaskEvent):
    """Event raised when a task moves between statuses."""

    old_status: str
    new_status: str
    notes: str | None = None


class TaskMoved(TaskEvent):
    """Event raised when a task gets a new parent (or is detached)."""

    old_parent_id: str | None = None
    new_parent_id: str | None = None


class TaskAssigned(TaskEvent):
    """Event raised when users are assigned to a task."""

    user_ids: list[str]
    primary_user_id: str | None = None
    replaced_existing: bool = False


class TaskUnassigned(TaskEvent):
    """Event raised when a single assignment is removed."""

    assignment_id: str
    user_id: str


class DependencyAdded(TaskEvent):
    """Event raised when the task gains a prerequisite."""

    dependency_id: str
    depends_on_task_id: str
    dependency_type: str


class DependencyRemoved(TaskEvent):
    """Event raised when a prerequisite edge is removed."""

    dependency_id: str
    depends_on_task_id: str
    dependency_type: str
