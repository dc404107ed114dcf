"""History record models and the event -> record mapping.

Records are append-only audit rows for external consumers. Values are
stored as strings; lists and maps are JSON-encoded.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from unitask.domain.shared.clock import as_utc, new_id
from unitask.domain.task.events import (
    DependencyAdded,
    DependencyRemoved,
    TaskAssigned,
    TaskCreated,
    TaskDeleted,
    TaskEvent,
    TaskFieldChanged,
    TaskMoved,
    TaskStatusChanged,
    TaskUnassigned,
)


class HistoryAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"
    MOVED = "moved"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    DEPENDENCY_ADDED = "dependency_added"
    DEPENDENCY_REMOVED = "dependency_removed"


class HistoryRecord(BaseModel):
    """An immutable change record for one task."""

    id: str = Field(default_factory=new_id)
    task_id: str
    actor: str
    action: HistoryAction
    field_name: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    description: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    model_config = {"frozen": True}


class HistoryFilter(BaseModel):
    """Queryable attributes of a task's history.

    ``since`` and ``until`` bound the record timestamp inclusively.
    """

    action: HistoryAction | None = None
    field_name: str | None = None
    actor: str | None = None
    since: datetime | None = None
    until: datetime | None = None

    @field_validator("since", "until")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    def matches(self, record: HistoryRecord) -> bool:
        if self.action is not None and record.action != self.action:
            return False
        if self.field_name is not None and record.field_name != self.field_name:
            return False
        if self.actor is not None and record.actor != self.actor:
            return False
        if self.since is not None and record.timestamp < self.since:
            return False
        if self.until is not None and record.timestamp > self.until:
            return False
        return True


def encode_value(value: Any) -> str | None:
    """Render a field value for storage in a history record."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, (list, dict)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def records_for_event(event: TaskEvent) -> list[HistoryRecord]:
    """Translate a task event into history records.

    Args:
        event: Any task domain event

    Returns:
        One record per event (field changes already arrive one per field)

    Raises:
        TypeError: For an event type with no history mapping
    """
    base: dict[str, Any] = {
        "task_id": event.task_id,
        "actor": event.actor,
        "timestamp": event.occurred_at,
    }

    if isinstance(event, TaskCreated):
        metadata = {"template_id": event.template_id} if event.template_id else {}
        return [HistoryRecord(
            **base,
            action=HistoryAction.CREATED,
            new_value=event.title,
            description="Task created",
            metadata=metadata,
        )]

    if isinstance(event, TaskFieldChanged):
        return [HistoryRecord(
            **base,
            action=HistoryAction.UPDATED,
            field_name=event.field_name,
            old_value=encode_value(event.old_value),
            new_value=encode_value(event.new_value),
            description=f"Changed {event.field_name}",
        )]

    if isinstance(event, TaskDeleted):
        return [HistoryRecord(**base, action=HistoryAction.DELETED, description="Task deleted")]

    if isinstance(event, TaskStatusChanged):
        metadata = {"notes": event.notes} if event.notes else {}
        return [HistoryRecord(
            **base,
            action=HistoryAction.STATUS_CHANGED,
            field_name="status",
            old_value=event.old_status,
            new_value=event.new_status,
            description=f"Status changed from '{event.old_status}' to '{event.new_status}'",
            metadata=metadata,
        )]

    if isinstance(event, TaskMoved):
        return [HistoryRecord(
            **base,
            action=HistoryAction.MOVED,
            field_name="parent_task_id",
            old_value=event.old_parent_id,
            new_value=event.new_parent_id,
            description="Parent task changed",
        )]

    if isinstance(event, TaskAssigned):
        return [HistoryRecord(
            **base,
            action=HistoryAction.ASSIGNED,
            field_name="assignments",
            new_value=encode_value(event.user_ids),
            description=f"Assigned {len(event.user_ids)} user(s)",
            metadata={
                "primary_user_id": event.primary_user_id,
                "replaced_existing": event.replaced_existing,
            },
        )]

    if isinstance(event, TaskUnassigned):
        return [HistoryRecord(
            **base,
            action=HistoryAction.UNASSIGNED,
            field_name="assignments",
            old_value=event.user_id,
            description="Assignment removed",
            metadata={"assignment_id": event.assignment_id},
        )]

    if isinstance(event, (DependencyAdded, DependencyRemoved)):
        added = isinstance(event, DependencyAdded)
        return [HistoryRecord(
            **base,
            action=HistoryAction.DEPENDENCY_ADDED if added else HistoryAction.DEPENDENCY_REMOVED,
            field_name="dependencies",
            old_value=None if added else event.depends_on_task_id,
            new_value=event.depends_on_task_id if added else None,
            description=f"{'Added' if added else 'Removed'} {event.dependency_type} dependency",
            metadata={"dependency_id": event.dependency_id, "dependency_type": event.dependency_type},
        )]

    raise TypeError(f"No history mapping for event {type(event).__name__}")
