"""Task domain models.

Pure domain models for the task graph. Uses Pydantic for validation and
serialization; the store keeps them as plain JSON-able documents.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from unitask.domain.shared.clock import as_utc, new_id, utc_now


class TaskStatus(str, Enum):
    """Status of a task.

    OVERDUE is derived from the due date for display and filtering; it is
    never stored as the result of a transition.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    REVIEW = "review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskOwner(BaseModel):
    """Opaque reference to whatever external record owns a task.

    The core stores the pair and filters on it but never dereferences it.
    """

    owner_type: str = Field(min_length=1, max_length=255)
    owner_id: str = Field(min_length=1)

    model_config = {"frozen": True}


def _dedupe(tags: list[str]) -> list[str]:
    return list(dict.fromkeys(tag.strip() for tag in tags if tag.strip()))


class Task(BaseModel):
    """A unit of work in the graph.

    Parent/child links form the hierarchy; dependency edges live in their
    own records. ``deleted_at`` marks a soft-deleted task that stays
    readable for audit.
    """

    id: str = Field(default_factory=new_id)
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    task_type: str | None = Field(default=None, max_length=50)
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    parent_task_id: str | None = None
    owner: TaskOwner | None = None
    estimated_hours: float = Field(default=0.0, ge=0)
    actual_hours: float = Field(default=0.0, ge=0)
    due_date: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    blocked_reason: str | None = None
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    completion_percentage: float = Field(default=0.0, ge=0, le=100)
    created_by: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, tags: list[str]) -> list[str]:
        return _dedupe(tags)

    @field_validator("due_date", "started_at", "completed_at", "deleted_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_terminal(self) -> bool:
        """Completed and cancelled tasks accept no further status changes."""
        return self.status in TERMINAL_STATUSES

    def is_overdue(self, now: datetime) -> bool:
        """Check if the task is past its due date and still open."""
        if self.due_date is None:
            return False
        return self.due_date < now and not self.is_terminal

    def display_status(self, now: datetime) -> TaskStatus:
        """Status as shown to users, with OVERDUE derived from the due date."""
        if self.is_overdue(now):
            return TaskStatus.OVERDUE
        return self.status


class TaskCreate(BaseModel):
    """Input for creating a task."""

    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    task_type: str | None = Field(default=None, max_length=50)
    priority: TaskPriority = TaskPriority.MEDIUM
    parent_task_id: str | None = None
    owner: TaskOwner | None = None
    estimated_hours: float = Field(default=0.0, ge=0)
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("due_date")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class TaskUpdate(BaseModel):
    """Partial update of plain task fields.

    Only fields explicitly set are applied. Status and parent changes go
    through the state machine and hierarchy validator instead.
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    task_type: str | None = Field(default=None, max_length=50)
    priority: TaskPriority | None = None
    owner: TaskOwner | None = None
    estimated_hours: float | None = Field(default=None, ge=0)
    actual_hours: float | None = Field(default=None, ge=0)
    due_date: datetime | None = None
    blocked_reason: str | None = None
    tags: list[str] | None = None
    metadata: dict[str, Any] | None = None

    model_config = {"extra": "forbid"}

    @field_validator("due_date")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class TaskFilter(BaseModel):
    """Queryable attributes for listing tasks."""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    task_type: str | None = None
    parent_task_id: str | None = None
    root_only: bool = False
    owner: TaskOwner | None = None
    tag: str | None = None
    overdue: bool | None = None
    include_deleted: bool = False

    def matches(self, task: Task, now: datetime) -> bool:
        if task.is_deleted and not self.include_deleted:
            return False
        if self.status is not None:
            if self.status == TaskStatus.OVERDUE:
                if not task.is_overdue(now):
                    return False
            elif task.status != self.status:
                return False
        if self.priority is not None and task.priority != self.priority:
            return False
        if self.task_type is not None and task.task_type != self.task_type:
            return False
        if self.parent_task_id is not None and task.parent_task_id != self.parent_task_id:
            return False
        if self.root_only and task.parent_task_id is not None:
            return False
        if self.owner is not None and task.owner != self.owner:
            return False
        if self.tag is not None and self.tag not in task.tags:
            return False
        if self.overdue is not None and task.is_overdue(now) != self.overdue:
            return False
        return True
