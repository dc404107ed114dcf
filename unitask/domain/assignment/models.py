"""Assignment domain models.

An assignment links one user to one task with a role label. At most one
assignment per task is primary.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from unitask.domain.shared.clock import as_utc, new_id, utc_now


class Assignment(BaseModel):
    """A user assigned to a task."""

    id: str = Field(default_factory=new_id)
    task_id: str
    user_id: str = Field(min_length=1)
    assigned_by: str
    role: str | None = Field(default=None, max_length=50)
    is_primary: bool = False
    assigned_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    def is_active(self, now: datetime) -> bool:
        """Active iff there is no expiry or it lies in the future."""
        return self.expires_at is None or self.expires_at > now


class AssignmentRequest(BaseModel):
    """One entry of a bulk assignment call."""

    user_id: str = Field(min_length=1)
    role: str | None = Field(default=None, max_length=50)
    is_primary: bool = False
    expires_at: datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class TaskAssignments(BaseModel):
    """The assignments of a single task with query helpers."""

    assignments: list[Assignment] = Field(default_factory=list)

    def primary(self, now: datetime) -> Assignment | None:
        """Get the active primary assignment, if any."""
        for assignment in self.assignments:
            if assignment.is_primary and assignment.is_active(now):
                return assignment
        return None

    def active(self, now: datetime) -> list[Assignment]:
        """Get active assignments, earliest first."""
        return sorted(
            (a for a in self.assignments if a.is_active(now)),
            key=lambda a: a.assigned_at,
        )


class EffectiveAssignee(BaseModel):
    """Result of resolving who is responsible for a task.

    ``source_task_id`` is the task whose assignment was used; it differs
    from the queried task when the assignee was inherited from an ancestor.
    """

    user_id: str
    assignment_id: str
    source_task_id: str
    inherited: bool = False
