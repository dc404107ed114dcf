"""Assignment domain - users on tasks, primary resolution."""

from unitask.domain.assignment.models import (
    Assignment,
    AssignmentRequest,
    EffectiveAssignee,
    TaskAssignments,
)
from unitask.domain.assignment.policy import representative_assignee, resolve_primary

__all__ = [
    "Assignment",
    "AssignmentRequest",
    "TaskAssignments",
    "EffectiveAssignee",
    "resolve_primary",
    "representative_assignee",
]
