"""Task status state machine.

Decides whether a task may move to a new status. Dependency state is passed
in by the caller so the check always sees the graph as it is at call time.
"""

from collections.abc import Iterable
from datetime import datetime

from unitask.domain.shared.errors import (
    InvalidStatusTransitionError,
    MissingBlockReasonError,
    UnmetDependencyError,
)
from unitask.domain.task.models import Task, TaskStatus


def check_transition(
    task: Task,
    new_status: TaskStatus,
    incomplete_dependency_ids: Iterable[str] = (),
) -> None:
    """Validate a status transition.

    Args:
        task: The task as it would be saved (blocked_reason already applied)
        new_status: Target status
        incomplete_dependency_ids: Counterparts of gating edges that are
            neither completed nor cancelled

    Raises:
        InvalidStatusTransitionError: Target is OVERDUE or task is terminal
        UnmetDependencyError: Starting work with open prerequisites
        MissingBlockReasonError: Blocking without a reason
    """
    if new_status == TaskStatus.OVERDUE:
        raise InvalidStatusTransitionError(
            task.id, task.status.value, new_status.value, "overdue is derived from the due date"
        )

    if task.is_terminal:
        raise InvalidStatusTransitionError(
            task.id, task.status.value, new_status.value, "task is already closed"
        )

    if new_status == TaskStatus.IN_PROGRESS:
        blocking = list(incomplete_dependency_ids)
        if blocking:
            raise UnmetDependencyError(task.id, blocking)

    if new_status == TaskStatus.BLOCKED:
        check_block_reason(task, new_status)


def check_block_reason(task: Task, status: TaskStatus | None = None) -> None:
    """Require a non-blank blocked_reason while a task is blocked.

    Args:
        task: The task as it would be saved
        status: Status the task will have; defaults to its current one

    Raises:
        MissingBlockReasonError: Blocked with an empty or missing reason
    """
    if (status or task.status) == TaskStatus.BLOCKED and not (task.blocked_reason or "").strip():
        raise MissingBlockReasonError(task.id)


def status_timestamps(task: Task, new_status: TaskStatus, now: datetime) -> dict[str, datetime]:
    """Timestamp fields to set alongside a status change.

    ``started_at`` is stamped on the first move to in-progress and
    ``completed_at`` on the first move to a terminal state.
    """
    updates: dict[str, datetime] = {}
    if new_status == TaskStatus.IN_PROGRESS and task.started_at is None:
        updates["started_at"] = now
    elif new_status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED) and task.completed_at is None:
        updates["completed_at"] = now
    return updates
