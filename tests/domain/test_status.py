"""Unit tests for the status state machine."""

from datetime import UTC, datetime

import pytest

from unitask.domain.shared import (
    InvalidStatusTransitionError,
    MissingBlockReasonError,
    UnmetDependencyError,
)
from unitask.domain.task import (
    Task,
    TaskStatus,
    check_block_reason,
    check_transition,
    status_timestamps,
)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def make(status: TaskStatus = TaskStatus.PENDING, **fields) -> Task:
    return Task(title="Task", status=status, **fields)


class TestCheckTransition:
    def test_start_without_dependencies(self) -> None:
        check_transition(make(), TaskStatus.IN_PROGRESS)

    def test_start_with_open_prerequisites(self) -> None:
        with pytest.raises(UnmetDependencyError) as exc_info:
            check_transition(make(), TaskStatus.IN_PROGRESS, ["dep-1", "dep-2"])
        assert exc_info.value.blocking_ids == ["dep-1", "dep-2"]

    def test_open_prerequisites_do_not_gate_other_targets(self) -> None:
        check_transition(make(), TaskStatus.REVIEW, ["dep-1"])

    def test_block_requires_reason(self) -> None:
        with pytest.raises(MissingBlockReasonError):
            check_transition(make(), TaskStatus.BLOCKED)

    def test_whitespace_reason_is_empty(self) -> None:
        with pytest.raises(MissingBlockReasonError):
            check_transition(make(blocked_reason="   "), TaskStatus.BLOCKED)

    def test_block_with_reason(self) -> None:
        check_transition(make(blocked_reason="Waiting on vendor"), TaskStatus.BLOCKED)

    def test_overdue_is_not_a_target(self) -> None:
        with pytest.raises(InvalidStatusTransitionError):
            check_transition(make(), TaskStatus.OVERDUE)

    @pytest.mark.parametrize("terminal", [TaskStatus.COMPLETED, TaskStatus.CANCELLED])
    def test_terminal_tasks_are_closed(self, terminal: TaskStatus) -> None:
        with pytest.raises(InvalidStatusTransitionError):
            check_transition(make(terminal), TaskStatus.PENDING)


class TestCheckBlockReason:
    @pytest.mark.parametrize("reason", [None, "", "  "])
    def test_blocked_task_needs_reason(self, reason: str | None) -> None:
        with pytest.raises(MissingBlockReasonError):
            check_block_reason(make(TaskStatus.BLOCKED, blocked_reason=reason))

    def test_unblocked_task_may_drop_reason(self) -> None:
        check_block_reason(make(TaskStatus.IN_PROGRESS))

    def test_target_status_overrides_current(self) -> None:
        with pytest.raises(MissingBlockReasonError):
            check_block_reason(make(), TaskStatus.BLOCKED)


class TestStatusTimestamps:
    def test_first_start_stamps_started_at(self) -> None:
        assert status_timestamps(make(), TaskStatus.IN_PROGRESS, NOW) == {"started_at": NOW}

    def test_restart_keeps_started_at(self) -> None:
        task = make(TaskStatus.BLOCKED, started_at=datetime(2026, 1, 1, tzinfo=UTC))
        assert status_timestamps(task, TaskStatus.IN_PROGRESS, NOW) == {}

    @pytest.mark.parametrize("terminal", [TaskStatus.COMPLETED, TaskStatus.CANCELLED])
    def test_terminal_stamps_completed_at(self, terminal: TaskStatus) -> None:
        assert status_timestamps(make(), terminal, NOW) == {"completed_at": NOW}

    def test_review_stamps_nothing(self) -> None:
        assert status_timestamps(make(), TaskStatus.REVIEW, NOW) == {}
