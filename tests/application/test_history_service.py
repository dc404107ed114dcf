"""Tests for the history recorder and per-task history queries."""

from collections.abc import Callable

from unitask.application import Workspace
from unitask.domain.history import HistoryAction
from unitask.domain.shared import NotFoundError, ValidationFailedError, unwrap
from unitask.domain.task import Task, TaskStatus

from conftest import ACTOR, FakeClock


class TestHistoryQueries:
    def test_full_lifecycle_in_order(
        self, workspace: Workspace, make_task: Callable[..., Task], clock: FakeClock
    ) -> None:
        task = make_task("Survey")
        clock.advance(minutes=1)
        unwrap(workspace.tasks.update_task(task.id, {"priority": "urgent"}, ACTOR))
        clock.advance(minutes=1)
        unwrap(workspace.tasks.transition_status(task.id, TaskStatus.IN_PROGRESS, ACTOR))
        clock.advance(minutes=1)
        unwrap(workspace.tasks.soft_delete_task(task.id, ACTOR))

        records = unwrap(workspace.history.for_task(task.id))

        assert [r.action for r in records] == [
            HistoryAction.CREATED,
            HistoryAction.UPDATED,
            HistoryAction.STATUS_CHANGED,
            HistoryAction.DELETED,
        ]
        assert records[1].old_value == "medium"
        assert records[1].new_value == "urgent"
        assert [r.timestamp for r in records] == sorted(r.timestamp for r in records)

    def test_filter_by_action(self, workspace: Workspace, make_task: Callable[..., Task]) -> None:
        task = make_task()
        unwrap(workspace.tasks.update_task(task.id, {"title": "Renamed"}, ACTOR))

        updates = unwrap(workspace.history.for_task(task.id, HistoryAction.UPDATED))
        assert [r.field_name for r in updates] == ["title"]

    def test_history_is_per_task(self, workspace: Workspace, make_task: Callable[..., Task]) -> None:
        first = make_task("First")
        make_task("Second")
        assert {r.task_id for r in unwrap(workspace.history.for_task(first.id))} == {first.id}

    def test_unknown_task(self, workspace: Workspace) -> None:
        result = workspace.history.for_task("ghost")
        assert isinstance(result.error, NotFoundError)

    def test_failed_operation_leaves_no_record(
        self, workspace: Workspace, make_task: Callable[..., Task]
    ) -> None:
        task = make_task()
        workspace.tasks.transition_status(task.id, TaskStatus.BLOCKED, ACTOR)

        assert len(unwrap(workspace.history.for_task(task.id))) == 1


class TestHistoryFilters:
    def test_filter_by_field_and_actor(
        self, workspace: Workspace, make_task: Callable[..., Task]
    ) -> None:
        task = make_task()
        unwrap(workspace.tasks.update_task(task.id, {"title": "Renamed", "priority": "high"}, ACTOR))
        unwrap(workspace.tasks.update_task(task.id, {"title": "Final"}, "user-2"))

        titles = unwrap(workspace.history.for_task(task.id, field_name="title"))
        assert [r.new_value for r in titles] == ["Renamed", "Final"]

        by_second = unwrap(workspace.history.for_task(task.id, actor="user-2"))
        assert [(r.field_name, r.new_value) for r in by_second] == [("title", "Final")]

    def test_date_range_is_inclusive(
        self, workspace: Workspace, make_task: Callable[..., Task], clock: FakeClock
    ) -> None:
        task = make_task()
        clock.advance(hours=1)
        start = clock.now
        unwrap(workspace.tasks.update_task(task.id, {"title": "Morning"}, ACTOR))
        clock.advance(hours=1)
        end = clock.now
        unwrap(workspace.tasks.update_task(task.id, {"title": "Noon"}, ACTOR))
        clock.advance(hours=1)
        unwrap(workspace.tasks.update_task(task.id, {"title": "Evening"}, ACTOR))

        window = unwrap(workspace.history.for_task(task.id, since=start, until=end))

        assert [r.new_value for r in window] == ["Morning", "Noon"]
        assert len(unwrap(workspace.history.for_task(task.id, since=end))) == 2

    def test_naive_bounds_read_as_utc(
        self, workspace: Workspace, make_task: Callable[..., Task], clock: FakeClock
    ) -> None:
        task = make_task()
        naive = clock.now.replace(tzinfo=None)

        [created] = unwrap(workspace.history.for_task(task.id, until=naive))
        assert created.action == HistoryAction.CREATED

    def test_unknown_action_is_a_validation_error(
        self, workspace: Workspace, make_task: Callable[..., Task]
    ) -> None:
        task = make_task()
        result = workspace.history.for_task(task.id, "renamed")
        assert isinstance(result.error, ValidationFailedError)
