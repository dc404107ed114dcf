"""Task application service.

Orchestrates the task store, hierarchy validator and status state machine.
Every mutation runs inside one store transaction together with its history
records, so a rejected or failed call leaves no trace.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from unitask.application.common import incomplete_prerequisites, parse, rejected
from unitask.application.history_service import HistoryRecorder
from unitask.domain.assignment import Assignment
from unitask.domain.dependency import Dependency
from unitask.domain.shared import (
    Clock,
    Ok,
    Result,
    UnitaskError,
    ValidationFailedError,
    utc_now,
)
from unitask.domain.task import (
    Task,
    TaskCreate,
    TaskCreated,
    TaskDeleted,
    TaskFieldChanged,
    TaskFilter,
    TaskMoved,
    TaskStatus,
    TaskStatusChanged,
    TaskUpdate,
    check_block_reason,
    check_transition,
    completion_percentage,
    status_timestamps,
    validate_parent,
    walk_ancestors,
    walk_descendants,
)
from unitask.infrastructure.storage import InMemoryStore

logger = logging.getLogger(__name__)


class TaskDetails(BaseModel):
    """A task with its directly related records eager-loaded."""

    task: Task
    display_status: TaskStatus
    subtasks: list[Task] = Field(default_factory=list)
    dependencies: list[Dependency] = Field(default_factory=list)
    dependents: list[Dependency] = Field(default_factory=list)
    assignments: list[Assignment] = Field(default_factory=list)


class TaskNode(BaseModel):
    """A live task with its live subtasks, nested to any depth."""

    task: Task
    children: list["TaskNode"] = Field(default_factory=list)


class TaskService:
    """Create, query and mutate tasks.

    Args:
        store: The transactional store holding the graph.
        history: Recorder for change records.
        clock: Source of timestamps; defaults to UTC wall time.
    """

    def __init__(
        self,
        store: InMemoryStore,
        history: HistoryRecorder,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._history = history
        self._clock = clock

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_task(
        self,
        data: TaskCreate | Mapping[str, Any],
        actor: str,
        template_id: str | None = None,
    ) -> Result[Task, UnitaskError]:
        """Create a task.

        Args:
            data: Task fields; a mapping is validated as TaskCreate.
            actor: Opaque id of the caller.
            template_id: Template the task was instantiated from, if any.

        Returns:
            Ok(Task) on success, or Err(NotFoundError) if the parent is
            missing, Err(ValidationFailedError) for invalid data.
        """
        try:
            payload = parse(TaskCreate, data)
            with self._store.transaction():
                if payload.parent_task_id is not None:
                    self._store.tasks.require(payload.parent_task_id)

                now = self._clock()
                task = Task(
                    **dict(payload),
                    created_by=actor,
                    created_at=now,
                    updated_at=now,
                )
                self._store.tasks.save(task)
                self._history.record(
                    TaskCreated(
                        task_id=task.id,
                        actor=actor,
                        occurred_at=now,
                        title=task.title,
                        template_id=template_id,
                    )
                )
                self._refresh_completion(task.parent_task_id)
        except UnitaskError as e:
            return rejected("create_task", e)

        logger.info(f"Created task {task.id} '{task.title}'")
        return Ok(task)

    def get_task(self, task_id: str, include_deleted: bool = False) -> Result[Task, UnitaskError]:
        """Get a task by id."""
        try:
            return Ok(self._store.tasks.require(task_id, include_deleted=include_deleted))
        except UnitaskError as e:
            return rejected("get_task", e)

    def get_task_details(self, task_id: str) -> Result[TaskDetails, UnitaskError]:
        """Get a task with its subtasks, dependency edges and assignments."""
        try:
            with self._store.read():
                task = self._store.tasks.require(task_id, include_deleted=True)
                subtasks = [
                    self._store.tasks.require(child_id)
                    for child_id in self._store.tasks.children_of(task_id, include_deleted=False)
                ]
                return Ok(TaskDetails(
                    task=task,
                    display_status=task.display_status(self._clock()),
                    subtasks=subtasks,
                    dependencies=self._store.dependencies.outgoing(task_id),
                    dependents=self._store.dependencies.incoming(task_id),
                    assignments=self._store.assignments.for_task(task_id),
                ))
        except UnitaskError as e:
            return rejected("get_task_details", e)

    def list_tasks(self, filters: TaskFilter | None = None) -> list[Task]:
        """List tasks matching ``filters``, oldest first."""
        filters = filters or TaskFilter()
        now = self._clock()
        with self._store.read():
            tasks = self._store.tasks.all(include_deleted=filters.include_deleted)
        return sorted(
            (task for task in tasks if filters.matches(task, now)),
            key=lambda task: task.created_at,
        )

    def update_task(
        self,
        task_id: str,
        changes: TaskUpdate | Mapping[str, Any],
        actor: str,
    ) -> Result[Task, UnitaskError]:
        """Apply a partial update to plain task fields.

        Only fields explicitly present in ``changes`` are considered; each
        field whose value actually changes gets its own history record.
        A blocked task cannot have its blocked_reason cleared.
        """
        try:
            update = parse(TaskUpdate, changes)
            with self._store.transaction():
                task = self._store.tasks.require(task_id)
                requested = {name: getattr(update, name) for name in update.model_fields_set}
                candidate = parse(Task, {**dict(task), **requested})
                check_block_reason(candidate)

                changed = [
                    name for name in sorted(requested)
                    if getattr(task, name) != getattr(candidate, name)
                ]
                if not changed:
                    return Ok(task)

                now = self._clock()
                updated = candidate.model_copy(update={"updated_at": now})
                self._store.tasks.save(updated)
                for name in changed:
                    self._history.record(
                        TaskFieldChanged(
                            task_id=task_id,
                            actor=actor,
                            occurred_at=now,
                            field_name=name,
                            old_value=getattr(task, name),
                            new_value=getattr(updated, name),
                        )
                    )
        except UnitaskError as e:
            return rejected("update_task", e)

        logger.info(f"Updated task {task_id}: {', '.join(changed)}")
        return Ok(updated)

    def soft_delete_task(self, task_id: str, actor: str) -> Result[Task, UnitaskError]:
        """Mark a task deleted.

        Children, dependency edges and assignments are left as they are.
        """
        try:
            with self._store.transaction():
                task = self._store.tasks.require(task_id)
                now = self._clock()
                deleted = task.model_copy(update={"deleted_at": now, "updated_at": now})
                self._store.tasks.save(deleted)
                self._history.record(TaskDeleted(task_id=task_id, actor=actor, occurred_at=now))
                self._refresh_completion(task.parent_task_id)
        except UnitaskError as e:
            return rejected("soft_delete_task", e)

        logger.info(f"Soft-deleted task {task_id}")
        return Ok(deleted)

    # =========================================================================
    # Hierarchy
    # =========================================================================

    def get_ancestors(self, task_id: str) -> Result[list[Task], UnitaskError]:
        """Get ancestors ordered from the immediate parent to the root."""
        try:
            with self._store.read():
                self._store.tasks.require(task_id, include_deleted=True)
                ids = walk_ancestors(task_id, self._store.tasks.parent_of, self._store.tasks.count())
                return Ok([self._store.tasks.require(i, include_deleted=True) for i in ids])
        except UnitaskError as e:
            return rejected("get_ancestors", e)

    def get_descendants(self, task_id: str) -> Result[list[Task], UnitaskError]:
        """Get all live tasks below ``task_id`` in depth-first order."""
        try:
            with self._store.read():
                self._store.tasks.require(task_id, include_deleted=True)
                ids = walk_descendants(task_id, self._store.tasks.children_of, self._store.tasks.count())
                tasks = [self._store.tasks.get(i) for i in ids]
                return Ok([task for task in tasks if task is not None])
        except UnitaskError as e:
            return rejected("get_descendants", e)

    def get_hierarchy_tree(self, task_id: str) -> Result[TaskNode, UnitaskError]:
        """Get the subtree rooted at ``task_id``.

        Deleted subtasks are left out together with everything below them.
        """
        try:
            with self._store.read():
                root = TaskNode(task=self._store.tasks.require(task_id, include_deleted=True))
                nodes = {task_id: root}
                ids = walk_descendants(task_id, self._live_children, self._store.tasks.count())
                for child_id in ids:
                    task = self._store.tasks.require(child_id)
                    node = TaskNode(task=task)
                    nodes[task.parent_task_id].children.append(node)
                    nodes[child_id] = node
                return Ok(root)
        except UnitaskError as e:
            return rejected("get_hierarchy_tree", e)

    def set_parent(
        self,
        task_id: str,
        new_parent_id: str | None,
        actor: str,
    ) -> Result[Task, UnitaskError]:
        """Move a task under a new parent, or detach it with None.

        Returns:
            Ok(Task) on success, Err(CircularHierarchyError) if the move
            would create a cycle, Err(NotFoundError) for unknown ids.
        """
        try:
            with self._store.transaction():
                task = self._store.tasks.require(task_id)
                if new_parent_id is not None:
                    self._store.tasks.require(new_parent_id)
                validate_parent(
                    task_id,
                    new_parent_id,
                    self._store.tasks.parent_of,
                    self._store.tasks.children_of,
                    self._store.tasks.count(),
                )

                old_parent_id = task.parent_task_id
                if old_parent_id == new_parent_id:
                    return Ok(task)

                now = self._clock()
                moved = task.model_copy(update={"parent_task_id": new_parent_id, "updated_at": now})
                self._store.tasks.save(moved)
                self._history.record(
                    TaskMoved(
                        task_id=task_id,
                        actor=actor,
                        occurred_at=now,
                        old_parent_id=old_parent_id,
                        new_parent_id=new_parent_id,
                    )
                )
                self._refresh_completion(old_parent_id)
                self._refresh_completion(new_parent_id)
        except UnitaskError as e:
            return rejected("set_parent", e)

        logger.info(f"Moved task {task_id} from {old_parent_id} to {new_parent_id}")
        return Ok(moved)

    # =========================================================================
    # Status
    # =========================================================================

    def can_transition_to(self, task_id: str, new_status: TaskStatus | str) -> Result[None, UnitaskError]:
        """Check a status transition without applying it.

        Returns:
            Ok(None) if permitted, otherwise Err with the error the
            transition itself would fail with.
        """
        try:
            target = _coerce_status(new_status)
            with self._store.read():
                task = self._store.tasks.require(task_id)
                if target != task.status:
                    check_transition(task, target, incomplete_prerequisites(self._store, task_id))
        except UnitaskError as e:
            return rejected("can_transition_to", e)
        return Ok(None)

    def transition_status(
        self,
        task_id: str,
        new_status: TaskStatus | str,
        actor: str,
        blocked_reason: str | None = None,
        notes: str | None = None,
    ) -> Result[Task, UnitaskError]:
        """Move a task to a new status.

        A supplied ``blocked_reason`` is applied before validation. Moving to
        the current status is a no-op and writes no history.
        """
        try:
            target = _coerce_status(new_status)
            with self._store.transaction():
                task = self._store.tasks.require(task_id)
                if target == task.status:
                    return Ok(task)

                candidate = task
                if blocked_reason is not None:
                    candidate = task.model_copy(update={"blocked_reason": blocked_reason})
                check_transition(candidate, target, incomplete_prerequisites(self._store, task_id))

                now = self._clock()
                updated = candidate.model_copy(update={
                    "status": target,
                    "updated_at": now,
                    **status_timestamps(candidate, target, now),
                })
                self._store.tasks.save(updated)

                if candidate.blocked_reason != task.blocked_reason:
                    self._history.record(
                        TaskFieldChanged(
                            task_id=task_id,
                            actor=actor,
                            occurred_at=now,
                            field_name="blocked_reason",
                            old_value=task.blocked_reason,
                            new_value=candidate.blocked_reason,
                        )
                    )
                self._history.record(
                    TaskStatusChanged(
                        task_id=task_id,
                        actor=actor,
                        occurred_at=now,
                        old_status=task.status.value,
                        new_status=target.value,
                        notes=notes,
                    )
                )
                self._refresh_completion(task.parent_task_id)
        except UnitaskError as e:
            return rejected("transition_status", e)

        logger.info(f"Task {task_id} moved from {task.status.value} to {target.value}")
        return Ok(updated)

    # =========================================================================
    # Internal
    # =========================================================================

    def _live_children(self, parent_id: str) -> list[str]:
        return self._store.tasks.children_of(parent_id, include_deleted=False)

    def _refresh_completion(self, parent_id: str | None) -> None:
        """Recompute a parent's completion percentage from its live children."""
        if parent_id is None:
            return
        parent = self._store.tasks.get(parent_id, include_deleted=True)
        if parent is None:
            return
        statuses = [
            self._store.tasks.require(child_id).status.value
            for child_id in self._store.tasks.children_of(parent_id, include_deleted=False)
        ]
        percentage = completion_percentage(statuses)
        if percentage != parent.completion_percentage:
            self._store.tasks.save(parent.model_copy(update={"completion_percentage": percentage}))


def _coerce_status(value: TaskStatus | str) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError as e:
        raise ValidationFailedError(f"Unknown status: {value}") from e
