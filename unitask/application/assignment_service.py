"""Assignment application service.

Manages the users assigned to each task. At most one active assignment per
task is primary; the invariant is kept by demoting the previous primary
whenever a new one is written.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from unitask.application.common import parse, rejected
from unitask.application.history_service import HistoryRecorder
from unitask.domain.assignment import (
    Assignment,
    AssignmentRequest,
    EffectiveAssignee,
    TaskAssignments,
    representative_assignee,
    resolve_primary,
)
from unitask.domain.shared import (
    Clock,
    NotFoundError,
    Ok,
    Result,
    UnitaskError,
    ValidationFailedError,
    utc_now,
)
from unitask.domain.task import TaskAssigned, TaskUnassigned, walk_ancestors
from unitask.infrastructure.storage import InMemoryStore

logger = logging.getLogger(__name__)


class AssignmentService:
    """Assign users to tasks and resolve who is responsible for a task."""

    def __init__(
        self,
        store: InMemoryStore,
        history: HistoryRecorder,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._history = history
        self._clock = clock

    def assign_users(
        self,
        task_id: str,
        entries: Sequence[AssignmentRequest | Mapping[str, Any]],
        actor: str,
        replace_existing: bool = False,
    ) -> Result[list[Assignment], UnitaskError]:
        """Assign several users to a task as one atomic unit.

        With ``replace_existing`` every current assignment is removed before
        the new ones are written. When several entries claim primary, the
        first one keeps the flag and the others are downgraded. Assigning a
        user who is already on the task replaces that user's assignment.

        Args:
            task_id: Task to assign.
            entries: One request per user, in priority order.
            actor: Opaque id of the caller, stored as ``assigned_by``.
            replace_existing: Drop all existing assignments first.

        Returns:
            Ok(list[Assignment]) with the assignments written, or Err with
            NotFoundError or ValidationFailedError.
        """
        try:
            requests = [parse(AssignmentRequest, entry) for entry in entries]
            now = self._clock()
            _check_requests(requests, now)

            requests, downgraded = resolve_primary(requests)
            for user_id in downgraded:
                logger.warning(
                    f"Task {task_id}: primary flag for user {user_id} dropped, "
                    "an earlier entry in the same call is primary"
                )

            with self._store.transaction():
                self._store.tasks.require(task_id)
                removed = 0
                if replace_existing:
                    removed = self._store.assignments.remove_for_task(task_id)

                written: list[Assignment] = []
                for request in requests:
                    written.append(self._write(task_id, request, actor, now))

                if written or removed:
                    primary = next((a.user_id for a in written if a.is_primary), None)
                    self._history.record(
                        TaskAssigned(
                            task_id=task_id,
                            actor=actor,
                            occurred_at=now,
                            user_ids=[a.user_id for a in written],
                            primary_user_id=primary,
                            replaced_existing=replace_existing,
                        )
                    )
        except UnitaskError as e:
            return rejected("assign_users", e)

        logger.info(f"Assigned {len(written)} user(s) to task {task_id}")
        return Ok(written)

    def remove_assignment(
        self,
        task_id: str,
        assignment_id: str,
        actor: str,
    ) -> Result[Assignment, UnitaskError]:
        """Delete one assignment; no other assignment is promoted."""
        try:
            with self._store.transaction():
                assignment = self._store.assignments.get(assignment_id)
                if assignment is None or assignment.task_id != task_id:
                    raise NotFoundError("assignment", assignment_id)

                self._store.assignments.remove(assignment_id)
                self._history.record(
                    TaskUnassigned(
                        task_id=task_id,
                        actor=actor,
                        occurred_at=self._clock(),
                        assignment_id=assignment_id,
                        user_id=assignment.user_id,
                    )
                )
        except UnitaskError as e:
            return rejected("remove_assignment", e)

        logger.info(f"Removed assignment {assignment_id} from task {task_id}")
        return Ok(assignment)

    def list_assignments(
        self,
        task_id: str,
        active_only: bool = False,
    ) -> Result[list[Assignment], UnitaskError]:
        try:
            with self._store.read():
                self._store.tasks.require(task_id, include_deleted=True)
                assignments = self._store.assignments.for_task(task_id)
        except UnitaskError as e:
            return rejected("list_assignments", e)

        if active_only:
            now = self._clock()
            assignments = [a for a in assignments if a.is_active(now)]
        return Ok(assignments)

    def get_effective_assignee(self, task_id: str) -> Result[EffectiveAssignee | None, UnitaskError]:
        """Resolve who is responsible for a task.

        The task's own active primary wins, then its earliest active
        assignment; failing both the parent chain is searched the same way.

        Returns:
            Ok(EffectiveAssignee), Ok(None) if nobody up the chain is
            assigned, or Err(NotFoundError).
        """
        try:
            with self._store.read():
                self._store.tasks.require(task_id, include_deleted=True)
                now = self._clock()
                chain = [task_id] + walk_ancestors(
                    task_id, self._store.tasks.parent_of, self._store.tasks.count()
                )
                for source_id in chain:
                    assignments = TaskAssignments(assignments=self._store.assignments.for_task(source_id))
                    chosen = representative_assignee(assignments, now)
                    if chosen is not None:
                        return Ok(EffectiveAssignee(
                            user_id=chosen.user_id,
                            assignment_id=chosen.id,
                            source_task_id=source_id,
                            inherited=source_id != task_id,
                        ))
        except UnitaskError as e:
            return rejected("get_effective_assignee", e)
        return Ok(None)

    def _write(
        self,
        task_id: str,
        request: AssignmentRequest,
        actor: str,
        now: datetime,
    ) -> Assignment:
        """Write one assignment, replacing the user's old one and demoting any other primary."""
        for existing in self._store.assignments.for_task(task_id):
            if existing.user_id == request.user_id:
                self._store.assignments.remove(existing.id)
            elif request.is_primary and existing.is_primary:
                self._store.assignments.save(existing.model_copy(update={"is_primary": False}))

        assignment = Assignment(
            task_id=task_id,
            user_id=request.user_id,
            assigned_by=actor,
            role=request.role,
            is_primary=request.is_primary,
            assigned_at=now,
            expires_at=request.expires_at,
        )
        self._store.assignments.save(assignment)
        return assignment


def _check_requests(requests: list[AssignmentRequest], now: datetime) -> None:
    seen: set[str] = set()
    for request in requests:
        if request.user_id in seen:
            raise ValidationFailedError(f"User {request.user_id} appears more than once")
        seen.add(request.user_id)
        if request.expires_at is not None and request.expires_at <= now:
            raise ValidationFailedError(
                f"Assignment for user {request.user_id} expires in the past"
            )
