"""Dependency application service.

Validates and queries dependency edges. Cycle checks run inside the same
transaction as the write they guard, so two concurrent inserts can never
jointly close a cycle.
"""

import logging

from unitask.application.common import incomplete_prerequisites, rejected
from unitask.application.history_service import HistoryRecorder
from unitask.domain.dependency import Dependency, DependencyType, check_new_edge, dependency_chain
from unitask.domain.shared import (
    Clock,
    DuplicateDependencyError,
    NotFoundError,
    Ok,
    Result,
    UnitaskError,
    ValidationFailedError,
    utc_now,
)
from unitask.domain.task import DependencyAdded, DependencyRemoved, Task
from unitask.infrastructure.storage import InMemoryStore

logger = logging.getLogger(__name__)


class DependencyService:
    """Add, remove and query dependency edges between tasks."""

    def __init__(
        self,
        store: InMemoryStore,
        history: HistoryRecorder,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._history = history
        self._clock = clock

    def add_dependency(
        self,
        task_id: str,
        depends_on_id: str,
        actor: str,
        dependency_type: DependencyType | str = DependencyType.BLOCKS,
    ) -> Result[Dependency, UnitaskError]:
        """Record that ``task_id`` depends on ``depends_on_id``.

        Args:
            task_id: The dependent task.
            depends_on_id: The prerequisite task.
            actor: Opaque id of the caller.
            dependency_type: Edge type; only gating types are cycle-checked.

        Returns:
            Ok(Dependency) on success, or Err with NotFoundError,
            SelfDependencyError, DuplicateDependencyError or
            CyclicDependencyError.
        """
        try:
            edge_type = _coerce_type(dependency_type)
            with self._store.transaction():
                self._store.tasks.require(task_id)
                self._store.tasks.require(depends_on_id)
                check_new_edge(
                    task_id,
                    depends_on_id,
                    edge_type.is_gating,
                    self._gating_prerequisites,
                    self._store.tasks.count(),
                )
                if self._store.dependencies.find(task_id, depends_on_id, edge_type) is not None:
                    raise DuplicateDependencyError(task_id, depends_on_id, edge_type.value)

                now = self._clock()
                dependency = Dependency(
                    task_id=task_id,
                    depends_on_task_id=depends_on_id,
                    dependency_type=edge_type,
                    created_by=actor,
                    created_at=now,
                )
                self._store.dependencies.add(dependency)
                self._history.record(
                    DependencyAdded(
                        task_id=task_id,
                        actor=actor,
                        occurred_at=now,
                        dependency_id=dependency.id,
                        depends_on_task_id=depends_on_id,
                        dependency_type=edge_type.value,
                    )
                )
        except UnitaskError as e:
            return rejected("add_dependency", e)

        logger.info(f"Added {edge_type.value} dependency {task_id} -> {depends_on_id}")
        return Ok(dependency)

    def remove_dependency(self, dependency_id: str, actor: str) -> Result[Dependency, UnitaskError]:
        """Delete a dependency edge."""
        try:
            with self._store.transaction():
                dependency = self._store.dependencies.get(dependency_id)
                if dependency is None:
                    raise NotFoundError("dependency", dependency_id)

                self._store.dependencies.remove(dependency_id)
                self._history.record(
                    DependencyRemoved(
                        task_id=dependency.task_id,
                        actor=actor,
                        occurred_at=self._clock(),
                        dependency_id=dependency_id,
                        depends_on_task_id=dependency.depends_on_task_id,
                        dependency_type=dependency.dependency_type.value,
                    )
                )
        except UnitaskError as e:
            return rejected("remove_dependency", e)

        logger.info(f"Removed dependency {dependency_id}")
        return Ok(dependency)

    def get_dependency_chain(self, task_id: str) -> Result[list[Task], UnitaskError]:
        """Get every task ``task_id`` transitively depends on.

        Follows edges of all types, skips soft-deleted tasks and reports each
        task once, in depth-first discovery order.
        """
        try:
            with self._store.read():
                self._store.tasks.require(task_id, include_deleted=True)
                ids = dependency_chain(task_id, self._live_prerequisites, self._store.tasks.count())
                return Ok([self._store.tasks.require(i) for i in ids])
        except UnitaskError as e:
            return rejected("get_dependency_chain", e)

    def has_incomplete_dependencies(self, task_id: str) -> Result[bool, UnitaskError]:
        """Check for open gating prerequisites, evaluated now."""
        try:
            with self._store.read():
                self._store.tasks.require(task_id, include_deleted=True)
                return Ok(bool(incomplete_prerequisites(self._store, task_id)))
        except UnitaskError as e:
            return rejected("has_incomplete_dependencies", e)

    def list_dependencies(self, task_id: str) -> Result[list[Dependency], UnitaskError]:
        """Edges where ``task_id`` is the dependent task."""
        try:
            with self._store.read():
                self._store.tasks.require(task_id, include_deleted=True)
                return Ok(self._store.dependencies.outgoing(task_id))
        except UnitaskError as e:
            return rejected("list_dependencies", e)

    def list_dependents(self, task_id: str) -> Result[list[Dependency], UnitaskError]:
        """Edges where ``task_id`` is the prerequisite."""
        try:
            with self._store.read():
                self._store.tasks.require(task_id, include_deleted=True)
                return Ok(self._store.dependencies.incoming(task_id))
        except UnitaskError as e:
            return rejected("list_dependents", e)

    def _gating_prerequisites(self, task_id: str) -> list[str]:
        return [
            d.depends_on_task_id
            for d in self._store.dependencies.outgoing(task_id)
            if d.is_gating
        ]

    def _live_prerequisites(self, task_id: str) -> list[str]:
        return [
            d.depends_on_task_id
            for d in self._store.dependencies.outgoing(task_id)
            if self._store.tasks.get(d.depends_on_task_id) is not None
        ]


def _coerce_type(value: DependencyType | str) -> DependencyType:
    try:
        return DependencyType(value)
    except ValueError as e:
        raise ValidationFailedError(f"Unknown dependency type: {value}") from e
