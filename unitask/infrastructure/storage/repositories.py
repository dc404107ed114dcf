"""Repository implementations over the store state.

Each repository reads and writes one collection of the current store
state. Reads hand out deep copies so callers can never mutate stored
entities in place; writes require an open transaction.
"""

from typing import TYPE_CHECKING

from unitask.domain.assignment.models import Assignment
from unitask.domain.dependency.models import Dependency, DependencyType
from unitask.domain.history.models import HistoryFilter, HistoryRecord
from unitask.domain.shared.errors import NotFoundError
from unitask.domain.task.models import Task
from unitask.domain.template.models import Template

if TYPE_CHECKING:
    from unitask.infrastructure.storage.memory import InMemoryStore


class TaskRepository:
    """Repository for tasks, including soft-deleted ones."""

    def __init__(self, store: "InMemoryStore") -> None:
        self._store = store

    def get(self, task_id: str, include_deleted: bool = False) -> Task | None:
        """Get a task by id.

        Args:
            task_id: ID of the task.
            include_deleted: Whether soft-deleted tasks are returned.

        Returns:
            A copy of the task, or None if missing (or deleted and not requested).
        """
        task = self._store.state.tasks.get(task_id)
        if task is None or (task.is_deleted and not include_deleted):
            return None
        return task.model_copy(deep=True)

    def require(self, task_id: str, include_deleted: bool = False) -> Task:
        """Get a task by id or raise NotFoundError."""
        task = self.get(task_id, include_deleted=include_deleted)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def save(self, task: Task) -> None:
        self._store.ensure_writable()
        self._store.state.tasks[task.id] = task.model_copy(deep=True)

    def all(self, include_deleted: bool = False) -> list[Task]:
        return [
            task.model_copy(deep=True)
            for task in self._store.state.tasks.values()
            if include_deleted or not task.is_deleted
        ]

    def count(self) -> int:
        """Total number of stored tasks; the bound for every graph walk."""
        return len(self._store.state.tasks)

    def parent_of(self, task_id: str) -> str | None:
        task = self._store.state.tasks.get(task_id)
        return task.parent_task_id if task else None

    def children_of(self, parent_id: str, include_deleted: bool = True) -> list[str]:
        """Ids of tasks whose parent is ``parent_id``, in creation order."""
        return [
            task.id
            for task in self._store.state.tasks.values()
            if task.parent_task_id == parent_id and (include_deleted or not task.is_deleted)
        ]


class DependencyRepository:
    """Repository for dependency edges."""

    def __init__(self, store: "InMemoryStore") -> None:
        self._store = store

    def get(self, dependency_id: str) -> Dependency | None:
        dependency = self._store.state.dependencies.get(dependency_id)
        return dependency.model_copy() if dependency else None

    def add(self, dependency: Dependency) -> None:
        self._store.ensure_writable()
        self._store.state.dependencies[dependency.id] = dependency.model_copy()

    def remove(self, dependency_id: str) -> None:
        self._store.ensure_writable()
        self._store.state.dependencies.pop(dependency_id, None)

    def outgoing(self, task_id: str) -> list[Dependency]:
        """Edges where ``task_id`` is the dependent task."""
        return [
            d.model_copy()
            for d in self._store.state.dependencies.values()
            if d.task_id == task_id
        ]

    def incoming(self, task_id: str) -> list[Dependency]:
        """Edges where ``task_id`` is the prerequisite."""
        return [
            d.model_copy()
            for d in self._store.state.dependencies.values()
            if d.depends_on_task_id == task_id
        ]

    def find(
        self,
        task_id: str,
        depends_on_id: str,
        dependency_type: DependencyType,
    ) -> Dependency | None:
        for d in self._store.state.dependencies.values():
            if (
                d.task_id == task_id
                and d.depends_on_task_id == depends_on_id
                and d.dependency_type == dependency_type
            ):
                return d.model_copy()
        return None

    def all(self) -> list[Dependency]:
        return [d.model_copy() for d in self._store.state.dependencies.values()]


class AssignmentRepository:
    """Repository for task assignments."""

    def __init__(self, store: "InMemoryStore") -> None:
        self._store = store

    def get(self, assignment_id: str) -> Assignment | None:
        assignment = self._store.state.assignments.get(assignment_id)
        return assignment.model_copy() if assignment else None

    def for_task(self, task_id: str) -> list[Assignment]:
        return [
            a.model_copy()
            for a in self._store.state.assignments.values()
            if a.task_id == task_id
        ]

    def save(self, assignment: Assignment) -> None:
        self._store.ensure_writable()
        self._store.state.assignments[assignment.id] = assignment.model_copy()

    def remove(self, assignment_id: str) -> None:
        self._store.ensure_writable()
        self._store.state.assignments.pop(assignment_id, None)

    def remove_for_task(self, task_id: str) -> int:
        """Delete every assignment of a task.

        Returns:
            Number of assignments removed.
        """
        self._store.ensure_writable()
        doomed = [a.id for a in self._store.state.assignments.values() if a.task_id == task_id]
        for assignment_id in doomed:
            del self._store.state.assignments[assignment_id]
        return len(doomed)


class TemplateRepository:
    """Repository for template versions."""

    def __init__(self, store: "InMemoryStore") -> None:
        self._store = store

    def get(self, template_id: str) -> Template | None:
        template = self._store.state.templates.get(template_id)
        return template.model_copy(deep=True) if template else None

    def require(self, template_id: str) -> Template:
        template = self.get(template_id)
        if template is None:
            raise NotFoundError("template", template_id)
        return template

    def save(self, template: Template) -> None:
        self._store.ensure_writable()
        self._store.state.templates[template.id] = template.model_copy(deep=True)

    def all(self) -> list[Template]:
        return [t.model_copy(deep=True) for t in self._store.state.templates.values()]

    def count(self) -> int:
        return len(self._store.state.templates)

    def newer_versions(self, template_id: str) -> list[Template]:
        """Versions whose back-reference points at ``template_id``."""
        return [
            t.model_copy(deep=True)
            for t in self._store.state.templates.values()
            if t.previous_version_id == template_id
        ]


class HistoryRepository:
    """Append-only repository for history records."""

    def __init__(self, store: "InMemoryStore") -> None:
        self._store = store

    def append(self, record: HistoryRecord) -> None:
        self._store.ensure_writable()
        self._store.state.history.append(record)

    def for_task(self, task_id: str, filters: HistoryFilter | None = None) -> list[HistoryRecord]:
        """Records of one task in the order they were written."""
        return [
            r for r in self._store.state.history
            if r.task_id == task_id and (filters is None or filters.matches(r))
        ]

    def count(self) -> int:
        return len(self._store.state.history)
