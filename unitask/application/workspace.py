"""Wiring of the application services over one store."""

from unitask.application.assignment_service import AssignmentService
from unitask.application.dependency_service import DependencyService
from unitask.application.history_service import HistoryRecorder
from unitask.application.task_service import TaskService
from unitask.application.template_service import TemplateService
from unitask.domain.shared import Clock, utc_now
from unitask.domain.task import TaskPriority
from unitask.infrastructure.storage import InMemoryStore


class Workspace:
    """All services sharing one store, one history recorder and one clock.

    Example:
        workspace = Workspace(InMemoryStore())
        result = workspace.tasks.create_task({"title": "Survey site"}, actor="u-1")
    """

    def __init__(
        self,
        store: InMemoryStore,
        clock: Clock = utc_now,
        default_priority: TaskPriority = TaskPriority.MEDIUM,
    ) -> None:
        self.store = store
        self.history = HistoryRecorder(store)
        self.tasks = TaskService(store, self.history, clock)
        self.dependencies = DependencyService(store, self.history, clock)
        self.assignments = AssignmentService(store, self.history, clock)
        self.templates = TemplateService(
            store,
            self.tasks,
            self.dependencies,
            self.assignments,
            clock,
            default_priority=default_priority,
        )
