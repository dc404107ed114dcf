"""Application service layer for unitask.

Services orchestrate domain functions over a transactional store. Each
public operation runs in one transaction and returns a Result: ``Ok`` with
the value, or ``Err`` carrying a typed ``UnitaskError``.

Services:
    TaskService - task CRUD, hierarchy and status transitions
    DependencyService - dependency edges and chain queries
    AssignmentService - user assignments and effective assignee
    TemplateService - template versions and instantiation
    HistoryRecorder - change records per task

Example usage:
    >>> from unitask.application import Workspace
    >>> from unitask.infrastructure.storage import InMemoryStore
    >>> from unitask.domain.shared import is_ok
    >>>
    >>> workspace = Workspace(InMemoryStore())
    >>> result = workspace.tasks.create_task({"title": "Survey site"}, actor="u-1")
    >>> is_ok(result)
    True
"""

from unitask.application.assignment_service import AssignmentService
from unitask.application.dependency_service import DependencyService
from unitask.application.history_service import HistoryRecorder
from unitask.application.task_service import TaskDetails, TaskNode, TaskService
from unitask.application.template_service import InstantiationResult, TemplateService
from unitask.application.workspace import Workspace

__all__ = [
    "Workspace",
    # Task service
    "TaskService",
    "TaskDetails",
    "TaskNode",
    # Dependency service
    "DependencyService",
    # Assignment service
    "AssignmentService",
    # Template service
    "TemplateService",
    "InstantiationResult",
    # History
    "HistoryRecorder",
]
