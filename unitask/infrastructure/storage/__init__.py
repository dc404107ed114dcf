"""Storage infrastructure for unitask.

Provides the transactional stores and the repositories over them, using
Result monads for explicit error handling at the file boundary.
"""

from unitask.infrastructure.storage.json_storage import JsonStorage
from unitask.infrastructure.storage.memory import InMemoryStore, JsonFileStore, StoreState
from unitask.infrastructure.storage.repositories import (
    AssignmentRepository,
    DependencyRepository,
    HistoryRepository,
    TaskRepository,
    TemplateRepository,
)

__all__ = [
    "JsonStorage",
    "StoreState",
    "InMemoryStore",
    "JsonFileStore",
    "TaskRepository",
    "DependencyRepository",
    "AssignmentRepository",
    "TemplateRepository",
    "HistoryRepository",
]
