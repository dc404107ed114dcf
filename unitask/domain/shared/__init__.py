"""Shared domain building blocks.

- Result monad for explicit error handling
- Typed error taxonomy
- Base domain event
- Clock and id helpers

Example usage:
    >>> from unitask.domain.shared import Ok, Err, NotFoundError
    >>>
    >>> def find_task(task_id: str):
    ...     if task_id == "missing":
    ...         return Err(NotFoundError("task", task_id))
    ...     return Ok({"id": task_id})
"""

from unitask.domain.shared.clock import Clock, as_utc, new_id, utc_now
from unitask.domain.shared.errors import (
    CircularHierarchyError,
    ConcurrencyConflictError,
    CyclicDependencyError,
    DuplicateDependencyError,
    InactiveTemplateError,
    InvalidStatusTransitionError,
    MissingBlockReasonError,
    MissingVariableError,
    NotFoundError,
    SelfDependencyError,
    StorageError,
    UnitaskError,
    UnmetDependencyError,
    UnresolvedBlueprintReferenceError,
    ValidationFailedError,
)
from unitask.domain.shared.events import DomainEvent
from unitask.domain.shared.result import (
    Err,
    Ok,
    Result,
    is_err,
    is_ok,
    unwrap,
)

__all__ = [
    # Result monad
    "Ok",
    "Err",
    "Result",
    "is_ok",
    "is_err",
    "unwrap",
    # Errors
    "UnitaskError",
    "NotFoundError",
    "ValidationFailedError",
    "CircularHierarchyError",
    "SelfDependencyError",
    "CyclicDependencyError",
    "DuplicateDependencyError",
    "UnmetDependencyError",
    "MissingBlockReasonError",
    "InvalidStatusTransitionError",
    "InactiveTemplateError",
    "MissingVariableError",
    "UnresolvedBlueprintReferenceError",
    "ConcurrencyConflictError",
    "StorageError",
    # Events
    "DomainEvent",
    # Clock
    "Clock",
    "utc_now",
    "as_utc",
    "new_id",
]
