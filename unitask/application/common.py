"""Helpers shared by the application services."""

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from unitask.domain.shared import Err, UnitaskError, ValidationFailedError
from unitask.infrastructure.storage import InMemoryStore

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def parse(model: type[M], data: M | Mapping[str, Any]) -> M:
    """Validate caller input into ``model``.

    Raises:
        ValidationFailedError: If pydantic rejects the data
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationFailedError.from_pydantic(e) from e


def rejected(operation: str, error: UnitaskError) -> Err[UnitaskError]:
    """Log a refused operation and wrap its error."""
    logger.warning(f"{operation} rejected [{error.code}]: {error.message}")
    return Err(error)


def incomplete_prerequisites(store: InMemoryStore, task_id: str) -> list[str]:
    """Ids of live gating prerequisites of a task that are still open.

    Evaluated against the current store state on every call.
    """
    blocking: list[str] = []
    for dependency in store.dependencies.outgoing(task_id):
        if not dependency.is_gating:
            continue
        counterpart = store.tasks.get(dependency.depends_on_task_id)
        if counterpart is None or counterpart.is_terminal:
            continue
        if counterpart.id not in blocking:
            blocking.append(counterpart.id)
    return blocking
