"""Dependency edge models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from unitask.domain.shared.clock import new_id, utc_now


class DependencyType(str, Enum):
    """Kind of relation between two tasks.

    Only BLOCKS and BLOCKED_BY gate status transitions and take part in
    cycle detection.
    """

    BLOCKS = "blocks"
    BLOCKED_BY = "blocked_by"
    RELATES_TO = "relates_to"
    DUPLICATES = "duplicates"

    @property
    def is_gating(self) -> bool:
        return self in GATING_TYPES


GATING_TYPES = frozenset({DependencyType.BLOCKS, DependencyType.BLOCKED_BY})


class Dependency(BaseModel):
    """Directed edge: ``task_id`` depends on ``depends_on_task_id``."""

    id: str = Field(default_factory=new_id)
    task_id: str
    depends_on_task_id: str
    dependency_type: DependencyType = DependencyType.BLOCKS
    created_by: str | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_gating(self) -> bool:
        return self.dependency_type.is_gating
