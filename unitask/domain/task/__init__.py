"""Task domain - tasks, hierarchy and the status state machine.

All exports are pure (no I/O, no side effects).

Key Types:
    Task - A unit of work
    TaskStatus - Status enumeration (OVERDUE is derived)
    TaskPriority - Priority enumeration
    TaskOwner - Opaque external owner reference
    TaskCreate / TaskUpdate / TaskFilter - Service inputs

Hierarchy Functions:
    walk_ancestors - Parent chain, nearest first
    walk_descendants - All children, depth-first
    validate_parent - Cycle check for a new parent link
    completion_percentage - Roll-up of child completion

State Machine:
    check_transition - Validate a status change
    check_block_reason - Blocked tasks must keep a reason
    status_timestamps - Timestamps stamped by a status change
"""

from .events import (
    DependencyAdded,
    DependencyRemoved,
    TaskAssigned,
    TaskCreated,
    TaskDeleted,
    TaskEvent,
    TaskFieldChanged,
    TaskMoved,
    TaskStatusChanged,
    TaskUnassigned,
)
from .hierarchy import (
    completion_percentage,
    validate_parent,
    walk_ancestors,
    walk_descendants,
)
from .models import (
    TERMINAL_STATUSES,
    Task,
    TaskCreate,
    TaskFilter,
    TaskOwner,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
)
from .status import check_block_reason, check_transition, status_timestamps

__all__ = [
    # Models
    "Task",
    "TaskStatus",
    "TaskPriority",
    "TaskOwner",
    "TaskCreate",
    "TaskUpdate",
    "TaskFilter",
    "TERMINAL_STATUSES",
    # Hierarchy
    "walk_ancestors",
    "walk_descendants",
    "validate_parent",
    "completion_percentage",
    # State machine
    "check_transition",
    "check_block_reason",
    "status_timestamps",
    # Events
    "TaskEvent",
    "TaskCreated",
    "TaskFieldChanged",
    "TaskDeleted",
    "TaskStatusChanged",
    "TaskMoved",
    "TaskAssigned",
    "TaskUnassigned",
    "DependencyAdded",
    "DependencyRemoved",
]
