"""Pure hierarchy traversal over parent/child links.

All functions in this module are pure - no I/O, no side effects. They take
lookup callables instead of a store so they can run against any snapshot.
Traversals are iterative and bounded by ``limit`` (the total task count),
so malformed data can never make them loop forever.
"""

from collections.abc import Callable, Iterable

from unitask.domain.shared.errors import CircularHierarchyError

ParentLookup = Callable[[str], str | None]
ChildrenLookup = Callable[[str], Iterable[str]]


# =============================================================================
# Fundamental Operations
# =============================================================================


def walk_ancestors(task_id: str, parent_of: ParentLookup, limit: int) -> list[str]:
    """Collect ancestor ids from the immediate parent up to the root.

    Args:
        task_id: Task to start from (not included in the result)
        parent_of: Function task_id -> parent id or None
        limit: Maximum number of steps, normally the total task count

    Returns:
        Ordered list of ancestor ids, nearest first

    Raises:
        CircularHierarchyError: If the chain revisits a task or exceeds limit
    """
    ancestors: list[str] = []
    seen = {task_id}
    current = parent_of(task_id)
    while current is not None:
        if current in seen or len(ancestors) >= limit:
            raise CircularHierarchyError(task_id, current, "ancestor chain does not terminate")
        ancestors.append(current)
        seen.add(current)
        current = parent_of(current)
    return ancestors


def walk_descendants(task_id: str, children_of: ChildrenLookup, limit: int) -> list[str]:
    """Collect all descendant ids depth-first with an explicit stack.

    Each task is reported once even if the data holds a cycle; the walk
    stops after ``limit`` visits.

    Returns:
        Descendant ids in depth-first pre-order
    """
    descendants: list[str] = []
    visited = {task_id}
    stack = list(reversed(list(children_of(task_id))))
    while stack and len(descendants) < limit:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        descendants.append(current)
        stack.extend(reversed(list(children_of(current))))
    return descendants


# =============================================================================
# Validation
# =============================================================================


def validate_parent(
    task_id: str,
    new_parent_id: str | None,
    parent_of: ParentLookup,
    children_of: ChildrenLookup,
    limit: int,
) -> None:
    """Check that making ``new_parent_id`` the parent keeps the tree acyclic.

    Rejects the task itself, any of its descendants, and any parent whose
    ancestor chain already contains the task.

    Raises:
        CircularHierarchyError: If the new link would close a cycle
    """
    if new_parent_id is None:
        return

    if new_parent_id == task_id:
        raise CircularHierarchyError(task_id, new_parent_id, "a task cannot be its own parent")

    if new_parent_id in walk_descendants(task_id, children_of, limit):
        raise CircularHierarchyError(task_id, new_parent_id, "new parent is a descendant")

    if task_id in walk_ancestors(new_parent_id, parent_of, limit):
        raise CircularHierarchyError(task_id, new_parent_id, "task is an ancestor of new parent")


# =============================================================================
# Completion Roll-up
# =============================================================================


def completion_percentage(child_statuses: list[str]) -> float:
    """Share of completed children, as a percentage rounded to 2 decimals.

    Args:
        child_statuses: Status values of the live children

    Returns:
        0.0 for a childless task, otherwise completed / total * 100
    """
    if not child_statuses:
        return 0.0
    completed = sum(1 for status in child_statuses if status == "completed")
    return round(completed / len(child_statuses) * 100, 2)
