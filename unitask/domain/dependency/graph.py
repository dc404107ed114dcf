"""Pure dependency graph traversal.

Functions here see the graph only through a ``prerequisites_of`` lookup
(task id -> ids it depends on). Every walk carries a visited set and a step
bound so it terminates on any input.
"""

from collections.abc import Callable, Iterable

from unitask.domain.shared.errors import CyclicDependencyError, SelfDependencyError

PrerequisiteLookup = Callable[[str], Iterable[str]]


def reaches(start_id: str, target_id: str, prerequisites_of: PrerequisiteLookup, limit: int) -> bool:
    """Check whether ``start_id`` transitively depends on ``target_id``.

    Args:
        start_id: Task to walk outward from
        target_id: Task being searched for
        prerequisites_of: Function task_id -> ids it depends on
        limit: Maximum number of tasks to visit

    Returns:
        True if a path start -> ... -> target exists
    """
    visited = {start_id}
    stack = [start_id]
    while stack and len(visited) <= limit:
        current = stack.pop()
        for prerequisite in prerequisites_of(current):
            if prerequisite == target_id:
                return True
            if prerequisite not in visited:
                visited.add(prerequisite)
                stack.append(prerequisite)
    return False


def check_new_edge(
    task_id: str,
    depends_on_id: str,
    gating: bool,
    gating_prerequisites_of: PrerequisiteLookup,
    limit: int,
) -> None:
    """Validate a new edge ``task_id -> depends_on_id``.

    Raises:
        SelfDependencyError: Both ends are the same task
        CyclicDependencyError: A gating edge whose target already depends
            on the source through gating edges
    """
    if task_id == depends_on_id:
        raise SelfDependencyError(task_id)

    if gating and reaches(depends_on_id, task_id, gating_prerequisites_of, limit):
        raise CyclicDependencyError(task_id, depends_on_id)


def dependency_chain(task_id: str, prerequisites_of: PrerequisiteLookup, limit: int) -> list[str]:
    """Transitive closure of the tasks ``task_id`` depends on.

    Returns:
        Deduplicated ids in discovery order (depth-first), excluding task_id
    """
    chain: list[str] = []
    visited = {task_id}
    stack = list(reversed(list(prerequisites_of(task_id))))
    while stack and len(chain) < limit:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        chain.append(current)
        stack.extend(reversed(list(prerequisites_of(current))))
    return chain
