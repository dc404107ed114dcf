"""Assignment policy functions.

Pure functions deciding who ends up primary and who represents a task.
All functions are side-effect free and return new objects.
"""

from datetime import datetime

from unitask.domain.assignment.models import Assignment, AssignmentRequest, TaskAssignments


def resolve_primary(requests: list[AssignmentRequest]) -> tuple[list[AssignmentRequest], list[str]]:
    """Apply the first-in-list-wins rule to primary flags.

    Args:
        requests: Entries of one bulk assignment call, in caller order

    Returns:
        (normalized requests, user ids whose primary flag was dropped)

    Examples:
        >>> reqs = [AssignmentRequest(user_id="a", is_primary=True),
        ...         AssignmentRequest(user_id="b", is_primary=True)]
        >>> normalized, downgraded = resolve_primary(reqs)
        >>> [r.is_primary for r in normalized], downgraded
        ([True, False], ['b'])
    """
    normalized: list[AssignmentRequest] = []
    downgraded: list[str] = []
    seen_primary = False
    for request in requests:
        if request.is_primary and seen_primary:
            downgraded.append(request.user_id)
            request = request.model_copy(update={"is_primary": False})
        elif request.is_primary:
            seen_primary = True
        normalized.append(request)
    return normalized, downgraded


def representative_assignee(assignments: TaskAssignments, now: datetime) -> Assignment | None:
    """Pick the user that represents a task's own assignments.

    The active primary wins; otherwise the earliest active assignment.

    Returns:
        An assignment, or None if the task has no active assignment
    """
    primary = assignments.primary(now)
    if primary is not None:
        return primary
    active = assignments.active(now)
    if active:
        return active[0]
    return None
