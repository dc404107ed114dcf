"""Error taxonomy for the work-tracking core.

Every validation failure is a subclass of ``UnitaskError`` with a stable
``code``. Domain functions raise them; application services catch them at
their boundary and hand them back as ``Err(error)``.
"""

from collections.abc import Iterable

from pydantic import ValidationError


class UnitaskError(Exception):
    """Base class for all typed core errors."""

    code = "unitask_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(UnitaskError):
    """A task, template, dependency or assignment does not exist."""

    code = "not_found"

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class ValidationFailedError(UnitaskError):
    """Input data failed validation."""

    code = "validation_failed"

    @classmethod
    def from_pydantic(cls, error: ValidationError) -> "ValidationFailedError":
        problems = "; ".join(
            f"{'.'.join(str(p) for p in e['loc']) or 'value'}: {e['msg']}"
            for e in error.errors()
        )
        return cls(f"Invalid data: {problems}")


class CircularHierarchyError(UnitaskError):
    code = "circular_hierarchy"

    def __init__(self, task_id: str, parent_id: str, reason: str = "") -> None:
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"Cannot set parent of {task_id} to {parent_id}: "
            f"circular relationship detected{detail}"
        )
        self.task_id = task_id
        self.parent_id = parent_id


class SelfDependencyError(UnitaskError):
    code = "self_dependency"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} cannot depend on itself")
        self.task_id = task_id


class CyclicDependencyError(UnitaskError):
    code = "cyclic_dependency"

    def __init__(self, task_id: str, depends_on_id: str) -> None:
        super().__init__(
            f"Dependency {task_id} -> {depends_on_id} would create a cycle: "
            f"{depends_on_id} already depends on {task_id}"
        )
        self.task_id = task_id
        self.depends_on_id = depends_on_id


class DuplicateDependencyError(UnitaskError):
    code = "duplicate_dependency"

    def __init__(self, task_id: str, depends_on_id: str, dependency_type: str) -> None:
        super().__init__(
            f"Dependency {task_id} -> {depends_on_id} ({dependency_type}) already exists"
        )


class UnmetDependencyError(UnitaskError):
    code = "unmet_dependency"

    def __init__(self, task_id: str, blocking_ids: Iterable[str]) -> None:
        self.blocking_ids = list(blocking_ids)
        super().__init__(
            f"Task {task_id} has incomplete dependencies: {', '.join(self.blocking_ids)}"
        )
        self.task_id = task_id


class MissingBlockReasonError(UnitaskError):
    code = "missing_block_reason"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} cannot be blocked without a blocked_reason")
        self.task_id = task_id


class InvalidStatusTransitionError(UnitaskError):
    code = "invalid_transition"

    def __init__(self, task_id: str, current: str, target: str, reason: str) -> None:
        super().__init__(
            f"Cannot transition task {task_id} from '{current}' to '{target}': {reason}"
        )
        self.task_id = task_id
        self.current = current
        self.target = target


class InactiveTemplateError(UnitaskError):
    code = "inactive_template"

    def __init__(self, template_id: str) -> None:
        super().__init__(f"Cannot instantiate inactive template {template_id}")
        self.template_id = template_id


class MissingVariableError(UnitaskError):
    code = "missing_variable"

    def __init__(self, names: Iterable[str]) -> None:
        self.names = list(names)
        super().__init__(
            "Required template variables not provided: " + ", ".join(self.names)
        )


class UnresolvedBlueprintReferenceError(UnitaskError):
    code = "unresolved_blueprint_reference"

    def __init__(self, blueprint_id: str, context: str) -> None:
        super().__init__(f"Unknown blueprint '{blueprint_id}' referenced by {context}")
        self.blueprint_id = blueprint_id


class ConcurrencyConflictError(UnitaskError):
    code = "concurrency_conflict"


class StorageError(UnitaskError):
    """The persistence layer failed to read or write."""

    code = "storage_error"
