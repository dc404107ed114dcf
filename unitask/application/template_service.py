"""Template application service.

Stores versioned templates and expands them into real tasks and dependency
edges. Instantiation drives the task, dependency and assignment services
inside one outer transaction; any failure along the way unwinds every
record created by the call.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field

from unitask.application.assignment_service import AssignmentService
from unitask.application.common import parse, rejected
from unitask.application.dependency_service import DependencyService
from unitask.application.task_service import TaskService
from unitask.domain.assignment import AssignmentRequest
from unitask.domain.dependency import Dependency
from unitask.domain.shared import (
    Clock,
    ConcurrencyConflictError,
    InactiveTemplateError,
    Ok,
    Result,
    UnitaskError,
    UnresolvedBlueprintReferenceError,
    unwrap,
    utc_now,
)
from unitask.domain.task import Task, TaskPriority
from unitask.domain.template import (
    InstantiationContext,
    Template,
    TemplateBody,
    TemplateChanges,
    TemplateCreate,
    resolve_variables,
    substitute,
    substitute_deep,
)
from unitask.infrastructure.storage import InMemoryStore

logger = logging.getLogger(__name__)


class InstantiationResult(BaseModel):
    """Everything one instantiation created."""

    template_id: str
    template_version: int
    tasks: list[Task] = Field(default_factory=list)
    dependencies: list[Dependency] = Field(default_factory=list)
    task_id_map: dict[str, str] = Field(default_factory=dict)


class TemplateService:
    """Create template versions and instantiate them."""

    def __init__(
        self,
        store: InMemoryStore,
        tasks: TaskService,
        dependencies: DependencyService,
        assignments: AssignmentService,
        clock: Clock = utc_now,
        default_priority: TaskPriority = TaskPriority.MEDIUM,
    ) -> None:
        self._store = store
        self._tasks = tasks
        self._dependencies = dependencies
        self._assignments = assignments
        self._clock = clock
        self._default_priority = default_priority

    # =========================================================================
    # Versions
    # =========================================================================

    def create_template(
        self,
        data: TemplateCreate | Mapping[str, Any],
        actor: str,
    ) -> Result[Template, UnitaskError]:
        """Create version 1 of a new, active template."""
        try:
            payload = parse(TemplateCreate, data)
            with self._store.transaction():
                template = Template(
                    **dict(payload),
                    version=1,
                    is_active=True,
                    created_by=actor,
                    created_at=self._clock(),
                )
                self._store.templates.save(template)
        except UnitaskError as e:
            return rejected("create_template", e)

        logger.info(f"Created template {template.id} '{template.name}'")
        return Ok(template)

    def create_new_version(
        self,
        template_id: str,
        changes: TemplateChanges | Mapping[str, Any],
        actor: str,
    ) -> Result[Template, UnitaskError]:
        """Supersede a template with a new version.

        The current version is deactivated and a copy with the given changes
        becomes version n+1. Tasks created from earlier versions are left
        untouched.

        Returns:
            Ok(Template) with the new version, Err(NotFoundError) for an
            unknown id, Err(ValidationFailedError) if the changed fields do
            not form a valid template, or Err(ConcurrencyConflictError) if
            the template already has a newer version.
        """
        try:
            update = parse(TemplateChanges, changes)
            with self._store.transaction():
                current = self._store.templates.require(template_id)
                if self._store.templates.newer_versions(template_id):
                    raise ConcurrencyConflictError(
                        f"Template {template_id} (version {current.version}) "
                        "has already been superseded"
                    )

                fields = {name: getattr(update, name) for name in update.model_fields_set}
                new_version = _next_version(current, fields, actor, self._clock())
                self._store.templates.save(current.model_copy(update={"is_active": False}))
                self._store.templates.save(new_version)
        except UnitaskError as e:
            return rejected("create_new_version", e)

        logger.info(
            f"Template '{new_version.name}' now at version {new_version.version} "
            f"({new_version.id}, superseding {template_id})"
        )
        return Ok(new_version)

    def get_template(self, template_id: str) -> Result[Template, UnitaskError]:
        try:
            return Ok(self._store.templates.require(template_id))
        except UnitaskError as e:
            return rejected("get_template", e)

    def list_templates(self, active_only: bool = False, category: str | None = None) -> list[Template]:
        """List templates, newest first within each name."""
        with self._store.read():
            templates = self._store.templates.all()
        if active_only:
            templates = [t for t in templates if t.is_active]
        if category is not None:
            templates = [t for t in templates if t.category == category]
        return sorted(templates, key=lambda t: (t.name, -t.version))

    def get_templates_by_category(self, category: str) -> list[Template]:
        """Active templates in ``category``, most recently created first."""
        templates = self.list_templates(active_only=True, category=category)
        return sorted(templates, key=lambda t: t.created_at, reverse=True)

    def list_versions(self, template_id: str) -> Result[list[Template], UnitaskError]:
        """Get the whole version chain ``template_id`` belongs to, oldest first."""
        try:
            with self._store.read():
                start = self._store.templates.require(template_id)
                limit = self._store.templates.count()
                chain = {start.id: start}

                current = start
                while current.previous_version_id and len(chain) <= limit:
                    previous = self._store.templates.get(current.previous_version_id)
                    if previous is None or previous.id in chain:
                        break
                    chain[previous.id] = previous
                    current = previous

                current = start
                while len(chain) <= limit:
                    newer = [t for t in self._store.templates.newer_versions(current.id) if t.id not in chain]
                    if not newer:
                        break
                    current = min(newer, key=lambda t: t.version)
                    chain[current.id] = current
        except UnitaskError as e:
            return rejected("list_versions", e)

        return Ok(sorted(chain.values(), key=lambda t: t.version))

    # =========================================================================
    # Instantiation
    # =========================================================================

    def instantiate(
        self,
        template_id: str,
        variables: Mapping[str, Any] | None,
        actor: str,
        context: InstantiationContext | Mapping[str, Any] | None = None,
    ) -> Result[InstantiationResult, UnitaskError]:
        """Expand a template into real tasks and dependency edges.

        Blueprints are created in declaration order with their string fields
        substituted; unknown placeholders are kept verbatim. Dependency
        declarations are then resolved through the blueprint-id -> task-id
        map and created through the dependency service, so they get the
        same cycle protection as any other edge.

        Args:
            template_id: Template version to instantiate.
            variables: Values for the template's declared variables.
            actor: Opaque id of the caller; becomes ``created_by``.
            context: Owner, root parent, assignee and extra metadata applied
                to every created task.

        Returns:
            Ok(InstantiationResult), or Err with InactiveTemplateError,
            MissingVariableError, UnresolvedBlueprintReferenceError or any
            error raised while creating the records. Nothing is kept on error.
        """
        try:
            ctx = parse(InstantiationContext, context or {})
            with self._store.transaction():
                template = self._store.templates.require(template_id)
                if not template.is_active:
                    raise InactiveTemplateError(template_id)
                resolved = resolve_variables(template.variables, dict(variables or {}))
                _check_references(template.body)

                now = self._clock()
                task_id_map: dict[str, str] = {}
                deferred_parents: list[tuple[str, str]] = []

                for blueprint in template.body.tasks:
                    parent_id = ctx.parent_task_id
                    if blueprint.parent_id is not None:
                        if blueprint.parent_id in task_id_map:
                            parent_id = task_id_map[blueprint.parent_id]
                        else:
                            deferred_parents.append((blueprint.id, blueprint.parent_id))

                    metadata = {
                        **substitute_deep(blueprint.metadata, resolved),
                        **ctx.metadata,
                        "created_from_template": True,
                        "template_id": template.id,
                        "template_version": template.version,
                    }
                    due_date = None
                    if blueprint.due_date_offset_days is not None:
                        due_date = now + timedelta(days=blueprint.due_date_offset_days)

                    task = unwrap(self._tasks.create_task(
                        {
                            "title": substitute(blueprint.title, resolved),
                            "description": substitute(blueprint.description, resolved),
                            "task_type": substitute(blueprint.task_type, resolved)
                            if blueprint.task_type else None,
                            "priority": blueprint.priority or self._default_priority,
                            "parent_task_id": parent_id,
                            "owner": ctx.owner,
                            "estimated_hours": blueprint.estimated_hours,
                            "due_date": due_date,
                            "tags": substitute_deep(blueprint.tags, resolved),
                            "metadata": metadata,
                        },
                        actor,
                        template_id=template.id,
                    ))
                    task_id_map[blueprint.id] = task.id

                for child_local, parent_local in deferred_parents:
                    unwrap(self._tasks.set_parent(
                        task_id_map[child_local], task_id_map[parent_local], actor
                    ))

                dependencies = [
                    unwrap(self._dependencies.add_dependency(
                        task_id_map[declaration.from_id],
                        task_id_map[declaration.to_id],
                        actor,
                        declaration.dependency_type,
                    ))
                    for declaration in template.body.all_dependencies()
                ]

                if ctx.assignee_user_id:
                    primary = AssignmentRequest(user_id=ctx.assignee_user_id, is_primary=True)
                    for task_id in task_id_map.values():
                        unwrap(self._assignments.assign_users(task_id, [primary], actor))

                tasks = [self._store.tasks.require(task_id) for task_id in task_id_map.values()]
        except UnitaskError as e:
            return rejected("instantiate", e)

        logger.info(
            f"Instantiated template {template_id} v{template.version}: "
            f"{len(tasks)} task(s), {len(dependencies)} dependency edge(s)"
        )
        return Ok(InstantiationResult(
            template_id=template.id,
            template_version=template.version,
            tasks=tasks,
            dependencies=dependencies,
            task_id_map=task_id_map,
        ))


def _next_version(
    current: Template,
    fields: dict[str, Any],
    actor: str,
    now: datetime,
) -> Template:
    copied = {
        "name": current.name,
        "description": current.description,
        "category": current.category,
        "body": current.body,
        "variables": current.variables,
        "tags": current.tags,
    }
    copied.update(fields)
    return parse(Template, {
        **copied,
        "version": current.version + 1,
        "previous_version_id": current.id,
        "is_active": True,
        "created_by": actor,
        "created_at": now,
    })


def _check_references(body: TemplateBody) -> None:
    """Fail on any parent or dependency reference to an undeclared blueprint."""
    declared = {blueprint.id for blueprint in body.tasks}
    for blueprint in body.tasks:
        if blueprint.parent_id is not None and blueprint.parent_id not in declared:
            raise UnresolvedBlueprintReferenceError(
                blueprint.parent_id, f"parent of blueprint '{blueprint.id}'"
            )
    for declaration in body.all_dependencies():
        for local_id in (declaration.from_id, declaration.to_id):
            if local_id not in declared:
                raise UnresolvedBlueprintReferenceError(
                    local_id, f"dependency {declaration.from_id} -> {declaration.to_id}"
                )
