"""Template domain models.

A template is a versioned, parameterized task-graph definition. Its body
lists blueprints (template-local task definitions) and the dependency
declarations between them; instantiation turns both into real records.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from unitask.domain.dependency.models import DependencyType
from unitask.domain.shared.clock import new_id, utc_now
from unitask.domain.task.models import TaskOwner, TaskPriority


class VariableSpec(BaseModel):
    """Declaration of a variable the template expects."""

    name: str = Field(min_length=1, pattern=r"^\w+$")
    type: Literal["string", "number", "boolean"] = "string"
    required: bool = False
    default: Any = None
    description: str = ""


class BlueprintDependency(BaseModel):
    """Dependency declaration between two blueprints, by local id."""

    from_id: str = Field(min_length=1)
    to_id: str = Field(min_length=1)
    dependency_type: DependencyType = DependencyType.BLOCKS


class Blueprint(BaseModel):
    """A template-local task definition.

    String fields may contain ``{{variable}}`` placeholders. ``parent_id``
    and ``depends_on`` refer to other blueprints by their local id.
    """

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = ""
    task_type: str | None = None
    priority: TaskPriority | None = None
    estimated_hours: float = Field(default=0.0, ge=0)
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    parent_id: str | None = None
    due_date_offset_days: int | None = None
    depends_on: list[str] = Field(default_factory=list)
    dependency_type: DependencyType = DependencyType.BLOCKS

    @field_validator("depends_on", mode="before")
    @classmethod
    def accept_single_id(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


class TemplateBody(BaseModel):
    """Ordered blueprints plus their dependency declarations."""

    tasks: list[Blueprint] = Field(default_factory=list)
    dependencies: list[BlueprintDependency] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_blueprint_ids(self) -> "TemplateBody":
        seen: set[str] = set()
        for blueprint in self.tasks:
            if blueprint.id in seen:
                raise ValueError(f"duplicate blueprint id '{blueprint.id}'")
            seen.add(blueprint.id)
        return self

    def all_dependencies(self) -> list[BlueprintDependency]:
        """Explicit declarations followed by each blueprint's ``depends_on``."""
        declared = list(self.dependencies)
        for blueprint in self.tasks:
            for target in blueprint.depends_on:
                declared.append(
                    BlueprintDependency(
                        from_id=blueprint.id,
                        to_id=target,
                        dependency_type=blueprint.dependency_type,
                    )
                )
        return declared


class Template(BaseModel):
    """One version of a template.

    Versions form a chain through ``previous_version_id``; a version only
    ever points at a strictly older one.
    """

    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    category: str | None = None
    version: int = Field(default=1, ge=1)
    previous_version_id: str | None = None
    is_active: bool = True
    body: TemplateBody = Field(default_factory=TemplateBody)
    variables: list[VariableSpec] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    created_by: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class TemplateCreate(BaseModel):
    """Input for creating the first version of a template."""

    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    category: str | None = None
    body: TemplateBody = Field(default_factory=TemplateBody)
    variables: list[VariableSpec] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class TemplateChanges(BaseModel):
    """Fields to change in a new template version; unset fields are copied."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = None
    body: TemplateBody | None = None
    variables: list[VariableSpec] | None = None
    tags: list[str] | None = None


class InstantiationContext(BaseModel):
    """Caller-supplied context applied to every instantiated task."""

    owner: TaskOwner | None = None
    parent_task_id: str | None = None
    assignee_user_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
