"""Template domain - versioned task-graph definitions and substitution."""

from unitask.domain.template.models import (
    Blueprint,
    BlueprintDependency,
    InstantiationContext,
    Template,
    TemplateBody,
    TemplateChanges,
    TemplateCreate,
    VariableSpec,
)
from unitask.domain.template.substitution import (
    PLACEHOLDER,
    resolve_variables,
    substitute,
    substitute_deep,
)

__all__ = [
    "Template",
    "TemplateBody",
    "TemplateCreate",
    "TemplateChanges",
    "Blueprint",
    "BlueprintDependency",
    "VariableSpec",
    "InstantiationContext",
    "PLACEHOLDER",
    "substitute",
    "substitute_deep",
    "resolve_variables",
]
