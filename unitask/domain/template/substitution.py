"""Variable handling for template instantiation.

Placeholders use the ``{{name}}`` form. Unknown placeholders are left as
they are so partially parameterized templates still instantiate.
"""

import re
from typing import Any

from unitask.domain.shared.errors import MissingVariableError, ValidationFailedError
from unitask.domain.template.models import VariableSpec

PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def substitute(text: str, variables: dict[str, Any]) -> str:
    """Replace ``{{name}}`` placeholders in a string.

    Examples:
        >>> substitute("Prep {{site}}", {"site": "Nairobi"})
        'Prep Nairobi'
        >>> substitute("Prep {{site}}", {})
        'Prep {{site}}'
    """
    if not text:
        return text

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables:
            return _render(variables[name])
        return match.group(0)

    return PLACEHOLDER.sub(replace, text)


def substitute_deep(value: Any, variables: dict[str, Any]) -> Any:
    """Substitute placeholders in every string nested in lists and dicts."""
    if isinstance(value, str):
        return substitute(value, variables)
    if isinstance(value, list):
        return [substitute_deep(item, variables) for item in value]
    if isinstance(value, dict):
        return {key: substitute_deep(item, variables) for key, item in value.items()}
    return value


_TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
}


def resolve_variables(specs: list[VariableSpec], supplied: dict[str, Any]) -> dict[str, Any]:
    """Merge supplied values with declared defaults and validate them.

    Variables that are supplied but not declared pass through unchanged.
    A value of None counts as not supplied.

    Raises:
        MissingVariableError: Naming every required variable not supplied
        ValidationFailedError: A supplied value has the wrong type
    """
    resolved = {name: value for name, value in supplied.items() if value is not None}
    missing = [spec.name for spec in specs if spec.required and spec.name not in resolved]
    if missing:
        raise MissingVariableError(missing)

    for spec in specs:
        if spec.name not in resolved:
            if spec.default is not None:
                resolved[spec.name] = spec.default
            continue
        if not _TYPE_CHECKS[spec.type](resolved[spec.name]):
            raise ValidationFailedError(
                f"Variable '{spec.name}' must be a {spec.type}, "
                f"got {type(resolved[spec.name]).__name__}"
            )
    return resolved
