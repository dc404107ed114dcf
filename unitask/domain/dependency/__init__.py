"""Dependency domain - typed edges between tasks and graph checks."""

from .graph import check_new_edge, dependency_chain, reaches
from .models import GATING_TYPES, Dependency, DependencyType

__all__ = [
    "Dependency",
    "DependencyType",
    "GATING_TYPES",
    "check_new_edge",
    "dependency_chain",
    "reaches",
]
