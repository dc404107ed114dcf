"""unitask - a generic work-tracking core.

Tasks with hierarchy, typed dependency edges, a dependency-gated status
state machine, multi-user assignments and versioned task-graph templates.
"""

__version__ = "0.1.0"
