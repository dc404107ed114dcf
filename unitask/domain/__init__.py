"""Domain layer for unitask.

Pure models and rules: tasks and their hierarchy, dependency edges,
assignments, templates and history records. Nothing in here performs I/O.
"""
