"""Base domain event infrastructure.

Domain events are immutable records of something that happened, captured
at the moment it occurred. The history recorder turns them into persisted
change records.

Example usage:
    >>> class TaskCompleted(DomainEvent):
    ...     task_id: str
    ...
    >>> event = TaskCompleted(task_id="t-1", actor="user-1")
    >>> print(f"Event {event.event_id} occurred at {event.occurred_at}")
"""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from unitask.domain.shared.clock import utc_now


class DomainEvent(BaseModel):
    """Base class for all domain events.

    Attributes:
        event_id: Unique identifier for this event instance.
        actor: Opaque id of whoever triggered the change.
        occurred_at: UTC timestamp when the event occurred.
    """

    event_id: str = Field(default_factory=lambda: uuid4().hex)
    actor: str
    occurred_at: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}
