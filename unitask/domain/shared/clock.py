"""Clock and identifier helpers."""

from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current timezone-aware UTC time."""
    return datetime.now(UTC)


def new_id() -> str:
    """Generate a new opaque identifier."""
    return uuid4().hex


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with ``utc_now()``."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
