"""History application service.

Persists task events as history records and answers per-task queries.
"""

import logging
from datetime import datetime

from unitask.application.common import parse, rejected
from unitask.domain.history import HistoryAction, HistoryFilter, HistoryRecord, records_for_event
from unitask.domain.shared import NotFoundError, Ok, Result, UnitaskError
from unitask.domain.task.events import TaskEvent
from unitask.infrastructure.storage import InMemoryStore

logger = logging.getLogger(__name__)


class HistoryRecorder:
    """Appends change records inside the caller's transaction.

    ``record`` raises instead of returning a Result: a failed history write
    must abort the mutation that triggered it.
    """

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def record(self, event: TaskEvent) -> list[HistoryRecord]:
        """Persist the records for one event.

        Args:
            event: The task event to record.

        Returns:
            The records written.
        """
        records = records_for_event(event)
        with self._store.transaction():
            for record in records:
                self._store.history.append(record)
        logger.debug(f"Recorded {type(event).__name__} for task {event.task_id}")
        return records

    def for_task(
        self,
        task_id: str,
        action: HistoryAction | str | None = None,
        *,
        field_name: str | None = None,
        actor: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> Result[list[HistoryRecord], UnitaskError]:
        """Get the history of a task, oldest first.

        Soft-deleted tasks keep their history and can still be queried.

        Args:
            task_id: Task whose records to return.
            action: Only records of this action.
            field_name: Only records touching this field.
            actor: Only records written by this actor.
            since: Only records at or after this time.
            until: Only records at or before this time.
        """
        try:
            filters = parse(HistoryFilter, {
                "action": action,
                "field_name": field_name,
                "actor": actor,
                "since": since,
                "until": until,
            })
            with self._store.read():
                if self._store.tasks.get(task_id, include_deleted=True) is None:
                    raise NotFoundError("task", task_id)
                return Ok(self._store.history.for_task(task_id, filters))
        except UnitaskError as e:
            return rejected("history", e)
