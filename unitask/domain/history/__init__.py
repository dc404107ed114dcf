"""History domain - append-only change records."""

from unitask.domain.history.models import (
    HistoryAction,
    HistoryFilter,
    HistoryRecord,
    encode_value,
    records_for_event,
)

__all__ = ["HistoryAction", "HistoryFilter", "HistoryRecord", "encode_value", "records_for_event"]
