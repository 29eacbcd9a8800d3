"""Time Rules: span bookkeeping applied to every time entry edit.

Invariants:
    - A stopped entry never has end_time before start_time
    - Changing either time recomputes duration in whole minutes
    - Running entries (no end_time) keep duration unset
"""

from datetime import datetime
from typing import Any, Mapping

from tracker.core.errors import RecordValidationError
from tracker.core.timestamps import ensure_utc, whole_minutes_between


def apply_span_change(entry: Mapping[str, Any], changes: dict) -> dict:
    """Return a copy of changes with duration consistent with the new span. Pure."""
    result = dict(changes)
    if "start_time" not in result and "end_time" not in result:
        return result

    start: datetime = result.get("start_time", entry["start_time"])
    end: datetime | None = result.get("end_time", entry.get("end_time"))
    if end is None:
        return result
    if ensure_utc(end) < ensure_utc(start):
        raise RecordValidationError(
            "end_time must not be before start_time", "end_time",
        )
    result["duration"] = whole_minutes_between(start, end)
    return result
