"""Timestamps: pure conversions between datetimes and epoch milliseconds.

Invariants:
    - Naive datetimes are interpreted as UTC (SQLite drops the offset on read)
    - to_epoch_ms(None) is None; the reconciler treats it as "no timestamp"
    - day_window() bounds are both inclusive, one millisecond apart from the next day
    - floor_to_ms() and end_of_ms() bracket a datetime to the millisecond the
      reconciler compares at; stores that keep microseconds agree with it

Design Decisions:
    - Milliseconds, not seconds: document stores timestamp at ms precision, and
      integers keep float comparison out of reconcile
"""

from datetime import date, datetime, timedelta, timezone

from tracker.core.domain_types import EpochMillis

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_epoch_ms(value: datetime | date | int | float | str | None) -> EpochMillis | None:
    """Convert a stored timestamp to integer epoch milliseconds."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError("bool is not a timestamp")
    if isinstance(value, (int, float)):
        return EpochMillis(int(value))
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    delta = ensure_utc(value) - _EPOCH
    return EpochMillis(delta // _ONE_MS)


def floor_to_ms(value: datetime) -> datetime:
    """UTC datetime truncated to whole milliseconds."""
    value = ensure_utc(value)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def end_of_ms(value: datetime) -> datetime:
    """Last microsecond of the millisecond containing value."""
    return floor_to_ms(value) + _ONE_MS - timedelta(microseconds=1)


def day_window(moment: datetime) -> tuple[datetime, datetime]:
    """Inclusive [start, end] of the UTC calendar day containing moment."""
    moment = ensure_utc(moment)
    start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1) - _ONE_MS


def whole_minutes_between(start: datetime, end: datetime) -> int:
    """Elapsed whole minutes, floored (a 90s entry is 1 minute)."""
    seconds = (ensure_utc(end) - ensure_utc(start)).total_seconds()
    return int(seconds // 60)
