"""Consistency Reconciler: pure post-processing shared by the indexed and fallback paths.

Invariants:
    - Bounds are inclusive and compared as integer epoch milliseconds
    - Equality filters are exact matches (==) against the record's field
    - Output is sorted by (timestamp, id) descending; records without a
      timestamp fail any bound and sort last
    - limit is applied last and only when > 0
    - reconcile(reconcile(X, p), p) == reconcile(X, p)
    - Input records are never mutated; a new list is returned

Design Decisions:
    - Always re-sort, even when the store already sorted: the indexed path
      (ascending + reversed), the descending path and the full scan must be
      indistinguishable to callers
    - id as tie-breaker: two records at the same instant come back in the same
      order whichever path produced them
"""

from typing import Any, Callable, Iterable, Mapping

from tracker.core.range_query import RangeBounds


def reconcile(
    records: Iterable[Mapping[str, Any]],
    *,
    range_field: str,
    bounds: RangeBounds,
    equality_filters: Mapping[str, Any],
    limit: int | None,
    to_epoch_ms: Callable[[Any], int | None],
    id_field: str = "id",
) -> list[Mapping[str, Any]]:
    """Apply unpushed bounds and filters, sort descending, truncate. Pure, no IO."""
    start_ms = to_epoch_ms(bounds.start) if bounds.start is not None else None
    end_ms = to_epoch_ms(bounds.end) if bounds.end is not None else None

    keyed = []
    for record in records:
        ts = to_epoch_ms(record.get(range_field))
        if not _within(ts, start_ms, end_ms):
            continue
        if not _matches(record, equality_filters):
            continue
        keyed.append((ts, record))

    keyed.sort(key=lambda pair: _sort_key(pair[0], pair[1], id_field), reverse=True)
    result = [record for _, record in keyed]

    if limit is not None and limit > 0:
        return result[:limit]
    return result


def _within(ts: int | None, start_ms: int | None, end_ms: int | None) -> bool:
    if start_ms is None and end_ms is None:
        return True
    if ts is None:
        return False
    if start_ms is not None and ts < start_ms:
        return False
    if end_ms is not None and ts > end_ms:
        return False
    return True


def _matches(record: Mapping[str, Any], equality_filters: Mapping[str, Any]) -> bool:
    return all(
        record.get(name) == value for name, value in equality_filters.items()
    )


def _sort_key(ts: int | None, record: Mapping[str, Any], id_field: str) -> tuple:
    # (has_ts, ts, id): missing timestamps sort below every real one
    return (ts is not None, ts if ts is not None else 0, str(record.get(id_field, "")))
