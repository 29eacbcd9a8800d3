"""Range Query Planning: which bound is pushed, what is left for memory.

Invariants verified:
    - At most one RangeFilter, ordered on the range field
    - start wins the inequality slot; end pushed only without start
    - limit pushed only when no bound is active
    - Unknown filter fields are rejected before any plan is built
"""

from datetime import datetime, timedelta, timezone

import pytest

from tracker.core.domain_types import (
    PushedBound, RangeOperator, RecordKind, SortDirection,
)
from tracker.core.errors import InvalidQueryError
from tracker.core.range_query import (
    RangeBounds, RecordSpec, build_descriptor, full_scan_bounds, plan_indexed_query,
)
from tracker.core.record_specs import ALL_SPECS, EXPENSES, TODOS

START = datetime(2024, 1, 1, tzinfo=timezone.utc)
END = datetime(2024, 1, 31, tzinfo=timezone.utc)
END_OF_MS = END + timedelta(microseconds=999)


def _plan(spec=EXPENSES, **kwargs):
    descriptor = build_descriptor(spec, "owner-1", **kwargs)
    return descriptor, plan_indexed_query(spec, descriptor)


def test_start_is_pushed_ascending_with_end_left_in_memory():
    _, plan = _plan(start=START, end=END, limit=10)
    query = plan.store_query
    assert query.range_filter.field == "date"
    assert query.range_filter.op is RangeOperator.GTE
    assert query.range_filter.value == START
    assert query.order_by == ("date", SortDirection.ASC)
    assert query.limit is None
    assert plan.unpushed == RangeBounds(end=END_OF_MS)
    assert plan.reverse is True
    assert plan.pushed_bound is PushedBound.START


def test_end_only_is_pushed_as_lte():
    _, plan = _plan(end=END, limit=10)
    assert plan.store_query.range_filter.op is RangeOperator.LTE
    assert plan.store_query.range_filter.value == END_OF_MS
    assert plan.store_query.limit is None
    assert plan.unpushed.is_empty
    assert plan.pushed_bound is PushedBound.END


def test_unbounded_query_sorts_descending_and_pushes_limit():
    _, plan = _plan(limit=25)
    assert plan.store_query.range_filter is None
    assert plan.store_query.order_by == ("date", SortDirection.DESC)
    assert plan.store_query.limit == 25
    assert plan.reverse is False
    assert plan.pushed_bound is None


def test_non_positive_limit_is_not_pushed():
    _, plan = _plan(limit=0)
    assert plan.store_query.limit is None


def test_owner_clause_comes_first_then_sorted_filters():
    _, plan = _plan(TODOS, filters={"type": "daily", "is_completed": False})
    assert plan.store_query.equals == (
        ("user_id", "owner-1"), ("is_completed", False), ("type", "daily"),
    )


def test_none_filters_are_dropped():
    descriptor, _ = _plan(filters={"category": None})
    assert descriptor.equality_filters == {}


def test_unknown_filter_is_rejected():
    with pytest.raises(InvalidQueryError) as exc_info:
        build_descriptor(EXPENSES, "owner-1", filters={"amount": 5})
    assert exc_info.value.code == "INVALID_QUERY"
    assert exc_info.value.fields == ["amount"]
    assert exc_info.value.http_status == 400


def test_start_after_end_is_accepted():
    descriptor = build_descriptor(EXPENSES, "owner-1", start=END, end=START)
    assert descriptor.start == END


def test_full_scan_keeps_both_bounds():
    descriptor, _ = _plan(start=START, end=END)
    assert full_scan_bounds(descriptor) == RangeBounds(START, END_OF_MS)


def test_effective_limit():
    assert build_descriptor(EXPENSES, "o", limit=None).effective_limit is None
    assert build_descriptor(EXPENSES, "o", limit=-3).effective_limit is None
    assert build_descriptor(EXPENSES, "o", limit=7).effective_limit == 7


def test_custom_spec_uses_its_own_fields():
    spec = RecordSpec(
        kind=RecordKind.EXPENSE, collection="ledger", range_field="booked_at",
        equality_fields=frozenset(), owner_field="account",
    )
    _, plan = _plan(spec, start=START)
    assert plan.store_query.collection == "ledger"
    assert plan.store_query.equals == (("account", "owner-1"),)
    assert plan.store_query.range_filter.field == "booked_at"


def test_every_record_type_is_owner_scoped_by_user_id():
    assert {spec.owner_field for spec in ALL_SPECS} == {"user_id"}
    assert len({spec.collection for spec in ALL_SPECS}) == len(ALL_SPECS)


def test_bounds_widen_to_whole_milliseconds():
    start = datetime(2024, 1, 1, 9, 0, 0, 700, tzinfo=timezone.utc)
    end = datetime(2024, 1, 1, 9, 0, 0, 1_250, tzinfo=timezone.utc)
    descriptor = build_descriptor(EXPENSES, "owner-1", start=start, end=end)
    assert descriptor.start == datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
    assert descriptor.end == datetime(2024, 1, 1, 9, 0, 0, 1_999, tzinfo=timezone.utc)


def test_naive_bounds_become_utc():
    descriptor = build_descriptor(EXPENSES, "owner-1", start=datetime(2024, 1, 1))
    assert descriptor.start == START
