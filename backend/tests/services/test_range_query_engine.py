"""Range Query Engine: resolver + fallback guard against an in-memory store.

Invariants verified:
    - find(O, s, e) returns exactly the owner's records with s <= ts <= e, newest first
    - The pushed bound does not change the result
    - A missing index degrades to a full owner scan with identical output
    - Non-index store failures propagate without a scan
    - No memory of missing indexes between calls

Design Decisions:
    - Timestamps are epoch offsets in milliseconds so scenarios read like the
      property table (100..500)
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from tracker.core.domain_types import PushedBound, RangeOperator, SortDirection
from tracker.core.errors import MissingIndexError, TransientStoreError
from tracker.core.range_query import build_descriptor
from tracker.core.record_specs import EXPENSES, HABIT_LOGS
from tracker.core.timestamps import to_epoch_ms
from tracker.services.index_fallback import IndexFallbackGuard, QueryResult
from tracker.services.range_query import RangeQueryResolver
from tests.services.fake_store import FakeRecordStore

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
OWNER = "owner-1"


def at(ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=ms)


def _expense(ms, owner=OWNER, category="food"):
    return {
        "id": f"{owner}-{category}-{ms}", "user_id": owner, "date": at(ms),
        "category": category, "amount": 1.0,
    }


def _ms(result: QueryResult) -> list[int]:
    return [to_epoch_ms(r["date"]) for r in result.records]


@pytest.fixture
def store():
    records = [_expense(ms) for ms in (100, 200, 300, 400, 500)]
    records += [_expense(ms, owner="owner-2") for ms in (250, 350)]
    return FakeRecordStore({"expenses": records})


@pytest.fixture
def resolver(store):
    return RangeQueryResolver(store, EXPENSES)


# ─── Indexed path ───────────────────────────────────────────────

async def test_both_bounds_push_start_and_filter_end(resolver, store):
    result = await resolver.find(OWNER, at(200), at(400))
    assert _ms(result) == [400, 300, 200]
    assert result.pushed_bound is PushedBound.START
    assert result.degraded is False
    query = store.queries[0]
    assert query.range_filter.op is RangeOperator.GTE
    assert query.order_by == ("date", SortDirection.ASC)


async def test_start_only_reverses_ascending_store_order(resolver):
    result = await resolver.find(OWNER, start=at(300))
    assert _ms(result) == [500, 400, 300]


async def test_end_only_pushes_end(resolver, store):
    result = await resolver.find(OWNER, end=at(300))
    assert _ms(result) == [300, 200, 100]
    assert result.pushed_bound is PushedBound.END
    assert store.queries[0].range_filter.op is RangeOperator.LTE


async def test_unbounded_pushes_limit(resolver, store):
    result = await resolver.find(OWNER, limit=2)
    assert _ms(result) == [500, 400]
    assert store.queries[0].limit == 2
    assert result.pushed_bound is None


async def test_limit_after_unpushed_bound(resolver):
    result = await resolver.find(OWNER, at(200), at(400), limit=2)
    assert _ms(result) == [400, 300]


async def test_equal_bounds_return_that_instant(resolver):
    assert _ms(await resolver.find(OWNER, at(300), at(300))) == [300]


async def test_other_owners_never_returned(resolver):
    result = await resolver.find(OWNER)
    assert {r["user_id"] for r in result.records} == {OWNER}


async def test_inverted_bounds_return_empty(resolver):
    result = await resolver.find(OWNER, at(400), at(200))
    assert result.records == []
    assert result.meta() == {"count": 0, "degraded": False, "pushed_bound": "start"}


async def test_equality_filter_applied(store):
    store.collections["expenses"].append(_expense(450, category="rent"))
    result = await RangeQueryResolver(store, EXPENSES).find(
        OWNER, start=at(300), filters={"category": "rent"},
    )
    assert _ms(result) == [450]


# ─── Fallback path ──────────────────────────────────────────────

async def test_missing_index_falls_back_to_full_scan(resolver, store):
    store.require_indexes("expenses")
    result = await resolver.find(OWNER, at(200), at(400))
    assert _ms(result) == [400, 300, 200]
    assert result.degraded is True
    assert result.pushed_bound is None
    assert store.scans == [("expenses", "user_id", OWNER)]


async def test_fallback_with_limit(resolver, store):
    store.require_indexes("expenses")
    result = await resolver.find(OWNER, at(200), at(400), limit=2)
    assert _ms(result) == [400, 300]
    assert result.meta() == {"count": 2, "degraded": True, "pushed_bound": None}


@pytest.mark.parametrize("start,end,filters,limit", [
    (200, 400, None, None),
    (300, None, None, None),
    (None, 300, None, 2),
    (None, None, None, 3),
    (None, None, {"category": "rent"}, None),
    (150, 450, {"category": "food"}, 1),
    (500, 100, None, None),
])
async def test_fallback_output_equals_indexed_output(start, end, filters, limit):
    records = [_expense(ms) for ms in (100, 200, 300, 400, 500)]
    records += [_expense(ms, category="rent") for ms in (300, 420)]
    records += [_expense(ms, owner="owner-2") for ms in (250, 350)]
    kwargs = dict(
        start=at(start) if start is not None else None,
        end=at(end) if end is not None else None,
        filters=filters, limit=limit,
    )

    indexed_store = FakeRecordStore({"expenses": records})
    indexed = await RangeQueryResolver(indexed_store, EXPENSES).find(OWNER, **kwargs)

    degraded_store = FakeRecordStore({"expenses": records})
    degraded_store.require_indexes("expenses")
    degraded = await RangeQueryResolver(degraded_store, EXPENSES).find(OWNER, **kwargs)

    assert degraded.degraded is True
    assert degraded.records == indexed.records


async def test_covering_index_avoids_fallback(store):
    store.require_indexes("expenses", (("user_id",), "date"))
    result = await RangeQueryResolver(store, EXPENSES).find(OWNER, start=at(100))
    assert result.degraded is False
    assert store.scans == []


async def test_filtered_query_without_its_index_degrades(store):
    store.require_indexes("expenses", (("user_id",), "date"))
    result = await RangeQueryResolver(store, EXPENSES).find(
        OWNER, start=at(100), filters={"category": "food"},
    )
    assert result.degraded is True
    assert _ms(result) == [500, 400, 300, 200, 100]


async def test_fallback_is_not_remembered_between_calls(resolver, store):
    store.require_indexes("expenses")
    await resolver.find(OWNER, start=at(100))
    store.indexes = None  # index provisioned
    result = await resolver.find(OWNER, start=at(100))
    assert result.degraded is False
    assert len(store.queries) == 2
    assert len(store.scans) == 1


async def test_fallback_logs_warning(resolver, store, caplog):
    store.require_indexes("expenses")
    with caplog.at_level(logging.WARNING, logger="tracker.services.index_fallback"):
        await resolver.find(OWNER, start=at(100))
    warnings = [r for r in caplog.records if r.getMessage().startswith("index_fallback")]
    assert len(warnings) == 1
    assert warnings[0].record_kind == "expense"
    assert warnings[0].owner_id == OWNER
    assert warnings[0].error_code == "MISSING_INDEX"
    assert warnings[0].index_fields == ["user_id", "date"]


# ─── Error propagation ──────────────────────────────────────────

async def test_transient_error_propagates_without_scan(resolver, store):
    store.fail_with = TransientStoreError("deadline exceeded", "query")
    with pytest.raises(TransientStoreError):
        await resolver.find(OWNER, at(100), at(500))
    assert store.scans == []
    assert len(store.queries) == 1


async def test_injected_predicate_overrides_store(store):
    store.fail_with = TransientStoreError("index building", "query", store_code=9)
    resolver = RangeQueryResolver(
        store, EXPENSES,
        is_retryable_as_full_scan=lambda e: getattr(e, "store_code", None) == 9,
    )
    result = await resolver.find(OWNER, at(200), at(400))
    assert result.degraded is True
    assert _ms(result) == [400, 300, 200]


async def test_predicate_rejecting_missing_index_propagates(store):
    store.require_indexes("expenses")
    resolver = RangeQueryResolver(
        store, EXPENSES, is_retryable_as_full_scan=lambda e: False,
    )
    with pytest.raises(MissingIndexError):
        await resolver.find(OWNER, start=at(100))
    assert store.scans == []


# ─── Guard in isolation ─────────────────────────────────────────

async def test_guard_full_scan_reconciles_habit_logs():
    logs = [
        {"id": "l1", "user_id": OWNER, "habit_id": "h1", "completed_at": at(100)},
        {"id": "l2", "user_id": OWNER, "habit_id": "h2", "completed_at": at(200)},
        {"id": "l3", "user_id": OWNER, "habit_id": "h1", "completed_at": at(300)},
    ]
    store = FakeRecordStore({"habit_logs": logs})
    guard = IndexFallbackGuard(store, HABIT_LOGS)
    descriptor = build_descriptor(
        HABIT_LOGS, OWNER, end=at(250), filters={"habit_id": "h1"},
    )
    result = await guard.full_scan(descriptor)
    assert [r["id"] for r in result.records] == ["l1"]
    assert result.degraded is True
