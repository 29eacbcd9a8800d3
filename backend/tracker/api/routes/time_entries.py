"""Time Routes: running timers, manual entries and the time entry list.

Invariants:
    - Starting a timer stops every active timer of the owner first
    - Stopping sets end_time, duration (whole minutes) and is_active=False
    - Stopping an inactive entry is TIMER_NOT_ACTIVE (400)
    - Editing start_time or end_time recomputes duration; an inverted span is 400
    - Another owner's entry is 404

Design Decisions:
    - Active-timer lookups are equality-only (user_id, is_active): no composite
      index needed, so they bypass the range query engine
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, status

from tracker.api.deps import (
    MAX_LIST_LIMIT, get_owner_id, get_record_store, get_owned_or_404,
)
from tracker.core.errors import TimerNotActiveError
from tracker.core.record_specs import TIME_ENTRIES
from tracker.core.time_rules import apply_span_change
from tracker.core.timestamps import whole_minutes_between
from tracker.infrastructure.record_store import SqlRecordStore
from tracker.schemas.time_entry import (
    TimerStart, ManualTimeEntry, TimeEntryUpdate, TimeEntryResponse,
)
from tracker.services.range_query import RangeQueryResolver

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/time", tags=["time"])


async def _stop_active_timers(store: SqlRecordStore, owner_id: str) -> int:
    active = await store.find_where(
        TIME_ENTRIES.collection, {"user_id": owner_id, "is_active": True},
    )
    now = datetime.now(timezone.utc)
    for entry in active:
        await store.update(TIME_ENTRIES.collection, entry["id"], {
            "is_active": False,
            "end_time": now,
            "duration": whole_minutes_between(entry["start_time"], now),
            "updated_at": now,
        })
    return len(active)


@router.get("/entries")
async def list_time_entries(
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    category: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=MAX_LIST_LIMIT),
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    result = await RangeQueryResolver(store, TIME_ENTRIES).find(
        owner_id, start_date, end_date, {"category": category}, limit,
    )
    return {
        "time_entries": [TimeEntryResponse.model_validate(r) for r in result.records],
        "meta": result.meta(),
    }


@router.post("/start", status_code=status.HTTP_201_CREATED)
async def start_timer(
    body: TimerStart,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    stopped = await _stop_active_timers(store, owner_id)
    if stopped:
        logger.info(
            f"Stopped {stopped} running timer(s) before starting a new one",
            extra={"owner_id": owner_id},
        )
    now = datetime.now(timezone.utc)
    document = await store.insert(TIME_ENTRIES.collection, {
        "user_id": owner_id,
        "category": body.category,
        "description": body.description,
        "start_time": now,
        "is_active": True,
        "is_productive": body.is_productive,
        "created_at": now,
        "updated_at": now,
    })
    return {"time_entry": TimeEntryResponse.model_validate(document)}


@router.post("/stop/{time_entry_id}")
async def stop_timer(
    time_entry_id: str,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    entry = await get_owned_or_404(
        store, TIME_ENTRIES, time_entry_id, owner_id, "Time entry",
    )
    if not entry["is_active"]:
        raise TimerNotActiveError()
    now = datetime.now(timezone.utc)
    document = await store.update(TIME_ENTRIES.collection, time_entry_id, {
        "end_time": now,
        "duration": whole_minutes_between(entry["start_time"], now),
        "is_active": False,
        "updated_at": now,
    })
    return {"time_entry": TimeEntryResponse.model_validate(document)}


@router.post("/manual", status_code=status.HTTP_201_CREATED)
async def add_manual_entry(
    body: ManualTimeEntry,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    now = datetime.now(timezone.utc)
    document = await store.insert(TIME_ENTRIES.collection, {
        "user_id": owner_id,
        "category": body.category,
        "description": body.description,
        "start_time": body.start_time,
        "end_time": body.end_time,
        "duration": whole_minutes_between(body.start_time, body.end_time),
        "is_active": False,
        "is_productive": body.is_productive,
        "created_at": now,
        "updated_at": now,
    })
    return {"time_entry": TimeEntryResponse.model_validate(document)}


@router.get("/active")
async def get_active_timer(
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    active = await store.find_where(
        TIME_ENTRIES.collection, {"user_id": owner_id, "is_active": True}, limit=1,
    )
    return {
        "time_entry": TimeEntryResponse.model_validate(active[0]) if active else None,
    }


@router.put("/{time_entry_id}")
async def update_time_entry(
    time_entry_id: str,
    body: TimeEntryUpdate,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    entry = await get_owned_or_404(
        store, TIME_ENTRIES, time_entry_id, owner_id, "Time entry",
    )
    changes = apply_span_change(entry, body.model_dump(exclude_none=True))
    changes["updated_at"] = datetime.now(timezone.utc)
    document = await store.update(TIME_ENTRIES.collection, time_entry_id, changes)
    return {"time_entry": TimeEntryResponse.model_validate(document)}


@router.delete("/{time_entry_id}")
async def delete_time_entry(
    time_entry_id: str,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    await get_owned_or_404(
        store, TIME_ENTRIES, time_entry_id, owner_id, "Time entry",
    )
    await store.delete(TIME_ENTRIES.collection, time_entry_id)
    return {"message": "Time entry deleted successfully"}
