"""Habit Routes: habits, their completion logs, and the daily target check.

Invariants:
    - A habit can be logged at most target_count times per UTC day
    - Deleting a habit deletes its logs first; a failing log delete is logged
      and does not block the habit delete
    - Another owner's habit is 404; another owner's log is 403

Design Decisions:
    - "Completions today" is a HABIT_LOGS range query over day_window(now), so it
      goes through the same pushed-bound / fallback path as every list
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, status

from tracker.api.deps import (
    MAX_LIST_LIMIT, get_owner_id, get_record_store,
    get_owned_or_404, get_owned_or_403,
)
from tracker.core.errors import HabitTargetReachedError, StoreError, ErrorContext
from tracker.core.record_specs import HABITS, HABIT_LOGS
from tracker.core.timestamps import day_window
from tracker.infrastructure.record_store import SqlRecordStore
from tracker.schemas.habit import (
    HabitCreate, HabitUpdate, HabitResponse, HabitLogCreate, HabitLogResponse,
)
from tracker.services.range_query import RangeQueryResolver

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/habits", tags=["habits"])


@router.get("")
async def list_habits(
    active_only: bool = Query(True),
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    filters = {"is_active": True} if active_only else {}
    result = await RangeQueryResolver(store, HABITS).find(owner_id, filters=filters)
    return {
        "habits": [HabitResponse.model_validate(r) for r in result.records],
        "meta": result.meta(),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_habit(
    body: HabitCreate,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    now = datetime.now(timezone.utc)
    document = await store.insert(HABITS.collection, {
        "user_id": owner_id,
        **body.model_dump(),
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    })
    return {"habit": HabitResponse.model_validate(document)}


@router.put("/{habit_id}")
async def update_habit(
    habit_id: str,
    body: HabitUpdate,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    await get_owned_or_404(store, HABITS, habit_id, owner_id, "Habit")
    changes = body.model_dump(exclude_none=True)
    changes["updated_at"] = datetime.now(timezone.utc)
    document = await store.update(HABITS.collection, habit_id, changes)
    return {"habit": HabitResponse.model_validate(document)}


@router.delete("/{habit_id}")
async def delete_habit(
    habit_id: str,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    await get_owned_or_404(store, HABITS, habit_id, owner_id, "Habit")
    logs = await RangeQueryResolver(store, HABIT_LOGS).find(
        owner_id, filters={"habit_id": habit_id},
    )
    for log in logs.records:
        try:
            await store.delete(HABIT_LOGS.collection, log["id"])
        except StoreError as e:
            logger.warning(
                f"Failed to delete habit log {log['id']}, continuing: {e.message}",
                extra={"owner_id": owner_id, "error_code": e.code},
            )
    await store.delete(HABITS.collection, habit_id)
    return {"message": "Habit deleted successfully"}


@router.post("/{habit_id}/log", status_code=status.HTTP_201_CREATED)
async def log_habit(
    habit_id: str,
    body: HabitLogCreate,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    """Record one completion, refusing once today's target is met."""
    habit = await get_owned_or_404(store, HABITS, habit_id, owner_id, "Habit")
    now = datetime.now(timezone.utc)
    day_start, day_end = day_window(now)
    today = await RangeQueryResolver(store, HABIT_LOGS).find(
        owner_id, day_start, day_end, {"habit_id": habit_id},
    )
    if len(today.records) >= habit["target_count"]:
        raise HabitTargetReachedError(
            habit["target_count"],
            ErrorContext(owner_id=owner_id, record_kind=HABIT_LOGS.kind.value),
        )
    document = await store.insert(HABIT_LOGS.collection, {
        "habit_id": habit_id,
        "user_id": owner_id,
        "completed_at": now,
        "notes": body.notes,
        "created_at": now,
    })
    return {"habit_log": HabitLogResponse.model_validate(document)}


@router.get("/{habit_id}/logs")
async def list_habit_logs(
    habit_id: str,
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    limit: int | None = Query(None, ge=1, le=MAX_LIST_LIMIT),
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    await get_owned_or_404(store, HABITS, habit_id, owner_id, "Habit")
    result = await RangeQueryResolver(store, HABIT_LOGS).find(
        owner_id, start_date, end_date, {"habit_id": habit_id}, limit,
    )
    return {
        "habit_logs": [HabitLogResponse.model_validate(r) for r in result.records],
        "meta": result.meta(),
    }


@router.delete("/logs/{log_id}")
async def delete_habit_log(
    log_id: str,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    await get_owned_or_403(store, HABIT_LOGS, log_id, owner_id, "habit log")
    await store.delete(HABIT_LOGS.collection, log_id)
    return {"message": "Habit log deleted successfully"}
