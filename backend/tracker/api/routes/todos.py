"""Todo Routes: CRUD, completion toggle, and filtered listing.

Invariants:
    - Completing a todo stamps completed_at; reopening clears it (core/todo_rules.py)
    - Missing todo is 404, another owner's todo is 403

Design Decisions:
    - Only (user_id, created_at) is indexed for todos: type / is_completed
      filters are expected to come back with meta.degraded=True
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, status

from tracker.api.deps import (
    MAX_LIST_LIMIT, get_owner_id, get_record_store, get_owned_or_403,
)
from tracker.core.domain_types import TodoType
from tracker.core.record_specs import TODOS
from tracker.core.todo_rules import apply_completion
from tracker.infrastructure.record_store import SqlRecordStore
from tracker.schemas.todo import TodoCreate, TodoUpdate, TodoResponse
from tracker.services.range_query import RangeQueryResolver

router = APIRouter(prefix="/api/v1/todos", tags=["todos"])


@router.get("")
async def list_todos(
    todo_type: TodoType | None = Query(None, alias="type"),
    is_completed: bool | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    limit: int | None = Query(None, ge=1, le=MAX_LIST_LIMIT),
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    filters = {
        "type": todo_type.value if todo_type else None,
        "is_completed": is_completed,
    }
    result = await RangeQueryResolver(store, TODOS).find(
        owner_id, start_date, end_date, filters, limit,
    )
    return {
        "todos": [TodoResponse.model_validate(r) for r in result.records],
        "meta": result.meta(),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_todo(
    body: TodoCreate,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    now = datetime.now(timezone.utc)
    document = await store.insert(TODOS.collection, {
        "user_id": owner_id,
        **body.model_dump(),
        "is_completed": False,
        "completed_at": None,
        "created_at": now,
        "updated_at": now,
    })
    return {"todo": TodoResponse.model_validate(document)}


@router.put("/{todo_id}")
async def update_todo(
    todo_id: str,
    body: TodoUpdate,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    await get_owned_or_403(store, TODOS, todo_id, owner_id, "todo")
    now = datetime.now(timezone.utc)
    changes = apply_completion(body.model_dump(exclude_none=True), now)
    changes["updated_at"] = now
    document = await store.update(TODOS.collection, todo_id, changes)
    return {"todo": TodoResponse.model_validate(document)}


@router.patch("/{todo_id}/toggle")
async def toggle_todo(
    todo_id: str,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    todo = await get_owned_or_403(store, TODOS, todo_id, owner_id, "todo")
    now = datetime.now(timezone.utc)
    changes = apply_completion({"is_completed": not todo["is_completed"]}, now)
    changes["updated_at"] = now
    document = await store.update(TODOS.collection, todo_id, changes)
    return {"todo": TodoResponse.model_validate(document)}


@router.delete("/{todo_id}")
async def delete_todo(
    todo_id: str,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    await get_owned_or_403(store, TODOS, todo_id, owner_id, "todo")
    await store.delete(TODOS.collection, todo_id)
    return {"message": "Todo deleted successfully"}
