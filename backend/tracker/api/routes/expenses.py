"""Expense Routes: CRUD plus date-range listing and per-window stats.

Invariants:
    - Every read is owner-scoped through RangeQueryResolver (EXPENSES spec)
    - Another owner's expense is reported as 404
    - List responses carry meta.degraded when the index fallback served them

Design Decisions:
    - /stats reuses the same range query as the list: one code path for
      "expenses in a window", aggregation stays pure (core/expense_stats.py)
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query, status

from tracker.api.deps import (
    MAX_LIST_LIMIT, get_owner_id, get_record_store, get_owned_or_404,
)
from tracker.config import get_settings
from tracker.core.expense_stats import compute_expense_stats
from tracker.core.record_specs import EXPENSES
from tracker.infrastructure.record_store import SqlRecordStore
from tracker.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseResponse
from tracker.services.range_query import RangeQueryResolver

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/expenses", tags=["expenses"])


@router.get("")
async def list_expenses(
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    category: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=MAX_LIST_LIMIT),
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    """List expenses, newest first."""
    result = await RangeQueryResolver(store, EXPENSES).find(
        owner_id, start_date, end_date, {"category": category}, limit,
    )
    return {
        "expenses": [ExpenseResponse.model_validate(r) for r in result.records],
        "meta": result.meta(),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_expense(
    body: ExpenseCreate,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    now = datetime.now(timezone.utc)
    document = await store.insert(EXPENSES.collection, {
        "user_id": owner_id,
        "amount": body.amount,
        "category": body.category,
        "description": body.description,
        "date": body.date or now,
        "tags": body.tags,
        "created_at": now,
        "updated_at": now,
    })
    return {"expense": ExpenseResponse.model_validate(document)}


@router.get("/stats")
async def expense_stats(
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    """Totals for [start_date, end_date]; defaults to the last N days."""
    end = end_date or datetime.now(timezone.utc)
    start = start_date or end - timedelta(
        days=get_settings().expense_stats_default_days,
    )
    result = await RangeQueryResolver(store, EXPENSES).find(owner_id, start, end)
    return {
        "stats": compute_expense_stats(result.records, start, end),
        "meta": result.meta(),
    }


@router.put("/{expense_id}")
async def update_expense(
    expense_id: str,
    body: ExpenseUpdate,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    await get_owned_or_404(store, EXPENSES, expense_id, owner_id, "Expense")
    changes = body.model_dump(exclude_none=True)
    changes["updated_at"] = datetime.now(timezone.utc)
    document = await store.update(EXPENSES.collection, expense_id, changes)
    return {"expense": ExpenseResponse.model_validate(document)}


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: str,
    owner_id: str = Depends(get_owner_id),
    store: SqlRecordStore = Depends(get_record_store),
):
    await get_owned_or_404(store, EXPENSES, expense_id, owner_id, "Expense")
    await store.delete(EXPENSES.collection, expense_id)
    logger.info(f"Expense {expense_id} deleted", extra={"owner_id": owner_id})
    return {"message": "Expense deleted successfully"}
