"""Expense Stats: pure aggregation over an already-reconciled expense list.

Invariants:
    - Inputs are expense documents (amount, category, date); no IO
    - daily_breakdown keys are UTC ISO dates (YYYY-MM-DD)
    - average_daily divides by the window length in whole days, rounded up;
      a window of zero or negative length averages to 0
"""

import math
from datetime import datetime
from typing import Any, Iterable, Mapping

from tracker.core.timestamps import ensure_utc

_SECONDS_PER_DAY = 24 * 60 * 60


def compute_expense_stats(
    expenses: Iterable[Mapping[str, Any]], start: datetime, end: datetime,
) -> dict:
    """Totals per category and per day for the window [start, end]."""
    total = 0.0
    by_category: dict[str, float] = {}
    by_day: dict[str, float] = {}

    for expense in expenses:
        amount = float(expense.get("amount") or 0)
        total += amount
        category = expense.get("category") or "uncategorized"
        by_category[category] = by_category.get(category, 0.0) + amount
        day = ensure_utc(expense["date"]).date().isoformat()
        by_day[day] = by_day.get(day, 0.0) + amount

    window = (ensure_utc(end) - ensure_utc(start)).total_seconds()
    days = math.ceil(window / _SECONDS_PER_DAY)

    return {
        "total_amount": total,
        "category_breakdown": by_category,
        "daily_breakdown": by_day,
        "average_daily": total / days if days > 0 else 0.0,
    }
