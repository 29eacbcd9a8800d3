"""Expense ORM: one spending record, ranged by its date.

Invariants:
    - user_id scopes every query (owner field)
    - date is the range field; category is the only equality filter
    - Composite indexes below are the ONLY inequality/sort shapes the record
      store will execute for this collection

Design Decisions:
    - amount as Float: amounts arrive as JSON numbers (no currency math here)
    - tags as JSON list: free-form labels, never filtered on
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Float, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from tracker.db.base import Base


class Expense(Base):
    """Expense entity."""
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_user_date", "user_id", "date"),
        Index("ix_expenses_user_category_date", "user_id", "category", "date"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
