"""HabitLog ORM: one completion of a habit.

Invariants:
    - Always belongs to a Habit (habit_id) and to the habit's owner (user_id)
    - completed_at is the range field; habit_id is the equality filter

Design Decisions:
    - user_id denormalized from the habit: owner-scoped queries need no join
    - No FK cascade: deleting a habit deletes its logs explicitly in the handler,
      the same way the document store required
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from tracker.db.base import Base


class HabitLog(Base):
    """Habit completion entity."""
    __tablename__ = "habit_logs"
    __table_args__ = (
        Index("ix_habit_logs_user_completed", "user_id", "completed_at"),
        Index(
            "ix_habit_logs_user_habit_completed",
            "user_id", "habit_id", "completed_at",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
    )
    habit_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
