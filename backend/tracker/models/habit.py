"""Habit ORM: a recurring behaviour with a daily completion target.

Invariants:
    - target_count >= 1 completions per day
    - is_active is the equality filter used by the habit list
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Boolean, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from tracker.db.base import Base


class Habit(Base):
    """Habit entity."""
    __tablename__ = "habits"
    __table_args__ = (
        Index("ix_habits_user_created", "user_id", "created_at"),
        Index("ix_habits_user_active_created", "user_id", "is_active", "created_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    frequency: Mapped[str] = mapped_column(
        String(10), nullable=False, default="daily",
    )
    target_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
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
