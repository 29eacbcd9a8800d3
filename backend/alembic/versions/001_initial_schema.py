"""Initial schema: expenses, habits, habit_logs, todos, time_entries.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Composite indexes mirror the Index() declarations on the models; the record
store only runs inequality/sort queries those indexes cover.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "expenses",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("amount", sa.Float, nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("tags", sa.JSON, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_expenses_user_date", "expenses", ["user_id", "date"])
    op.create_index(
        "ix_expenses_user_category_date", "expenses", ["user_id", "category", "date"],
    )

    op.create_table(
        "habits",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("frequency", sa.String(10), nullable=False, server_default="daily"),
        sa.Column("target_count", sa.Integer, nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_habits_user_created", "habits", ["user_id", "created_at"])
    op.create_index(
        "ix_habits_user_active_created", "habits", ["user_id", "is_active", "created_at"],
    )

    op.create_table(
        "habit_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("habit_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_habit_logs_user_completed", "habit_logs", ["user_id", "completed_at"],
    )
    op.create_index(
        "ix_habit_logs_user_habit_completed", "habit_logs",
        ["user_id", "habit_id", "completed_at"],
    )

    op.create_table(
        "todos",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("is_completed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_todos_user_created", "todos", ["user_id", "created_at"])

    op.create_table(
        "time_entries",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration", sa.Integer, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_productive", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index(
        "ix_time_entries_user_start", "time_entries", ["user_id", "start_time"],
    )
    op.create_index(
        "ix_time_entries_user_category_start", "time_entries",
        ["user_id", "category", "start_time"],
    )


def downgrade() -> None:
    op.drop_table("time_entries")
    op.drop_table("todos")
    op.drop_table("habit_logs")
    op.drop_table("habits")
    op.drop_table("expenses")
