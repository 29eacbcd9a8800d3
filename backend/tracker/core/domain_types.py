"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - OwnerId and RecordId wrap str (store-issued document ids, auth-issued owner ids)
    - EpochMillis is the only numeric time unit the query engine compares
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

OwnerId = NewType("OwnerId", str)
RecordId = NewType("RecordId", str)


# ─── Value Types ─────────────────────────────────────────────────

EpochMillis = NewType("EpochMillis", int)


# ─── Enums ───────────────────────────────────────────────────────

class RecordKind(str, Enum):
    """Record types served by the range query engine."""
    EXPENSE = "expense"
    HABIT = "habit"
    HABIT_LOG = "habit_log"
    TODO = "todo"
    TIME_ENTRY = "time_entry"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RangeOperator(str, Enum):
    """The only inequalities the store accepts, one per query."""
    GTE = ">="
    LTE = "<="


class PushedBound(str, Enum):
    """Which caller bound became the store-level inequality."""
    START = "start"
    END = "end"


class TodoType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class HabitFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
