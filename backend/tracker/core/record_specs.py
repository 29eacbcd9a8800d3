"""Record Specs: the per-type field mappings that specialize the range query engine.

Invariants:
    - Every record type is owner-scoped by user_id
    - equality_fields lists the ONLY filters a caller may pass for that type

Design Decisions:
    - Plain module constants: the engine is generic, each domain contributes one line
"""

from tracker.core.domain_types import RecordKind
from tracker.core.range_query import RecordSpec


EXPENSES = RecordSpec(
    kind=RecordKind.EXPENSE,
    collection="expenses",
    range_field="date",
    equality_fields=frozenset({"category"}),
)

HABITS = RecordSpec(
    kind=RecordKind.HABIT,
    collection="habits",
    range_field="created_at",
    equality_fields=frozenset({"is_active"}),
)

HABIT_LOGS = RecordSpec(
    kind=RecordKind.HABIT_LOG,
    collection="habit_logs",
    range_field="completed_at",
    equality_fields=frozenset({"habit_id"}),
)

TODOS = RecordSpec(
    kind=RecordKind.TODO,
    collection="todos",
    range_field="created_at",
    equality_fields=frozenset({"type", "is_completed"}),
)

TIME_ENTRIES = RecordSpec(
    kind=RecordKind.TIME_ENTRY,
    collection="time_entries",
    range_field="start_time",
    equality_fields=frozenset({"category", "is_active"}),
)

ALL_SPECS: tuple[RecordSpec, ...] = (
    EXPENSES, HABITS, HABIT_LOGS, TODOS, TIME_ENTRIES,
)
