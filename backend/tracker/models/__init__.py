"""ORM Models: SQLAlchemy declarative models, one table per record collection.

Invariants:
    - All models inherit from Base (db/base.py)
    - __tablename__ equals the RecordSpec.collection that queries it
    - Every collection is owner-scoped by user_id

Design Decisions:
    - One file per entity for locality
    - COLLECTIONS maps collection name -> model so the record store can stay generic
"""

from tracker.models.expense import Expense
from tracker.models.habit import Habit
from tracker.models.habit_log import HabitLog
from tracker.models.todo import Todo
from tracker.models.time_entry import TimeEntry

COLLECTIONS = {
    model.__tablename__: model
    for model in (Expense, Habit, HabitLog, Todo, TimeEntry)
}
