"""Todo Rules: completion bookkeeping applied to every todo update.

Invariants:
    - is_completed=True stamps completed_at (unless the caller supplied one)
    - is_completed=False clears completed_at
    - Updates without is_completed leave completed_at as the caller sent it
"""

from datetime import datetime


def apply_completion(changes: dict, now: datetime) -> dict:
    """Return a copy of changes with completed_at kept consistent. Pure."""
    result = dict(changes)
    if result.get("is_completed") is True and not result.get("completed_at"):
        result["completed_at"] = now
    elif result.get("is_completed") is False:
        result["completed_at"] = None
    return result
