"""Todo Rules: completed_at follows is_completed."""

from datetime import datetime, timezone

from tracker.core.todo_rules import apply_completion

NOW = datetime(2024, 2, 2, 8, 30, tzinfo=timezone.utc)


def test_completing_stamps_now():
    assert apply_completion({"is_completed": True}, NOW) == {
        "is_completed": True, "completed_at": NOW,
    }


def test_completing_keeps_explicit_timestamp():
    earlier = datetime(2024, 2, 1, tzinfo=timezone.utc)
    result = apply_completion({"is_completed": True, "completed_at": earlier}, NOW)
    assert result["completed_at"] == earlier


def test_reopening_clears_timestamp():
    result = apply_completion({"is_completed": False, "completed_at": NOW}, NOW)
    assert result["completed_at"] is None


def test_other_updates_leave_completion_alone():
    assert apply_completion({"title": "New title"}, NOW) == {"title": "New title"}


def test_input_is_not_mutated():
    changes = {"is_completed": True}
    apply_completion(changes, NOW)
    assert changes == {"is_completed": True}
