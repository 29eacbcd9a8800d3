"""Time Rules: duration follows the span on time entry edits."""

from datetime import datetime, timedelta, timezone

import pytest

from tracker.core.errors import RecordValidationError
from tracker.core.time_rules import apply_span_change

START = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
STOPPED = {"start_time": START, "end_time": START + timedelta(hours=1), "duration": 60}
RUNNING = {"start_time": START, "end_time": None, "duration": None}


def test_other_changes_leave_duration_alone():
    assert apply_span_change(STOPPED, {"category": "gym"}) == {"category": "gym"}


def test_new_end_recomputes_duration():
    result = apply_span_change(STOPPED, {"end_time": START + timedelta(minutes=45, seconds=30)})
    assert result["duration"] == 45


def test_new_start_recomputes_against_stored_end():
    result = apply_span_change(STOPPED, {"start_time": START + timedelta(minutes=20)})
    assert result["duration"] == 40


def test_recomputed_duration_overrides_explicit_one():
    result = apply_span_change(STOPPED, {"end_time": START + timedelta(hours=2), "duration": 5})
    assert result["duration"] == 120


def test_running_entry_keeps_duration_unset():
    result = apply_span_change(RUNNING, {"start_time": START - timedelta(hours=1)})
    assert "duration" not in result


def test_end_before_stored_start_rejected():
    with pytest.raises(RecordValidationError) as exc_info:
        apply_span_change(STOPPED, {"end_time": START - timedelta(minutes=1)})
    assert exc_info.value.field == "end_time"
    assert exc_info.value.http_status == 400


def test_start_after_stored_end_rejected():
    with pytest.raises(RecordValidationError):
        apply_span_change(STOPPED, {"start_time": START + timedelta(hours=2)})


def test_changes_not_mutated():
    changes = {"end_time": START + timedelta(hours=3)}
    apply_span_change(STOPPED, changes)
    assert changes == {"end_time": START + timedelta(hours=3)}
