# tests/test_completion.py

import pytest

from core.completion import CompletionTracker


def test_mark_once_records_first_time(fixed_clock):
    tracker = CompletionTracker(fixed_clock)

    assert tracker.mark_once("S001")
    assert tracker.finished_at("S001") == "2025-01-01T09:00:00.000+00:00"
    assert "S001" in tracker
    assert len(tracker) == 1


def test_mark_once_is_idempotent(fixed_clock):
    tracker = CompletionTracker(fixed_clock)
    tracker.mark_once("S001")

    assert not tracker.mark_once("S001")
    assert tracker.finished_at("S001") == "2025-01-01T09:00:00.000+00:00"


def test_list_recent_newest_first(fixed_clock):
    tracker = CompletionTracker(fixed_clock)

    for student_id in ["S001", "S002", "S003"]:
        tracker.mark_once(student_id)

    assert tracker.list_recent(2) == [
        "2025-01-01T09:02:00.000+00:00",
        "2025-01-01T09:01:00.000+00:00",
    ]
    assert tracker.list_recent(0) == []


def test_forget(fixed_clock):
    tracker = CompletionTracker(fixed_clock)
    tracker.mark_once("S001")

    tracker.forget("S001")
    tracker.forget("S999")

    assert tracker.finished_at("S001") is None
    assert tracker.mark_once("S001")


def test_to_and_from_dict(fixed_clock):
    tracker = CompletionTracker(fixed_clock)
    tracker.mark_once("S001")

    restored = CompletionTracker.from_dict(tracker.to_dict())

    assert restored.records == tracker.records


def test_from_dict_rejects_non_string_timestamps():
    with pytest.raises(TypeError):
        CompletionTracker.from_dict({"S001": 12345})
