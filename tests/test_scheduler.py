# tests/test_scheduler.py
from datetime import datetime, timedelta, timezone

import pytest

from ccp_tutor.errors import ValidationError
from ccp_tutor.models import ReviewItem
from ccp_tutor.scheduler import MAX_INTERVAL, due_items, next_interval, schedule_review

T = datetime(2025, 3, 10, 14, 0, tzinfo=timezone.utc)


def test_incorrect_resets_to_one_day():
    for confidence in ("guessed", "unsure", "confident"):
        assert next_interval(False, confidence, previous_interval=16) == 1


def test_guessed_and_unsure_are_two_days():
    assert next_interval(True, "guessed", previous_interval=16) == 2
    assert next_interval(True, "unsure", previous_interval=16) == 2


def test_confident_doubles():
    assert next_interval(True, "confident", previous_interval=4) == 8


def test_confident_caps_at_thirty():
    assert next_interval(True, "confident", previous_interval=16) == MAX_INTERVAL
    assert next_interval(True, "confident", previous_interval=30) == 30


def test_confidence_aliases():
    assert next_interval(True, "low", 8) == 2
    assert next_interval(True, "medium", 8) == 2
    assert next_interval(True, "high", 8) == 16


def test_unknown_confidence_rejected():
    with pytest.raises(ValidationError):
        next_interval(True, "certain", 1)


def test_interval_never_below_one():
    assert next_interval(True, "confident", previous_interval=0) == 1


def test_first_confident_review_is_two_days():
    queue = schedule_review({}, "Q1", True, "confident", T)
    assert queue["Q1"].interval == 2
    assert queue["Q1"].next_review_at == T + timedelta(days=2)


def test_second_confident_review_doubles_existing_interval():
    queue = schedule_review({}, "Q1", True, "confident", T)
    later = T + timedelta(days=2)
    queue = schedule_review(queue, "Q1", True, "confident", later)
    assert queue["Q1"].interval == 4
    assert queue["Q1"].next_review_at == later + timedelta(days=4)


def test_schedule_replaces_entry():
    queue = schedule_review({}, "Q1", True, "confident", T)
    queue = schedule_review(queue, "Q1", False, "confident", T)
    assert list(queue) == ["Q1"]
    assert queue["Q1"].interval == 1


def test_schedule_does_not_mutate_input():
    original = {"Q1": ReviewItem("Q1", T, 4)}
    schedule_review(original, "Q1", False, "guessed", T)
    assert original["Q1"].interval == 4


def test_interval_bounds_over_many_reviews():
    queue = {}
    now = T
    for i in range(12):
        queue = schedule_review(queue, "Q1", i % 5 != 4, "confident", now)
        assert 1 <= queue["Q1"].interval <= 30
        now += timedelta(days=queue["Q1"].interval)


def test_due_items_boundary():
    queue = schedule_review({}, "Q1", False, "guessed", T)
    assert due_items(queue, T) == []
    assert due_items(queue, T + timedelta(days=1)) == [queue["Q1"]]
    assert due_items(queue, T + timedelta(days=1, microseconds=1)) == [queue["Q1"]]


def test_due_items_filters_and_sorts():
    queue = {
        "Q3": ReviewItem("Q3", T - timedelta(hours=1), 1),
        "Q1": ReviewItem("Q1", T - timedelta(days=2), 2),
        "Q2": ReviewItem("Q2", T + timedelta(days=1), 1),
        "Q4": ReviewItem("Q4", T - timedelta(days=2), 4),
    }
    due = due_items(queue, T)
    assert [item.question_id for item in due] == ["Q1", "Q4", "Q3"]
