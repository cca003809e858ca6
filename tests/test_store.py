# tests/test_store.py
import json
from datetime import datetime, timedelta, timezone

import pytest

from ccp_tutor.db import get_connection
from ccp_tutor.errors import StoreUnavailable
from ccp_tutor.models import ExamAttempt, LearnerProgress
from ccp_tutor.store import ProgressStore

NOW = datetime(2025, 3, 10, 14, 0, tzinfo=timezone.utc)


def _attempt(attempt_id, minutes=0, score=60):
    done = NOW + timedelta(minutes=minutes)
    return ExamAttempt(
        id=attempt_id, exam_id=f"mini-exam-{attempt_id}", started_at=NOW, completed_at=done,
        answers={"Q1": frozenset({"a"})}, score=score, total_questions=1,
    )


def test_load_missing_key_returns_default(tmp_db):
    assert ProgressStore(tmp_db).load("nobody") == LearnerProgress()


def test_save_replaces_record(tmp_db):
    store = ProgressStore(tmp_db)
    store.save("k", LearnerProgress(xp=5))
    store.save("k", LearnerProgress(xp=9))
    assert store.load("k").xp == 9
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM learner_progress").fetchone()[0] == 1
    conn.close()


def test_keys_are_independent(tmp_db):
    store = ProgressStore(tmp_db)
    store.save("alice", LearnerProgress(xp=5))
    assert store.load("bob").xp == 0
    store.delete("alice")
    assert store.load("alice") == LearnerProgress()


def test_unparseable_payload_raises(tmp_db):
    store = ProgressStore(tmp_db)
    conn = get_connection(tmp_db)
    with conn:
        conn.execute(
            "INSERT INTO learner_progress (learner_key, payload, updated_at) VALUES ('k', '{oops', 'x')"
        )
    conn.close()
    with pytest.raises(StoreUnavailable):
        store.load("k")


def test_unopenable_database(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    with pytest.raises(StoreUnavailable):
        ProgressStore(str(blocker / "tutor.db"))


def test_exam_attempts_listed_oldest_first(tmp_db):
    store = ProgressStore(tmp_db)
    store.save_exam_attempt("k", _attempt("late", minutes=30))
    store.save_exam_attempt("k", _attempt("early", minutes=5))
    store.save_exam_attempt("other", _attempt("theirs"))
    assert [a.id for a in store.list_exam_attempts("k")] == ["early", "late"]


def test_exam_attempt_saved_with_progress(tmp_db):
    store = ProgressStore(tmp_db)
    store.save_exam_attempt("k", _attempt("one"), LearnerProgress(earned_badges={"first-exam"}))
    assert store.load("k").earned_badges == {"first-exam"}


def test_duplicate_attempt_rolls_back_progress(tmp_db):
    store = ProgressStore(tmp_db)
    store.save_exam_attempt("k", _attempt("one"))
    with pytest.raises(StoreUnavailable):
        store.save_exam_attempt("k", _attempt("one"), LearnerProgress(xp=50))
    assert store.load("k").xp == 0
    assert len(store.list_exam_attempts("k")) == 1


def test_payload_is_plain_json(tmp_db):
    store = ProgressStore(tmp_db)
    store.save("k", LearnerProgress(seen_question_ids={"b", "a"}))
    conn = get_connection(tmp_db)
    payload = json.loads(conn.execute("SELECT payload FROM learner_progress").fetchone()[0])
    conn.close()
    assert payload["seen_question_ids"] == ["a", "b"]
