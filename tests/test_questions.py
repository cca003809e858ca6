# tests/test_questions.py
import pytest

from ccp_tutor.db import init_db
from ccp_tutor.questions import get_domain_counts, get_questions_by_ids, get_random_questions, total_count
from ccp_tutor.seed import seed_all


@pytest.fixture
def seeded_db(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    return tmp_db


def test_total_count(seeded_db):
    assert total_count(seeded_db) == 16


def test_get_questions_by_ids_keeps_order(seeded_db):
    qs = get_questions_by_ids(seeded_db, ["sample-12", "nope", "sample-1"])
    assert [q.id for q in qs] == ["sample-12", "sample-1"]
    assert get_questions_by_ids(seeded_db, []) == []


def test_random_questions_limit_and_domain(seeded_db):
    qs = get_random_questions(seeded_db, count=3, domain="Billing & Pricing")
    assert len(qs) == 3
    assert all(q.domain == "Billing & Pricing" for q in qs)
    assert len(get_random_questions(seeded_db, count=50)) == 16


def test_random_questions_unseen_and_incorrect(seeded_db):
    seen = {f"sample-{i}" for i in range(1, 15)}
    unseen = get_random_questions(seeded_db, count=10, unseen_from=seen)
    assert {q.id for q in unseen} == {"sample-15", "sample-16"}
    wrong = get_random_questions(seeded_db, count=10, incorrect_from={"sample-2"})
    assert [q.id for q in wrong] == ["sample-2"]


def test_domain_counts(seeded_db):
    assert get_domain_counts(seeded_db) == {
        "Cloud Concepts": 4, "Security & Compliance": 4, "Technology": 4, "Billing & Pricing": 4,
    }


def test_stored_question_round_trip(seeded_db):
    (q,) = get_questions_by_ids(seeded_db, ["sample-3"])
    assert q.multi_select
    assert q.correct_option_ids == frozenset({"a", "c"})
    assert len(q.options) == 5
    assert q.domain == "Cloud Concepts"
