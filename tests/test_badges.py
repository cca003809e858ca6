# tests/test_badges.py
from dataclasses import replace

import pytest

from ccp_tutor.badges import BADGES, award_badge, evaluate_badges, sort_badges
from ccp_tutor.errors import ValidationError
from ccp_tutor.models import DOMAINS, DomainStats, LearnerProgress

NOON = 12


def test_catalog_has_all_badges():
    assert set(BADGES) == {
        "first-exam", "century", "all-domains", "passing-score", "perfect-10",
        "early-bird", "night-owl", "streak-7", "halfway", "coverage",
    }


def test_fresh_state_earns_nothing_at_noon():
    state = LearnerProgress()
    assert evaluate_badges(state, state, 100, NOON) == set()


def test_century():
    nxt = replace(LearnerProgress(), questions_answered=100)
    assert "century" in evaluate_badges(LearnerProgress(), nxt, 0, NOON)


def test_all_domains_needs_every_domain():
    stats = {name: DomainStats(answered=1) for name in DOMAINS}
    assert "all-domains" in evaluate_badges(LearnerProgress(), replace(LearnerProgress(), domain_stats=stats), 0, NOON)
    stats[DOMAINS[0]] = DomainStats()
    assert "all-domains" not in evaluate_badges(LearnerProgress(), replace(LearnerProgress(), domain_stats=stats), 0, NOON)


def test_perfect_ten_and_streak():
    nxt = replace(LearnerProgress(), consecutive_correct=10, streak=7)
    assert evaluate_badges(LearnerProgress(), nxt, 0, NOON) == {"perfect-10", "streak-7"}


@pytest.mark.parametrize("hour,expected", [
    (0, {"early-bird"}), (7, {"early-bird"}), (8, set()), (21, set()), (22, {"night-owl"}), (23, {"night-owl"}),
])
def test_time_of_day_badges(hour, expected):
    assert evaluate_badges(LearnerProgress(), LearnerProgress(), 0, hour) == expected


def test_coverage_badges():
    half = replace(LearnerProgress(), seen_question_ids={"a", "b"})
    assert evaluate_badges(LearnerProgress(), half, 4, NOON) == {"halfway"}
    full = replace(LearnerProgress(), seen_question_ids={"a", "b", "c", "d"})
    assert evaluate_badges(LearnerProgress(), full, 4, NOON) == {"halfway", "coverage"}


def test_coverage_needs_question_count():
    seen = replace(LearnerProgress(), seen_question_ids={"a"})
    assert evaluate_badges(LearnerProgress(), seen, 0, NOON) == set()


def test_already_earned_badges_are_not_reemitted():
    prev = replace(LearnerProgress(), earned_badges={"century"})
    nxt = replace(prev, questions_answered=150)
    assert evaluate_badges(prev, nxt, 0, NOON) == set()


def test_evaluation_is_idempotent():
    prev = LearnerProgress()
    nxt = replace(prev, questions_answered=100, consecutive_correct=12)
    first = evaluate_badges(prev, nxt, 0, NOON)
    assert first == {"century", "perfect-10"}
    nxt = replace(nxt, earned_badges=nxt.earned_badges | first)
    assert evaluate_badges(prev, nxt, 0, NOON) == set()


def test_award_badge():
    progress, new = award_badge(LearnerProgress(), "first-exam")
    assert new == {"first-exam"}
    assert "first-exam" in progress.earned_badges
    again, new = award_badge(progress, "first-exam")
    assert new == set()
    assert again is progress


def test_award_unknown_badge():
    with pytest.raises(ValidationError):
        award_badge(LearnerProgress(), "legendary")


def test_sort_badges_follows_catalog():
    assert sort_badges({"coverage", "century", "first-exam"}) == ["first-exam", "century", "coverage"]
