"""Achievement badges and the rules that unlock them."""
from dataclasses import dataclass, replace

from ccp_tutor.errors import ValidationError
from ccp_tutor.models import LearnerProgress

CENTURY_QUESTIONS = 100
PERFECT_RUN = 10
STREAK_BADGE_DAYS = 7
EARLY_BIRD_BEFORE_HOUR = 8
NIGHT_OWL_FROM_HOUR = 22


@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    description: str
    icon: str


BADGES = {
    b.id: b
    for b in (
        Badge("first-exam", "First Steps", "First Full Exam Completed", "🎓"),
        Badge("century", "Century Club", "100 Questions Answered", "💯"),
        Badge("all-domains", "Well Rounded", "Practiced All 4 Domains", "🎯"),
        Badge("passing-score", "Passing Grade", "Scored 80%+ on an Exam", "✅"),
        Badge("perfect-10", "Perfect Ten", "10 Correct in a Row", "⭐"),
        Badge("early-bird", "Early Bird", "Studied Before 8 AM", "🌅"),
        Badge("night-owl", "Night Owl", "Studied After 10 PM", "🦉"),
        Badge("streak-7", "Week Warrior", "7 Day Streak", "🔥"),
        Badge("halfway", "Halfway There", "Seen 50% of Questions", "🏃"),
        Badge("coverage", "Completionist", "Seen All Questions", "🏆"),
    )
}


def _seen_percentage(progress: LearnerProgress, total_question_count: int) -> float:
    if total_question_count <= 0:
        return 0.0
    return len(progress.seen_question_ids) / total_question_count * 100


def evaluate_badges(
    prev_state: LearnerProgress,
    next_state: LearnerProgress,
    total_question_count: int,
    local_hour: int,
) -> set[str]:
    """Badges that ``next_state`` qualifies for and that were not already earned."""
    seen_pct = _seen_percentage(next_state, total_question_count)
    rules = {
        "century": next_state.questions_answered >= CENTURY_QUESTIONS,
        "all-domains": all(s.answered > 0 for s in next_state.domain_stats.values()),
        "perfect-10": next_state.consecutive_correct >= PERFECT_RUN,
        "streak-7": next_state.streak >= STREAK_BADGE_DAYS,
        "early-bird": local_hour < EARLY_BIRD_BEFORE_HOUR,
        "night-owl": local_hour >= NIGHT_OWL_FROM_HOUR,
        "halfway": total_question_count > 0 and seen_pct >= 50,
        "coverage": total_question_count > 0 and seen_pct >= 100,
    }
    already = prev_state.earned_badges | next_state.earned_badges
    return {badge_id for badge_id, qualified in rules.items() if qualified and badge_id not in already}


def award_badge(progress: LearnerProgress, badge_id: str) -> tuple[LearnerProgress, set[str]]:
    """Grant a badge outright. Returns the new record and ``{badge_id}`` if it is new."""
    if badge_id not in BADGES:
        raise ValidationError(f"Unknown badge: {badge_id!r}")
    if badge_id in progress.earned_badges:
        return progress, set()
    return replace(progress, earned_badges=progress.earned_badges | {badge_id}), {badge_id}


def sort_badges(badge_ids) -> list[str]:
    """Order badge ids the way the catalog lists them."""
    order = list(BADGES)
    return sorted(badge_ids, key=lambda b: order.index(b) if b in order else len(order))
