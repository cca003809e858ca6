"""Confidence-based spaced repetition for the review queue."""
from datetime import datetime, timedelta

from loguru import logger

from ccp_tutor.models import ReviewItem
from ccp_tutor.validation import normalize_confidence

MIN_INTERVAL = 1
MAX_INTERVAL = 30
INCORRECT_INTERVAL = 1

# Correct answers: confidence -> new interval given the previous one.
INTERVAL_POLICY = {
    "guessed": lambda previous: 2,
    "unsure": lambda previous: 2,
    "confident": lambda previous: previous * 2,
}


def next_interval(was_correct: bool, confidence: str, previous_interval: int = MIN_INTERVAL) -> int:
    """Calculate the next review interval in days.

    Args:
        was_correct: Whether the learner answered the question correctly
        confidence: guessed, unsure or confident (or low, medium, high)
        previous_interval: Interval of the question's current queue entry, or 1

    Returns:
        Interval in days, between 1 and 30.
    """
    if not was_correct:
        interval = INCORRECT_INTERVAL
    else:
        interval = INTERVAL_POLICY[normalize_confidence(confidence)](previous_interval)
    return max(MIN_INTERVAL, min(interval, MAX_INTERVAL))


def schedule_review(
    queue: dict[str, ReviewItem],
    question_id: str,
    was_correct: bool,
    confidence: str,
    now: datetime,
) -> dict[str, ReviewItem]:
    """Return a new queue with ``question_id`` rescheduled.

    A question with no entry is scheduled as if its previous interval was 1.
    """
    existing = queue.get(question_id)
    previous = existing.interval if existing else MIN_INTERVAL
    interval = next_interval(was_correct, confidence, previous)
    updated = {qid: item for qid, item in queue.items() if qid != question_id}
    updated[question_id] = ReviewItem(
        question_id=question_id,
        next_review_at=now + timedelta(days=interval),
        interval=interval,
    )
    logger.debug(f"Scheduled {question_id}: {previous}d -> {interval}d ({confidence}, correct={was_correct})")
    return updated


def due_items(queue: dict[str, ReviewItem], now: datetime) -> list[ReviewItem]:
    """Items whose review time has come, oldest first."""
    due = [item for item in queue.values() if item.next_review_at <= now]
    return sorted(due, key=lambda item: (item.next_review_at, item.question_id))
