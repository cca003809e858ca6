"""Daily activity log and study streak calculation."""
from dataclasses import replace
from datetime import date, timedelta

from ccp_tutor.models import DailyProgress

STREAK_THRESHOLD = 20        # questions per day for the day to count
STREAK_LOOKBACK_DAYS = 365
DAILY_PROGRESS_WINDOW = 30   # days kept in the rolling log


def record_daily_activity(daily_progress: list[DailyProgress], day: date) -> list[DailyProgress]:
    """Count one answered question on ``day`` and trim the log to the window.

    Returns a new list; the input is left untouched.
    """
    updated = []
    found = False
    for entry in daily_progress:
        if entry.date == day:
            entry = replace(entry, questions_answered=entry.questions_answered + 1)
            found = True
        updated.append(entry)
    if not found:
        updated.append(DailyProgress(date=day, questions_answered=1))
    return updated[-DAILY_PROGRESS_WINDOW:]


def compute_streak(
    daily_progress: list[DailyProgress],
    today: date,
    threshold: int = STREAK_THRESHOLD,
) -> int:
    """Number of consecutive qualifying days ending today or yesterday.

    A day qualifies when at least ``threshold`` questions were answered on it.
    Today is still in progress, so if it has not qualified yet the count starts
    from yesterday instead of dropping to zero.
    """
    counts = {entry.date: entry.questions_answered for entry in daily_progress}
    streak = 0
    day = today
    for _ in range(STREAK_LOOKBACK_DAYS):
        if counts.get(day, 0) >= threshold:
            streak += 1
        elif day != today:
            break
        day -= timedelta(days=1)
    return streak
