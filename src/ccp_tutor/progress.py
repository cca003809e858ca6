"""Learner progress engine.

The pure functions here turn one answer event into the next progress record.
``ProgressEngine`` wires them to a store, a clock and the question bank and is
the only thing that writes progress.
"""
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from ccp_tutor.badges import award_badge, evaluate_badges
from ccp_tutor.clock import Clock, SystemClock
from ccp_tutor.exam import EXAM_CONFIGS, PASSING_BADGE_SCORE, build_exam_attempt
from ccp_tutor.errors import ValidationError
from ccp_tutor.models import (
    DomainStats, ExamAttempt, ExamResult, LearnerProgress, Question, ReviewItem,
    XP_PER_LEVEL, level_for_xp,
)
from ccp_tutor.scheduler import MAX_INTERVAL, MIN_INTERVAL, due_items, schedule_review
from ccp_tutor.store import ProgressStore
from ccp_tutor.streak import DAILY_PROGRESS_WINDOW, STREAK_THRESHOLD, compute_streak, record_daily_activity
from ccp_tutor.validation import (
    normalize_confidence, validate_answers, validate_domain, validate_question, validate_question_id,
)

XP_PER_ANSWER = 1
XP_CORRECT_BONUS = 1
XP_REVIEW_BONUS = 2


def xp_for_answer(is_correct: bool, is_review_bonus: bool) -> int:
    xp = XP_PER_ANSWER
    if is_correct:
        xp += XP_CORRECT_BONUS
    if is_review_bonus:
        xp += XP_REVIEW_BONUS
    return xp


def record_answer(
    state: LearnerProgress,
    question_id: str,
    is_correct: bool,
    domain: str,
    is_review_bonus: bool,
    now: datetime,
    total_question_count: int = 0,
    streak_threshold: int = STREAK_THRESHOLD,
    local_hour: Optional[int] = None,
) -> tuple[LearnerProgress, set[str]]:
    """Apply one answer to ``state``.

    ``now`` is the learner's local time; the study day is taken from it, and so
    is the badge hour unless ``local_hour`` is given. Inputs are assumed valid.
    Returns the new record and the badges this answer unlocked.
    """
    today = now.date()
    xp = state.xp + xp_for_answer(is_correct, is_review_bonus)

    if is_correct:
        incorrect_ids = state.incorrect_question_ids - {question_id}
    else:
        incorrect_ids = state.incorrect_question_ids | {question_id}

    daily = record_daily_activity(state.daily_progress, today)
    stats = state.domain_stats[domain]
    domain_stats = dict(state.domain_stats)
    domain_stats[domain] = DomainStats(
        answered=stats.answered + 1,
        correct=stats.correct + (1 if is_correct else 0),
    )

    next_state = replace(
        state,
        questions_answered=state.questions_answered + 1,
        correct_count=state.correct_count + (1 if is_correct else 0),
        domain_stats=domain_stats,
        streak=compute_streak(daily, today, streak_threshold),
        last_study_date=today,
        xp=xp,
        level=level_for_xp(xp),
        seen_question_ids=state.seen_question_ids | {question_id},
        incorrect_question_ids=incorrect_ids,
        consecutive_correct=state.consecutive_correct + 1 if is_correct else 0,
        daily_progress=daily,
    )
    hour = now.hour if local_hour is None else local_hour
    new_badges = evaluate_badges(state, next_state, total_question_count, hour)
    if new_badges:
        next_state = replace(next_state, earned_badges=state.earned_badges | new_badges)
    return next_state, new_badges


def repair_progress(progress: LearnerProgress) -> tuple[LearnerProgress, list[str]]:
    """Clamp a loaded record back into a consistent shape.

    Returns the repaired record and a description of every fix applied.
    """
    anomalies = []

    def non_negative(name, value):
        if value < 0:
            anomalies.append(f"{name} was negative ({value})")
            return 0
        return value

    domain_stats = {}
    for name, stats in progress.domain_stats.items():
        answered = non_negative(f"{name} answered", stats.answered)
        correct = non_negative(f"{name} correct", stats.correct)
        if correct > answered:
            anomalies.append(f"{name} correct ({correct}) exceeded answered ({answered})")
            correct = answered
        domain_stats[name] = DomainStats(answered=answered, correct=correct)

    answered = sum(s.answered for s in domain_stats.values())
    correct = sum(s.correct for s in domain_stats.values())
    if progress.questions_answered != answered:
        anomalies.append(f"questions_answered {progress.questions_answered} != domain total {answered}")
    if progress.correct_count != correct:
        anomalies.append(f"correct_count {progress.correct_count} != domain total {correct}")

    xp = non_negative("xp", progress.xp)
    level = level_for_xp(xp)
    if progress.level != level:
        anomalies.append(f"level {progress.level} does not match xp {xp}")

    review_queue = {}
    for qid, item in progress.review_queue.items():
        interval = max(MIN_INTERVAL, min(item.interval, MAX_INTERVAL))
        if interval != item.interval:
            anomalies.append(f"review interval for {qid} out of range ({item.interval})")
        review_queue[qid] = replace(item, question_id=qid, interval=interval)

    by_date = {}
    for entry in progress.daily_progress:
        if entry.date in by_date:
            anomalies.append(f"duplicate daily progress entry for {entry.date}")
        by_date[entry.date] = replace(
            entry, questions_answered=non_negative(f"daily count {entry.date}", entry.questions_answered)
        )
    daily = sorted(by_date.values(), key=lambda d: d.date)[-DAILY_PROGRESS_WINDOW:]

    repaired = replace(
        progress,
        questions_answered=answered,
        correct_count=correct,
        domain_stats=domain_stats,
        streak=non_negative("streak", progress.streak),
        xp=xp,
        level=level,
        review_queue=review_queue,
        consecutive_correct=non_negative("consecutive_correct", progress.consecutive_correct),
        daily_progress=daily,
    )
    return repaired, anomalies


def get_stats(progress: LearnerProgress) -> dict:
    accuracy = (
        progress.correct_count / progress.questions_answered * 100
        if progress.questions_answered else 0.0
    )
    return {
        "questions_answered": progress.questions_answered,
        "correct_count": progress.correct_count,
        "accuracy": round(accuracy, 1),
        "streak": progress.streak,
        "xp": progress.xp,
        "level": progress.level,
        "xp_in_current_level": progress.xp % XP_PER_LEVEL,
        "xp_for_next_level": XP_PER_LEVEL,
        "seen": len(progress.seen_question_ids),
        "incorrect": len(progress.incorrect_question_ids),
        "badges": len(progress.earned_badges),
    }


class ProgressEngine:
    """Serialized read-modify-write access to one learner's progress.

    Every mutation loads the latest stored record, builds a complete new one
    and saves it in one write, all under a single lock. If any step fails the
    stored record is left as it was.
    """

    def __init__(
        self,
        store: ProgressStore,
        clock: Optional[Clock] = None,
        question_count: Optional[Callable[[], int]] = None,
        learner_key: str = "default-learner",
        streak_threshold: int = STREAK_THRESHOLD,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.question_count = question_count or (lambda: 0)
        self.learner_key = learner_key
        self.streak_threshold = streak_threshold
        self._lock = threading.Lock()

    def _load(self) -> LearnerProgress:
        progress = self.store.load(self.learner_key)
        repaired, anomalies = repair_progress(progress)
        for anomaly in anomalies:
            logger.warning(f"Repaired progress for {self.learner_key}: {anomaly}")
        # The stored streak is as of the last answer; idle days since then count against it.
        streak = compute_streak(repaired.daily_progress, self.clock.today(), self.streak_threshold)
        if streak != repaired.streak:
            logger.debug(f"Streak for {self.learner_key} is {streak} today (stored {repaired.streak})")
            repaired = replace(repaired, streak=streak)
        return repaired

    def load(self) -> LearnerProgress:
        with self._lock:
            return self._load()

    def record_answer(
        self, question_id: str, is_correct: bool, domain: str, is_review_bonus: bool = False,
    ) -> tuple[LearnerProgress, set[str]]:
        validate_question_id(question_id)
        validate_domain(domain)
        total = self.question_count()
        with self._lock:
            current = self._load()
            progress, new_badges = record_answer(
                current, question_id, bool(is_correct), domain, bool(is_review_bonus),
                self.clock.now(), total, self.streak_threshold, self.clock.local_hour(),
            )
            self.store.save(self.learner_key, progress)
        logger.debug(
            f"Answer {question_id} ({domain}) correct={is_correct}: xp={progress.xp} streak={progress.streak}"
        )
        if new_badges:
            logger.info(f"Badges earned: {', '.join(sorted(new_badges))}")
        return progress, new_badges

    def schedule_review(self, question_id: str, was_correct: bool, confidence: str) -> ReviewItem:
        validate_question_id(question_id)
        confidence = normalize_confidence(confidence)
        with self._lock:
            current = self._load()
            queue = schedule_review(
                current.review_queue, question_id, bool(was_correct), confidence, self.clock.now()
            )
            self.store.save(self.learner_key, replace(current, review_queue=queue))
        return queue[question_id]

    def due_items(self) -> list[ReviewItem]:
        with self._lock:
            snapshot = self._load()
        return due_items(snapshot.review_queue, self.clock.now())

    def award_badge(self, badge_id: str) -> set[str]:
        with self._lock:
            current = self._load()
            progress, new_badges = award_badge(current, badge_id)
            if new_badges:
                self.store.save(self.learner_key, progress)
        return new_badges

    def complete_exam(
        self,
        exam_type: str,
        questions: list[Question],
        answers: dict,
        started_at: datetime,
    ) -> tuple[ExamAttempt, ExamResult, set[str]]:
        """Score and store a finished exam, awarding the exam badges it earns."""
        if exam_type not in EXAM_CONFIGS:
            raise ValidationError(f"Unknown exam type: {exam_type!r}")
        if not questions:
            raise ValidationError("An exam needs at least one question")
        for question in questions:
            validate_question(question)
        answers = validate_answers(answers, questions)
        attempt, result = build_exam_attempt(exam_type, questions, answers, started_at, self.clock.now())

        with self._lock:
            current = self._load()
            progress, new_badges = current, set()
            if exam_type == "full":
                progress, earned = award_badge(progress, "first-exam")
                new_badges |= earned
            if attempt.score >= PASSING_BADGE_SCORE:
                progress, earned = award_badge(progress, "passing-score")
                new_badges |= earned
            self.store.save_exam_attempt(self.learner_key, attempt, progress if new_badges else None)
        logger.info(f"Exam {attempt.exam_id}: {result.correct}/{result.total} ({result.percentage}%)")
        return attempt, result, new_badges

    def exam_history(self) -> list[ExamAttempt]:
        return self.store.list_exam_attempts(self.learner_key)

    def get_stats(self) -> dict:
        return get_stats(self.load())

    def reset_progress(self) -> LearnerProgress:
        """Drop the stored record; exam history is kept."""
        with self._lock:
            self.store.delete(self.learner_key)
        logger.info(f"Progress reset for {self.learner_key}")
        return LearnerProgress()
