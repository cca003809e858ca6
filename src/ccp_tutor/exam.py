"""Exam simulation: configurations, scoring and attempt records."""
import math
import uuid
from dataclasses import dataclass
from datetime import datetime

from ccp_tutor.models import DOMAINS, DomainResult, ExamAttempt, ExamResult, Question


@dataclass(frozen=True)
class ExamConfig:
    type: str
    question_count: int
    time_minutes: int


EXAM_CONFIGS = {
    "full": ExamConfig("full", question_count=65, time_minutes=90),
    "mini": ExamConfig("mini", question_count=20, time_minutes=25),
}

PASSING_SCORE = 70
PASSING_BADGE_SCORE = 80


def is_answer_correct(question: Question, selected) -> bool:
    """True only when the selection is exactly the set of correct options."""
    return frozenset(selected or ()) == question.correct_option_ids


def aggregate_exam_attempt(exam_questions: list[Question], user_answers: dict) -> ExamResult:
    """Score an exam. No partial credit; unanswered questions count as wrong."""
    breakdown = {name: DomainResult() for name in DOMAINS}
    correct = 0
    for question in exam_questions:
        domain = breakdown.setdefault(question.domain, DomainResult())
        domain.total += 1
        if is_answer_correct(question, user_answers.get(question.id)):
            correct += 1
            domain.correct += 1
    total = len(exam_questions)
    percentage = math.floor(correct * 100 / total + 0.5) if total else 0
    return ExamResult(correct=correct, total=total, percentage=percentage, domain_breakdown=breakdown)


def incorrect_questions(exam_questions: list[Question], user_answers: dict) -> list[Question]:
    return [q for q in exam_questions if not is_answer_correct(q, user_answers.get(q.id))]


def build_exam_attempt(
    exam_type: str,
    exam_questions: list[Question],
    user_answers: dict[str, frozenset[str]],
    started_at: datetime,
    completed_at: datetime,
) -> tuple[ExamAttempt, ExamResult]:
    result = aggregate_exam_attempt(exam_questions, user_answers)
    attempt = ExamAttempt(
        id=str(uuid.uuid4()),
        exam_id=f"{exam_type}-exam-{int(completed_at.timestamp() * 1000)}",
        started_at=started_at,
        completed_at=completed_at,
        answers=dict(user_answers),
        score=result.percentage,
        total_questions=result.total,
    )
    return attempt, result


def is_passing(score: int) -> bool:
    return score >= PASSING_SCORE
