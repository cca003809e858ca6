"""Readiness dashboard scoring and statistics."""
from ccp_tutor.models import DOMAINS, ExamAttempt, LearnerProgress


def get_readiness_label(score: float) -> str:
    if score >= 80:
        return "READY"
    elif score >= 65:
        return "LIKELY"
    elif score >= 50:
        return "NEEDS WORK"
    return "NOT READY"


def get_readiness_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 65:
        return "yellow"
    elif score >= 50:
        return "dark_orange"
    return "red"


def _accuracy(progress: LearnerProgress) -> float:
    if not progress.questions_answered:
        return 0.0
    return progress.correct_count / progress.questions_answered * 100


def _coverage(progress: LearnerProgress, total_questions: int) -> float:
    if total_questions <= 0:
        return 0.0
    return min(len(progress.seen_question_ids) / total_questions * 100, 100.0)


def _recent_exam_score(attempts: list[ExamAttempt], last: int = 3) -> float:
    if not attempts:
        return 0.0
    recent = attempts[-last:]
    return sum(a.score for a in recent) / len(recent)


def calc_readiness_score(
    progress: LearnerProgress, total_questions: int, attempts: list[ExamAttempt],
) -> float:
    accuracy = _accuracy(progress)
    exams = _recent_exam_score(attempts)
    coverage = _coverage(progress, total_questions)
    # Weighted: practice accuracy 50%, recent exams 30%, bank coverage 20%
    score = accuracy * 0.5 + exams * 0.3 + coverage * 0.2
    return round(score, 1)


def get_domain_scores(progress: LearnerProgress) -> list[dict]:
    results = []
    for name in DOMAINS:
        stats = progress.domain_stats[name]
        score = (stats.correct / stats.answered * 100) if stats.answered else 0.0
        results.append({
            "name": name,
            "answered": stats.answered,
            "correct": stats.correct,
            "score": round(score, 1),
            "label": get_readiness_label(score),
        })
    return results


def get_weakest_domain(progress: LearnerProgress, threshold: float = 70.0) -> dict | None:
    """Lowest-scoring practiced domain below ``threshold``, if any."""
    practiced = [d for d in get_domain_scores(progress) if d["answered"]]
    if not practiced:
        return None
    weakest = min(practiced, key=lambda d: d["score"])
    return weakest if weakest["score"] < threshold else None
