"""Data classes for learner progress, questions and exam attempts."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

DOMAINS = (
    "Cloud Concepts",
    "Security & Compliance",
    "Technology",
    "Billing & Pricing",
)

XP_PER_LEVEL = 100


def level_for_xp(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 instant; naive values are taken as device-local time."""
    instant = datetime.fromisoformat(value)
    if instant.tzinfo is None:
        instant = instant.astimezone()
    return instant


@dataclass
class DomainStats:
    answered: int = 0
    correct: int = 0


@dataclass
class DailyProgress:
    date: date
    questions_answered: int = 0


@dataclass
class ReviewItem:
    question_id: str
    next_review_at: datetime
    interval: int = 1

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "next_review_at": self.next_review_at.isoformat(),
            "interval": self.interval,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReviewItem":
        return cls(
            question_id=str(data["question_id"]),
            next_review_at=parse_instant(data["next_review_at"]),
            interval=int(data.get("interval", 1)),
        )


def _default_domain_stats() -> dict[str, DomainStats]:
    return {name: DomainStats() for name in DOMAINS}


@dataclass
class LearnerProgress:
    """The single progress record kept per learner."""

    questions_answered: int = 0
    correct_count: int = 0
    domain_stats: dict[str, DomainStats] = field(default_factory=_default_domain_stats)
    streak: int = 0
    last_study_date: Optional[date] = None
    xp: int = 0
    level: int = 1
    seen_question_ids: set[str] = field(default_factory=set)
    incorrect_question_ids: set[str] = field(default_factory=set)
    review_queue: dict[str, ReviewItem] = field(default_factory=dict)
    earned_badges: set[str] = field(default_factory=set)
    consecutive_correct: int = 0
    daily_progress: list[DailyProgress] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to a JSON-ready dict with stable field names."""
        return {
            "questions_answered": self.questions_answered,
            "correct_count": self.correct_count,
            "domain_stats": {
                name: {"answered": s.answered, "correct": s.correct}
                for name, s in self.domain_stats.items()
            },
            "streak": self.streak,
            "last_study_date": self.last_study_date.isoformat() if self.last_study_date else None,
            "xp": self.xp,
            "level": self.level,
            "seen_question_ids": sorted(self.seen_question_ids),
            "incorrect_question_ids": sorted(self.incorrect_question_ids),
            "review_queue": [
                self.review_queue[qid].to_dict() for qid in sorted(self.review_queue)
            ],
            "earned_badges": sorted(self.earned_badges),
            "consecutive_correct": self.consecutive_correct,
            "daily_progress": [
                {"date": d.date.isoformat(), "questions_answered": d.questions_answered}
                for d in self.daily_progress
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LearnerProgress":
        """Build from a stored dict. Missing fields fall back to defaults."""
        domain_stats = _default_domain_stats()
        for name, stats in (data.get("domain_stats") or {}).items():
            if name in domain_stats:
                domain_stats[name] = DomainStats(
                    answered=int(stats.get("answered", 0)),
                    correct=int(stats.get("correct", 0)),
                )
        review_queue = {}
        for raw in data.get("review_queue") or []:
            item = ReviewItem.from_dict(raw)
            review_queue[item.question_id] = item
        last_study = data.get("last_study_date")
        xp = int(data.get("xp", 0))
        return cls(
            questions_answered=int(data.get("questions_answered", 0)),
            correct_count=int(data.get("correct_count", 0)),
            domain_stats=domain_stats,
            streak=int(data.get("streak", 0)),
            last_study_date=date.fromisoformat(last_study) if last_study else None,
            xp=xp,
            level=int(data.get("level", level_for_xp(xp))),
            seen_question_ids=set(data.get("seen_question_ids") or []),
            incorrect_question_ids=set(data.get("incorrect_question_ids") or []),
            review_queue=review_queue,
            earned_badges=set(data.get("earned_badges") or []),
            consecutive_correct=int(data.get("consecutive_correct", 0)),
            daily_progress=[
                DailyProgress(
                    date=date.fromisoformat(d["date"]),
                    questions_answered=int(d.get("questions_answered", 0)),
                )
                for d in data.get("daily_progress") or []
            ],
        )


@dataclass(frozen=True)
class Option:
    id: str
    text: str


@dataclass(frozen=True)
class Question:
    id: str
    prompt: str
    options: tuple[Option, ...]
    correct_option_ids: frozenset[str]
    domain: str
    exam_id: str = ""
    index: int = 0
    multi_select: bool = False
    source: str = "seeded"


@dataclass
class DomainResult:
    correct: int = 0
    total: int = 0


@dataclass
class ExamResult:
    correct: int
    total: int
    percentage: int
    domain_breakdown: dict[str, DomainResult]


@dataclass(frozen=True)
class ExamAttempt:
    id: str
    exam_id: str
    started_at: datetime
    completed_at: datetime
    answers: dict[str, frozenset[str]]
    score: int
    total_questions: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "exam_id": self.exam_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "answers": {qid: sorted(opts) for qid, opts in self.answers.items()},
            "score": self.score,
            "total_questions": self.total_questions,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExamAttempt":
        return cls(
            id=data["id"],
            exam_id=data["exam_id"],
            started_at=parse_instant(data["started_at"]),
            completed_at=parse_instant(data["completed_at"]),
            answers={qid: frozenset(opts) for qid, opts in (data.get("answers") or {}).items()},
            score=int(data["score"]),
            total_questions=int(data["total_questions"]),
        )
