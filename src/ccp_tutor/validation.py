"""Input checks applied before anything reaches the progress engine."""
from typing import Iterable, Optional

from ccp_tutor.errors import ValidationError
from ccp_tutor.models import DOMAINS, Question

CONFIDENCE_ALIASES = {
    "guessed": "guessed",
    "unsure": "unsure",
    "confident": "confident",
    "low": "guessed",
    "medium": "unsure",
    "high": "confident",
}


def validate_question_id(question_id) -> str:
    if not isinstance(question_id, str) or not question_id.strip():
        raise ValidationError(f"Invalid question id: {question_id!r}")
    return question_id


def validate_domain(domain) -> str:
    if domain not in DOMAINS:
        raise ValidationError(f"Unknown domain: {domain!r} (expected one of {', '.join(DOMAINS)})")
    return domain


def normalize_confidence(confidence) -> str:
    """Map a confidence label or alias (low/medium/high) to its canonical name."""
    key = confidence.strip().lower() if isinstance(confidence, str) else confidence
    try:
        return CONFIDENCE_ALIASES[key]
    except (KeyError, TypeError):
        raise ValidationError(f"Unknown confidence: {confidence!r}") from None


def validate_question(question: Question) -> Question:
    """Reject questions that could never be scored."""
    validate_question_id(question.id)
    validate_domain(question.domain)
    option_ids = [o.id for o in question.options]
    if len(option_ids) < 2:
        raise ValidationError(f"Question {question.id} needs at least two options")
    if len(set(option_ids)) != len(option_ids):
        raise ValidationError(f"Question {question.id} has duplicate option ids")
    if not question.correct_option_ids:
        raise ValidationError(f"Question {question.id} has no correct options")
    unknown = question.correct_option_ids - set(option_ids)
    if unknown:
        raise ValidationError(
            f"Question {question.id} marks unknown options correct: {', '.join(sorted(unknown))}"
        )
    if not question.multi_select and len(question.correct_option_ids) != 1:
        raise ValidationError(f"Single-select question {question.id} must have exactly one correct option")
    return question


def validate_answers(answers: dict, questions: Optional[Iterable[Question]] = None) -> dict[str, frozenset[str]]:
    """Normalize an exam answer sheet to question id -> frozenset of option ids.

    ``None`` is an empty selection. When ``questions`` is given, every answer
    must name one of them and pick only that question's options.
    """
    options_by_id = None
    if questions is not None:
        options_by_id = {q.id: {o.id for o in q.options} for q in questions}
    normalized = {}
    for question_id, selected in answers.items():
        validate_question_id(question_id)
        if selected is None:
            selected = ()
        elif isinstance(selected, str):
            selected = [selected]
        try:
            picked = frozenset(selected)
        except TypeError:
            raise ValidationError(f"Answer for {question_id} is not a selection: {selected!r}") from None
        if not all(isinstance(option_id, str) for option_id in picked):
            raise ValidationError(f"Answer for {question_id} has non-string option ids")
        if options_by_id is not None:
            if question_id not in options_by_id:
                raise ValidationError(f"Answer given for {question_id}, which is not in this exam")
            unknown = picked - options_by_id[question_id]
            if unknown:
                raise ValidationError(f"Answer for {question_id} picks unknown options: {', '.join(sorted(unknown))}")
        normalized[question_id] = picked
    return normalized
