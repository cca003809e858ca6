"""Import question bank files (JSON or YAML) into the database."""
import json
from pathlib import Path

import yaml
from loguru import logger

from ccp_tutor.db import get_connection
from ccp_tutor.errors import ValidationError
from ccp_tutor.models import Option, Question
from ccp_tutor.validation import validate_question

SUPPORTED_SUFFIXES = (".json", ".yaml", ".yml")


def _field(data: dict, name: str, camel: str, default=None):
    # Exported exam files use camelCase keys.
    if name in data:
        return data[name]
    return data.get(camel, default)


def _index(data: dict) -> int:
    try:
        return int(data.get("index", 0))
    except (TypeError, ValueError):
        raise ValidationError(f"Question {data.get('id')!r} has a non-integer index") from None


def read_bank_file(file_path: str) -> list[dict]:
    """Load the raw question list from a bank file.

    The file holds either a list of questions or ``{"questions": [...]}``.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValidationError(f"Unsupported question file type: {suffix or path.name}")
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValidationError(f"Cannot parse {path.name}: {e}") from e
    if isinstance(data, dict):
        data = data.get("questions")
    if not isinstance(data, list):
        raise ValidationError(f"{path.name} does not contain a list of questions")
    return data


def parse_question(data: dict, source: str = "imported") -> Question:
    """Build and validate a Question from one raw bank entry."""
    if not isinstance(data, dict):
        raise ValidationError(f"Question entry must be a mapping, got {type(data).__name__}")
    try:
        options = tuple(Option(id=str(o["id"]), text=str(o["text"])) for o in data.get("options") or [])
    except (KeyError, TypeError) as e:
        raise ValidationError(f"Question {data.get('id')!r} has a malformed option: {e}") from e
    correct = _field(data, "correct_option_ids", "correctOptionIds") or []
    if isinstance(correct, str):
        correct = [correct]
    question = Question(
        id=str(data.get("id", "")),
        exam_id=str(_field(data, "exam_id", "examId", "")),
        index=_index(data),
        prompt=str(data.get("prompt", "")),
        options=options,
        correct_option_ids=frozenset(str(c) for c in correct),
        multi_select=bool(_field(data, "multi_select", "multiSelect", len(correct) > 1)),
        domain=data.get("domain"),
        source=str(data.get("source") or source),
    )
    if not question.prompt.strip():
        raise ValidationError(f"Question {question.id!r} has an empty prompt")
    return validate_question(question)


def save_questions(db_path: str, questions: list[Question]) -> int:
    conn = get_connection(db_path)
    with conn:
        for q in questions:
            conn.execute(
                """INSERT OR REPLACE INTO questions
                (id, exam_id, question_index, domain, prompt, options, correct_option_ids, multi_select, source)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    q.id, q.exam_id, q.index, q.domain, q.prompt,
                    json.dumps([{"id": o.id, "text": o.text} for o in q.options]),
                    json.dumps(sorted(q.correct_option_ids)),
                    int(q.multi_select), q.source,
                ),
            )
    conn.close()
    return len(questions)


def import_file(db_path: str, file_path: str, source: str = "imported") -> dict:
    """Import every question in a bank file. Nothing is written if any entry is invalid."""
    raw = read_bank_file(file_path)
    questions = [parse_question(entry, source=source) for entry in raw]
    saved = save_questions(db_path, questions)
    logger.info(f"Imported {saved} questions from {Path(file_path).name}")
    domains = sorted({q.domain for q in questions})
    return {"filename": Path(file_path).name, "count": saved, "domains": domains}
