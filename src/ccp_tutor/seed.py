"""Seed the question bank with the bundled practice questions."""
from pathlib import Path

from ccp_tutor.importer import import_file
from ccp_tutor.questions import total_count

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the question bank already has questions."""
    return total_count(db_path) > 0


def seed_questions(db_path: str) -> int:
    """Insert the bundled questions from questions.json."""
    result = import_file(db_path, str(CONTENT_DIR / "questions.json"), source="seeded")
    return result["count"]


def seed_all(db_path: str) -> None:
    """Seed an empty bank; a bank that already has questions is left alone."""
    if is_seeded(db_path):
        return
    seed_questions(db_path)
