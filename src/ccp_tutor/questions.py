"""Question bank queries."""
import json
import sqlite3
from typing import Iterable, Optional

from ccp_tutor.db import get_connection
from ccp_tutor.models import Option, Question


def row_to_question(row: sqlite3.Row) -> Question:
    return Question(
        id=row["id"],
        exam_id=row["exam_id"],
        index=row["question_index"],
        prompt=row["prompt"],
        options=tuple(Option(id=o["id"], text=o["text"]) for o in json.loads(row["options"])),
        correct_option_ids=frozenset(json.loads(row["correct_option_ids"])),
        multi_select=bool(row["multi_select"]),
        domain=row["domain"],
        source=row["source"] or "",
    )


def total_count(db_path: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM questions").fetchone()[0]
    conn.close()
    return count


def get_questions_by_ids(db_path: str, question_ids: Iterable[str]) -> list[Question]:
    """Questions for the given ids, in the order given; unknown ids are skipped."""
    ids = list(question_ids)
    if not ids:
        return []
    conn = get_connection(db_path)
    placeholders = ",".join("?" for _ in ids)
    rows = conn.execute(f"SELECT * FROM questions WHERE id IN ({placeholders})", ids).fetchall()
    conn.close()
    by_id = {r["id"]: row_to_question(r) for r in rows}
    return [by_id[qid] for qid in ids if qid in by_id]


def get_random_questions(
    db_path: str,
    count: int = 10,
    domain: Optional[str] = None,
    unseen_from: Optional[set[str]] = None,
    incorrect_from: Optional[set[str]] = None,
) -> list[Question]:
    """Random questions, filtered by domain, by not being in ``unseen_from``
    (the learner's seen ids), or by being in ``incorrect_from``."""
    conn = get_connection(db_path)
    if domain is None:
        rows = conn.execute("SELECT * FROM questions ORDER BY RANDOM()").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM questions WHERE domain = ? ORDER BY RANDOM()", (domain,)
        ).fetchall()
    conn.close()
    if unseen_from is not None:
        rows = [r for r in rows if r["id"] not in unseen_from]
    if incorrect_from is not None:
        rows = [r for r in rows if r["id"] in incorrect_from]
    return [row_to_question(r) for r in rows[:count]]


def get_domain_counts(db_path: str) -> dict[str, int]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT domain, COUNT(*) AS total FROM questions GROUP BY domain").fetchall()
    conn.close()
    return {r["domain"]: r["total"] for r in rows}
