"""SQLite persistence for the learner progress record and exam attempts.

Each learner has one row in ``learner_progress`` holding the whole record as
JSON. Saving replaces the row in a single statement, so readers see either the
old record or the new one, never a mix.
"""
import json
import sqlite3
from datetime import datetime
from typing import Optional

from loguru import logger

from ccp_tutor.db import get_connection, init_db
from ccp_tutor.errors import StoreUnavailable
from ccp_tutor.models import ExamAttempt, LearnerProgress

# Raised by json/fromisoformat/int() on a record that no longer parses.
_DECODE_ERRORS = (json.JSONDecodeError, ValueError, TypeError, KeyError, AttributeError)


class ProgressStore:
    def __init__(self, db_path: str):
        self.db_path = db_path
        try:
            init_db(db_path)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailable(f"Cannot open progress database {db_path}: {e}") from e

    def load(self, key: str) -> LearnerProgress:
        """Return the stored record for ``key``, or a fresh default one."""
        try:
            conn = get_connection(self.db_path)
            try:
                row = conn.execute(
                    "SELECT payload FROM learner_progress WHERE learner_key = ?", (key,)
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to load progress for {key}: {e}")
            raise StoreUnavailable(f"Cannot load progress for {key}: {e}") from e
        if row is None:
            return LearnerProgress()
        try:
            return LearnerProgress.from_dict(json.loads(row["payload"]))
        except _DECODE_ERRORS as e:
            logger.error(f"Stored progress for {key} is unreadable: {e}")
            raise StoreUnavailable(f"Stored progress for {key} is unreadable: {e}") from e

    def save(self, key: str, progress: LearnerProgress) -> None:
        """Replace the stored record for ``key``."""
        try:
            conn = get_connection(self.db_path)
            try:
                with conn:
                    self._upsert(conn, key, progress)
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to save progress for {key}: {e}")
            raise StoreUnavailable(f"Cannot save progress for {key}: {e}") from e

    def _upsert(self, conn: sqlite3.Connection, key: str, progress: LearnerProgress) -> None:
        conn.execute(
            """INSERT INTO learner_progress (learner_key, payload, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(learner_key) DO UPDATE SET payload=excluded.payload, updated_at=excluded.updated_at""",
            (key, json.dumps(progress.to_dict()), datetime.now().astimezone().isoformat()),
        )

    def delete(self, key: str) -> None:
        try:
            conn = get_connection(self.db_path)
            try:
                with conn:
                    conn.execute("DELETE FROM learner_progress WHERE learner_key = ?", (key,))
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Cannot delete progress for {key}: {e}") from e

    def save_exam_attempt(
        self, key: str, attempt: ExamAttempt, progress: Optional[LearnerProgress] = None,
    ) -> None:
        """Store a finished attempt, and the updated progress record if given, in one transaction."""
        try:
            conn = get_connection(self.db_path)
            try:
                with conn:
                    conn.execute(
                        "INSERT INTO exam_attempts (id, learner_key, exam_id, completed_at, payload) VALUES (?, ?, ?, ?, ?)",
                        (attempt.id, key, attempt.exam_id, attempt.completed_at.isoformat(),
                         json.dumps(attempt.to_dict())),
                    )
                    if progress is not None:
                        self._upsert(conn, key, progress)
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to save exam attempt {attempt.id}: {e}")
            raise StoreUnavailable(f"Cannot save exam attempt {attempt.id}: {e}") from e

    def list_exam_attempts(self, key: str) -> list[ExamAttempt]:
        """All completed attempts for ``key``, oldest first."""
        try:
            conn = get_connection(self.db_path)
            try:
                rows = conn.execute(
                    "SELECT payload FROM exam_attempts WHERE learner_key = ? ORDER BY completed_at, id",
                    (key,),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Cannot list exam attempts for {key}: {e}") from e
        try:
            return [ExamAttempt.from_dict(json.loads(r["payload"])) for r in rows]
        except _DECODE_ERRORS as e:
            raise StoreUnavailable(f"Stored exam attempts for {key} are unreadable: {e}") from e
