"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

from ccp_tutor.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS questions (
    id TEXT PRIMARY KEY,
    exam_id TEXT NOT NULL DEFAULT '',
    question_index INTEGER NOT NULL DEFAULT 0,
    domain TEXT NOT NULL,
    prompt TEXT NOT NULL,
    options TEXT NOT NULL,            -- JSON list of {id, text}
    correct_option_ids TEXT NOT NULL, -- JSON list of option ids
    multi_select INTEGER NOT NULL DEFAULT 0,
    source TEXT DEFAULT 'seeded'
);

CREATE INDEX IF NOT EXISTS idx_questions_domain ON questions(domain);

CREATE TABLE IF NOT EXISTS learner_progress (
    learner_key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,            -- JSON LearnerProgress record
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS exam_attempts (
    id TEXT PRIMARY KEY,
    learner_key TEXT NOT NULL,
    exam_id TEXT NOT NULL,
    completed_at TEXT NOT NULL,
    payload TEXT NOT NULL             -- JSON ExamAttempt record
);

CREATE INDEX IF NOT EXISTS idx_exam_attempts_learner ON exam_attempts(learner_key, completed_at);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
