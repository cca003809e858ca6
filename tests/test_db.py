"""Tests for database initialization and connection management."""
from ccp_tutor.db import init_db, get_connection


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    assert {"questions", "learner_progress", "exam_attempts"}.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_init_db_creates_parent_directory(tmp_path):
    db_path = str(tmp_path / "nested" / "dir" / "tutor.db")
    init_db(db_path)
    assert (tmp_path / "nested" / "dir" / "tutor.db").exists()


def test_get_connection_returns_row_factory(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute(
        "INSERT INTO learner_progress (learner_key, payload, updated_at) VALUES ('k', '{}', 'now')"
    )
    row = conn.execute("SELECT learner_key, payload FROM learner_progress").fetchone()
    assert row["learner_key"] == "k"
    conn.close()
