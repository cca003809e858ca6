from datetime import datetime, timezone

import pytest

from ccp_tutor.clock import FixedClock


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor.db")
    return db_path


@pytest.fixture
def clock():
    """A clock frozen mid-afternoon so no time-of-day badges fire by accident."""
    return FixedClock(datetime(2025, 3, 10, 14, 0, tzinfo=timezone.utc))
