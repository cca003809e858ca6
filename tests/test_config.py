# tests/test_config.py
import pytest
from pydantic import ValidationError as SettingsError

from ccp_tutor.config import DEFAULT_DB_PATH, Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # keep a developer's .env out of the tests
    for name in ("DB_PATH", "LEARNER_KEY", "STREAK_THRESHOLD", "TIMEZONE", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(f"CCP_TUTOR_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = Settings()
    assert settings.db_path == DEFAULT_DB_PATH
    assert settings.learner_key == "default-learner"
    assert settings.streak_threshold == 20
    assert settings.timezone is None
    assert settings.log_level == "WARNING"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("CCP_TUTOR_DB_PATH", str(tmp_path / "x.db"))
    monkeypatch.setenv("CCP_TUTOR_STREAK_THRESHOLD", "5")
    monkeypatch.setenv("CCP_TUTOR_TIMEZONE", "Europe/Berlin")
    settings = get_settings()
    assert settings.db_path == str(tmp_path / "x.db")
    assert settings.streak_threshold == 5
    assert settings.timezone == "Europe/Berlin"


def test_env_file(tmp_path):
    (tmp_path / ".env").write_text("CCP_TUTOR_LEARNER_KEY=alice\n")
    assert Settings().learner_key == "alice"


def test_invalid_threshold(monkeypatch):
    monkeypatch.setenv("CCP_TUTOR_STREAK_THRESHOLD", "0")
    with pytest.raises(SettingsError):
        Settings()
