import pytest

from glsi.config import DEFAULT_USER_AGENT, Settings
from glsi.core.exceptions import ConfigurationError


ENV_VARS = [
    "GLSI_DB_PATH",
    "GLSI_SEARCH_ENGINE",
    "GLSI_RATE_LIMIT_SECONDS",
    "GLSI_FETCH_TIMEOUT_SECONDS",
    "GLSI_MAX_CONCURRENCY",
    "GLSI_MAX_RESULTS",
    "GLSI_DEFAULT_COUNT",
    "GLSI_USER_AGENT",
    "GLSI_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()

    assert settings == Settings()
    assert settings.search_engine == "google"
    assert settings.rate_limit_seconds == 1.0
    assert settings.fetch_timeout_seconds == 3.0
    assert settings.max_concurrency == 10
    assert settings.max_results == 20
    assert settings.user_agent == DEFAULT_USER_AGENT


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GLSI_DB_PATH", "/tmp/glsi/test.db")
    monkeypatch.setenv("GLSI_SEARCH_ENGINE", " DuckDuckGo ")
    monkeypatch.setenv("GLSI_RATE_LIMIT_SECONDS", "0.25")
    monkeypatch.setenv("GLSI_MAX_CONCURRENCY", "4")
    monkeypatch.setenv("GLSI_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.db_path == "/tmp/glsi/test.db"
    assert settings.search_engine == "duckduckgo"
    assert settings.rate_limit_seconds == 0.25
    assert settings.max_concurrency == 4
    assert settings.log_level == "DEBUG"


def test_blank_numeric_value_uses_default(monkeypatch):
    monkeypatch.setenv("GLSI_MAX_RESULTS", "  ")

    assert Settings.from_env().max_results == 20


@pytest.mark.parametrize(
    "name,value",
    [
        ("GLSI_RATE_LIMIT_SECONDS", "fast"),
        ("GLSI_MAX_CONCURRENCY", "1.5"),
        ("GLSI_RATE_LIMIT_SECONDS", "-1"),
        ("GLSI_FETCH_TIMEOUT_SECONDS", "0"),
        ("GLSI_MAX_CONCURRENCY", "0"),
        ("GLSI_DEFAULT_COUNT", "-2"),
    ],
)
def test_invalid_values_raise_configuration_error(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        Settings.from_env()


def test_with_overrides_ignores_none():
    base = Settings(rate_limit_seconds=2.0)

    updated = base.with_overrides(rate_limit_seconds=None, db_path="x.db")

    assert updated.rate_limit_seconds == 2.0
    assert updated.db_path == "x.db"
    assert base.db_path == ""


def test_with_overrides_validates():
    with pytest.raises(ConfigurationError):
        Settings().with_overrides(rate_limit_seconds=-0.5)

