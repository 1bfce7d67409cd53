"""
Tests for settings and logging setup.
"""

import json

import pytest
import structlog
from pydantic import ValidationError

from flipgate.config import DatabaseSettings, FeatureSettings, Settings
from flipgate.logs import add_service_name, configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_defaults(monkeypatch):
    for name in ("FEATURE_BACKEND", "DB_URL", "ENVIRONMENT", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.environment == "development"
    assert settings.features.backend == "database"
    assert settings.database.url.startswith("postgresql+asyncpg://")


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("FEATURE_BACKEND", "memory")
    monkeypatch.setenv("DB_URL", "sqlite+aiosqlite:///./flags.db")
    monkeypatch.setenv("DB_POOL_SIZE", "20")
    monkeypatch.setenv("ENVIRONMENT", "production")

    settings = Settings(_env_file=None)

    assert settings.features.backend == "memory"
    assert settings.database.url == "sqlite+aiosqlite:///./flags.db"
    assert settings.database.pool_size == 20
    assert settings.environment == "production"


def test_invalid_backend():
    with pytest.raises(ValidationError):
        FeatureSettings(backend="redis")


def test_invalid_environment():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, environment="moon")


def test_invalid_log_format():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_format="xml")


def test_pool_size_bounds():
    with pytest.raises(ValidationError):
        DatabaseSettings(pool_size=0)


def test_add_service_name():
    assert add_service_name(None, "info", {"event": "x"}) == {"event": "x", "service": "flipgate"}
    assert add_service_name(None, "info", {"service": "app"})["service"] == "app"


def test_configure_logging_renders_json(capsys):
    configure_logging(Settings(_env_file=None, log_format="json", log_level="INFO"))

    structlog.get_logger().info("Feature gate enabled", feature="search")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "Feature gate enabled"
    assert event["feature"] == "search"
    assert event["service"] == "flipgate"
    assert event["level"] == "info"
    assert "timestamp" in event


def test_configure_logging_filters_level(capsys):
    configure_logging(Settings(_env_file=None, log_format="json", log_level="WARNING"))

    structlog.get_logger().info("quiet")
    structlog.get_logger().warning("loud")

    out = capsys.readouterr().out
    assert "quiet" not in out
    assert "loud" in out
