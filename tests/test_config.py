"""Tests for settings loading, service construction and logging setup."""

import json
import logging

import pytest
from cryptography.fernet import Fernet

from feedback_bot.config import Settings
from feedback_bot.logging_config import configure_logging
from feedback_bot.services import build_services


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("SLACK_SIGNING_SECRET", "from-env")
    monkeypatch.setenv("DIGEST_DAYS", "14")
    settings = Settings(_env_file=None)
    assert settings.slack_signing_secret == "from-env"
    assert settings.digest_days == 14


def test_build_services_requires_encryption_key():
    settings = Settings(_env_file=None, token_encryption_key="", database_url="sqlite+aiosqlite://")
    with pytest.raises(ValueError):
        build_services(settings)


def test_build_services_wires_stores():
    settings = Settings(
        _env_file=None,
        token_encryption_key=Fernet.generate_key().decode(),
        gemini_api_key="test-key",
        notion_api_key="secret_test",
        database_url="sqlite+aiosqlite://",
    )
    services = build_services(settings)
    assert services.settings is settings
    assert services.engine is not None
    assert services.dispatcher is not None


@pytest.fixture
def reset_logging():
    yield
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


def test_configure_logging_emits_json(capsys, reset_logging):
    configure_logging("DEBUG")
    logging.getLogger("feedback_bot.test").info("hello", extra={"team_id": "T1"})

    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["message"] == "hello"
    assert record["severity"] == "INFO"
    assert record["service"] == "feedback-bot"
    assert record["team_id"] == "T1"
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("slack_sdk").level == logging.WARNING
