"""Tests for Settings construction from the environment."""

from __future__ import annotations

from pathlib import Path

import pytest

from dailyspark.config import DEFAULT_MAX_USERS, Settings

ENV_KEYS = [
    "DAILYSPARK_DB_PATH",
    "DAILYSPARK_MAX_USERS",
    "DAILYSPARK_ISOLATE_USER_FAILURES",
    "DAILYSPARK_ESCAPE_EMAIL_HTML",
    "DAILYSPARK_ALLOWED_ORIGINS",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASSWORD",
    "SMTP_FROM_EMAIL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults_without_env(clean_env):
    settings = Settings.from_env()

    assert settings.max_users_limit == DEFAULT_MAX_USERS
    assert settings.isolate_user_failures is False
    assert settings.escape_email_html is False
    assert settings.email_configured is False
    assert settings.users_container == "users"
    assert settings.curricula_container == "curricula"


def test_reads_env(clean_env):
    clean_env.setenv("DAILYSPARK_DB_PATH", "/tmp/ds.db")
    clean_env.setenv("DAILYSPARK_MAX_USERS", "3")
    clean_env.setenv("DAILYSPARK_ISOLATE_USER_FAILURES", "true")
    clean_env.setenv("DAILYSPARK_ESCAPE_EMAIL_HTML", "yes")
    clean_env.setenv("DAILYSPARK_ALLOWED_ORIGINS", "https://a.example, https://b.example")
    clean_env.setenv("SMTP_HOST", "smtp.example.com")
    clean_env.setenv("SMTP_PORT", "2525")
    clean_env.setenv("SMTP_USER", "bot@example.com")
    clean_env.setenv("SMTP_PASSWORD", "pw")

    settings = Settings.from_env()

    assert settings.database_path == Path("/tmp/ds.db")
    assert settings.max_users_limit == 3
    assert settings.isolate_user_failures is True
    assert settings.escape_email_html is True
    assert settings.allowed_origins == ("https://a.example", "https://b.example")
    assert settings.smtp_port == 2525
    # Sender falls back to the SMTP user
    assert settings.sender_email == "bot@example.com"
    assert settings.email_configured is True


def test_invalid_max_users_falls_back_to_default(clean_env):
    clean_env.setenv("DAILYSPARK_MAX_USERS", "lots")
    assert Settings.from_env().max_users_limit == DEFAULT_MAX_USERS


def test_settings_are_frozen():
    settings = Settings()
    with pytest.raises(AttributeError):
        settings.max_users_limit = 1  # type: ignore[misc]

    assert settings.with_overrides(max_users_limit=1).max_users_limit == 1
    assert settings.max_users_limit == DEFAULT_MAX_USERS
