"""
Pytest configuration for DailySpark tests

Every test gets its own SQLite document store under tmp_path and a recording
email sender, so nothing touches the network or the real database.
"""

from __future__ import annotations

import pytest

from dailyspark.config import Settings
from dailyspark.infrastructure.document_store import open_document_store
from dailyspark.observability.telemetry import reset_counters
from dailyspark.services import build_services
from tests.factories import RecordingSender


@pytest.fixture(autouse=True)
def _reset_telemetry():
    reset_counters()
    yield
    reset_counters()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(database_path=tmp_path / "dailyspark.db", max_users_limit=5)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def store(settings):
    return open_document_store(
        settings.database_path,
        (settings.users_container, settings.curricula_container, settings.counters_container),
    )


@pytest.fixture
def services(settings, sender, store):
    return build_services(settings, sender=sender, store=store)
