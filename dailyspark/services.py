"""Wiring: build every service from one Settings value."""

from __future__ import annotations

from dataclasses import dataclass

from dailyspark.config import Settings
from dailyspark.curriculum.management import CurriculumService, UserService
from dailyspark.curriculum.orchestrator import ProcessAllUsersOrchestrator
from dailyspark.curriculum.repository import CurriculumRepository, UserRepository
from dailyspark.curriculum.service import CurriculumTopicsService
from dailyspark.digest.delivery import EmailSender, SmtpEmailSender
from dailyspark.digest.email_renderer import TopicsEmailRenderer
from dailyspark.infrastructure.document_store import AsyncDocumentStore, open_document_store


@dataclass
class Services:
    settings: Settings
    store: AsyncDocumentStore
    users: UserService
    curricula: CurriculumService
    topics: CurriculumTopicsService
    orchestrator: ProcessAllUsersOrchestrator


def build_services(
    settings: Settings,
    sender: EmailSender | None = None,
    store: AsyncDocumentStore | None = None,
) -> Services:
    """Construct repositories and services. ``sender``/``store`` are injectable for tests."""
    store = store or open_document_store(
        settings.database_path,
        (settings.users_container, settings.curricula_container, settings.counters_container),
    )
    user_repo = UserRepository(store, settings)
    curriculum_repo = CurriculumRepository(store, settings)
    topics = CurriculumTopicsService(
        user_repo,
        curriculum_repo,
        sender or SmtpEmailSender(settings),
        renderer=TopicsEmailRenderer(escape=settings.escape_email_html),
    )

    return Services(
        settings=settings,
        store=store,
        users=UserService(user_repo, settings.max_users_limit),
        curricula=CurriculumService(curriculum_repo),
        topics=topics,
        orchestrator=ProcessAllUsersOrchestrator(
            user_repo, topics, isolate_user_failures=settings.isolate_user_failures
        ),
    )

