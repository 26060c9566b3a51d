"""Curriculum topics service - the per-user aggregation pipeline.

For one user: look up the user, load their Active curricula, flatten every
topic (tagged with its course title, duration formatted), email the digest
and return the payload.

Callers see a single "not found" signal for both a missing user and a user
without Active curricula (``AggregationOutcome.found``). The outcome keeps
the two cases apart in ``status`` for logging and tests.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from dailyspark.curriculum.models import AggregationResult, Curriculum, FlattenedTopic, User
from dailyspark.curriculum.repository import CurriculumRepository, UserRepository
from dailyspark.digest.delivery import EmailSender, NotificationOutcome, SendResult
from dailyspark.digest.duration import format_duration
from dailyspark.digest.email_renderer import TopicsEmailRenderer, build_subject
from dailyspark.observability.logging import get_logger
from dailyspark.observability.telemetry import counter, log_event, time_block

logger = get_logger(__name__)


class AggregationStatus(str, Enum):
    OK = "ok"
    USER_NOT_FOUND = "user_not_found"
    NO_ACTIVE_CURRICULA = "no_active_curricula"
    FAILED = "failed"


@dataclass
class AggregationOutcome:
    """Result of aggregating one user, plus what happened to the email."""

    user_id: str
    status: AggregationStatus
    result: AggregationResult | None = None
    notification: NotificationOutcome = NotificationOutcome.SKIPPED
    notification_error: str | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.status == AggregationStatus.OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "status": self.status.value,
            "result": self.result.to_document() if self.result else None,
            "notification": self.notification.value,
            "error": self.error,
        }

    @classmethod
    def not_found(cls, user_id: str, status: AggregationStatus) -> AggregationOutcome:
        return cls(user_id=user_id, status=status)

    @classmethod
    def failed(cls, user_id: str, error: BaseException) -> AggregationOutcome:
        return cls(user_id=user_id, status=AggregationStatus.FAILED, error=str(error))


def flatten_topics(curricula: Iterable[Curriculum]) -> list[FlattenedTopic]:
    """One FlattenedTopic per topic, curricula and topics in stored order."""
    return [
        FlattenedTopic(
            course_title=curriculum.course_title,
            title=topic.title,
            description=topic.description,
            estimated_time=format_duration(topic.estimated_time),
            question=topic.question,
            resources=list(topic.resources),
            status=topic.status,
        )
        for curriculum in curricula
        for topic in curriculum.topics
    ]


class CurriculumTopicsService:
    """Aggregates a user's active topics and emails them."""

    def __init__(
        self,
        users: UserRepository,
        curricula: CurriculumRepository,
        sender: EmailSender,
        renderer: TopicsEmailRenderer | None = None,
    ):
        self.users = users
        self.curricula = curricula
        self.sender = sender
        self.renderer = renderer or TopicsEmailRenderer()

    async def _collect(
        self, user_id: str
    ) -> tuple[User | None, list[FlattenedTopic], AggregationStatus]:
        user = await self.users.get_by_id(user_id)
        if user is None:
            logger.warning("User with id %s not found.", user_id)
            return None, [], AggregationStatus.USER_NOT_FOUND
        logger.info("User found: %s", user.id)

        curricula = await self.curricula.list_active_by_user(user_id)
        if not curricula:
            logger.warning("No active curriculum topics found for user with id %s.", user_id)
            return user, [], AggregationStatus.NO_ACTIVE_CURRICULA

        for curriculum in curricula:
            logger.debug(
                "Curriculum found: %s, %s, %d topics",
                curriculum.id,
                curriculum.course_title,
                len(curriculum.topics),
            )

        topics = flatten_topics(curricula)
        logger.info("Total topics found for user %s: %d", user_id, len(topics))
        return user, topics, AggregationStatus.OK

    async def query_topics(self, user_id: str) -> list[FlattenedTopic] | None:
        """
        Flattened active topics for a user, without sending anything.

        Returns:
            The topic list, or None when the user is missing or has no
            Active curricula
        """
        _, topics, status = await self._collect(user_id)
        if status != AggregationStatus.OK:
            return None
        return topics

    async def notify(self, user: User, topics: list[FlattenedTopic]) -> SendResult:
        """Render and send the digest. Never raises."""
        logger.info("Preparing email for user %s with %d topics", user.id, len(topics))
        try:
            html = self.renderer.render(user.display_name, topics)
            result = await self.sender.send(user.email, build_subject(user.display_name), html)
        except Exception as e:
            # Delivery is best effort; the aggregation result stands regardless
            logger.error("Email delivery for user %s raised: %s", user.id, e)
            result = SendResult(succeeded=False, error=str(e))

        if not result.succeeded:
            logger.error("Email for user %s not sent: %s", user.id, result.error)
        return result

    async def aggregate(self, user_id: str) -> AggregationOutcome:
        """
        Run the full pipeline for one user.

        Store failures are logged and re-raised; email failures are recorded
        on the outcome only.
        """
        try:
            with time_block("aggregation.latency"):
                user, topics, status = await self._collect(user_id)
                if user is None or status != AggregationStatus.OK:
                    counter("aggregation.not_found")
                    return AggregationOutcome.not_found(user_id, status)

                result = AggregationResult(
                    display_name=user.display_name,
                    email=user.email,
                    topics=topics,
                )
                send_result = await self.notify(user, topics)

        except Exception:
            logger.exception("Error processing curriculum topics for user %s", user_id)
            raise

        counter("aggregation.completed")
        log_event(
            "aggregation.completed",
            user_id=user_id,
            topics=len(topics),
            notification=send_result.outcome.value,
        )
        logger.info("Successfully processed curriculum topics for user: %s", user_id)

        return AggregationOutcome(
            user_id=user_id,
            status=AggregationStatus.OK,
            result=result,
            notification=send_result.outcome,
            notification_error=send_result.error,
        )
