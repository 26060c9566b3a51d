"""Fan-out over every user.

``process_all`` aggregates all users concurrently and waits for every one of
them to finish before returning. Concurrency is unbounded: one task per user.

Failure policy depends on ``Settings.isolate_user_failures``:
- off (default): once all tasks have settled, the first failure is raised as
  ``BatchError`` and no results are returned
- on: each failure becomes a FAILED outcome and the rest of the batch stands
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import asdict, dataclass

from dailyspark.curriculum.repository import UserRepository
from dailyspark.curriculum.service import (
    AggregationOutcome,
    AggregationStatus,
    CurriculumTopicsService,
)
from dailyspark.digest.delivery import NotificationOutcome
from dailyspark.errors import BatchError
from dailyspark.observability.logging import get_logger
from dailyspark.observability.telemetry import counter, log_event

logger = get_logger(__name__)


@dataclass(frozen=True)
class BatchSummary:
    total: int
    succeeded: int
    not_found: int
    failed: int
    emails_sent: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def summarize(outcomes: Sequence[AggregationOutcome]) -> BatchSummary:
    return BatchSummary(
        total=len(outcomes),
        succeeded=sum(1 for o in outcomes if o.status == AggregationStatus.OK),
        not_found=sum(
            1
            for o in outcomes
            if o.status in (AggregationStatus.USER_NOT_FOUND, AggregationStatus.NO_ACTIVE_CURRICULA)
        ),
        failed=sum(1 for o in outcomes if o.status == AggregationStatus.FAILED),
        emails_sent=sum(1 for o in outcomes if o.notification == NotificationOutcome.SENT),
    )


class ProcessAllUsersOrchestrator:
    def __init__(
        self,
        users: UserRepository,
        service: CurriculumTopicsService,
        isolate_user_failures: bool = False,
    ):
        self.users = users
        self.service = service
        self.isolate_user_failures = isolate_user_failures

    async def _process_user(self, user_id: str) -> AggregationOutcome:
        try:
            return await self.service.aggregate(user_id)
        except Exception as e:
            counter("fanout.user_failures")
            if self.isolate_user_failures:
                logger.error("User %s failed, continuing batch: %s", user_id, e)
                return AggregationOutcome.failed(user_id, e)
            raise BatchError(user_id, e) from e

    async def process_all(self) -> list[AggregationOutcome]:
        """
        Aggregate every user concurrently.

        Returns:
            One outcome per user id, in the order the ids were scanned

        Raises:
            BatchError: a user failed and failures are not isolated
            StoreError: the user id scan itself failed
        """
        logger.info("Starting orchestration to process all users.")
        user_ids = await self.users.list_ids()
        logger.info("Found %d user IDs.", len(user_ids))
        counter("fanout.users", len(user_ids))

        settled = await asyncio.gather(
            *(self._process_user(user_id) for user_id in user_ids),
            return_exceptions=True,
        )

        outcomes: list[AggregationOutcome] = []
        for item in settled:
            if isinstance(item, BaseException):
                logger.error("Orchestration aborted: %s", item)
                raise item
            outcomes.append(item)

        summary = summarize(outcomes)
        log_event("fanout.completed", **summary.to_dict())
        logger.info("Orchestration completed for %d users.", len(outcomes))
        return outcomes
