"""
Topic digest endpoints.

- GET  /api/topics?userId=...            flattened active topics, no email
- POST /api/topics/{user_id}/process     aggregate + email one user
- POST /api/process-all                  fan out over every user
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from dailyspark.curriculum.models import AggregationResult, FlattenedTopic
from dailyspark.curriculum.orchestrator import summarize
from dailyspark.observability.logging import get_logger
from dailyspark.api.dependencies import get_services
from dailyspark.services import Services

router = APIRouter(prefix="/api", tags=["topics"])
logger = get_logger(__name__)


@router.get("/topics", response_model=list[FlattenedTopic])
async def query_topics(
    user_id: str = Query(..., alias="userId", min_length=1),
    services: Services = Depends(get_services),
) -> list[FlattenedTopic]:
    topics = await services.topics.query_topics(user_id)
    if topics is None:
        raise HTTPException(
            status_code=404,
            detail=f"No active curriculum topics found for user with id {user_id}.",
        )
    return topics


@router.post("/topics/{user_id}/process", response_model=AggregationResult)
async def process_user(
    user_id: str, services: Services = Depends(get_services)
) -> AggregationResult:
    logger.info("Processing curriculum topics for user: %s", user_id)
    outcome = await services.topics.aggregate(user_id)
    if not outcome.found or outcome.result is None:
        raise HTTPException(
            status_code=404,
            detail=f"No active curriculum topics found for user with id {user_id}.",
        )
    return outcome.result


@router.post("/process-all")
async def process_all_users(services: Services = Depends(get_services)) -> dict[str, Any]:
    """Aggregate every user. Responds once all users have completed."""
    logger.info("Received request to start all-users orchestration.")
    outcomes = await services.orchestrator.process_all()
    return {
        "results": [outcome.to_dict() for outcome in outcomes],
        "summary": summarize(outcomes).to_dict(),
    }
