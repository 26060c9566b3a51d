"""
User endpoints.

Domain errors (validation, limit, duplicates, not found) are translated to
HTTP status codes by the handlers registered in dailyspark.api.app.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dailyspark.curriculum.models import CreateUserRequest, UpdateUserRequest, User
from dailyspark.observability.logging import get_logger
from dailyspark.api.dependencies import get_services
from dailyspark.services import Services

router = APIRouter(prefix="/api/users", tags=["users"])
logger = get_logger(__name__)


@router.get("/count")
async def get_user_count(services: Services = Depends(get_services)) -> dict[str, int]:
    count = await services.users.get_user_count()
    logger.info("Successfully retrieved user count: %d", count)
    return {"totalUsers": count}


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, services: Services = Depends(get_services)) -> User:
    return await services.users.get_user(user_id)


@router.post("", response_model=User)
async def create_user(
    request: CreateUserRequest, services: Services = Depends(get_services)
) -> User:
    return await services.users.create_user(request)


@router.put("", response_model=User)
async def update_user(
    request: UpdateUserRequest, services: Services = Depends(get_services)
) -> User:
    return await services.users.update_user(request)
