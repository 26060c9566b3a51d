"""Curriculum endpoints. Topics are written only as part of their curriculum."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from dailyspark.curriculum.models import (
    CreateCurriculumRequest,
    Curriculum,
    UpdateCurriculumRequest,
)
from dailyspark.api.dependencies import get_services
from dailyspark.services import Services

router = APIRouter(prefix="/api/curricula", tags=["curricula"])


@router.get("", response_model=list[Curriculum])
async def list_curricula(
    user_id: str = Query(..., alias="userId"),
    services: Services = Depends(get_services),
) -> list[Curriculum]:
    return await services.curricula.list_by_user(user_id)


@router.get("/{curriculum_id}", response_model=Curriculum)
async def get_curriculum(
    curriculum_id: str,
    user_id: str = Query(..., alias="userId"),
    services: Services = Depends(get_services),
) -> Curriculum:
    return await services.curricula.get(curriculum_id, user_id)


@router.post("", response_model=Curriculum)
async def create_curriculum(
    request: CreateCurriculumRequest, services: Services = Depends(get_services)
) -> Curriculum:
    return await services.curricula.create(request)


@router.put("", response_model=Curriculum)
async def update_curriculum(
    request: UpdateCurriculumRequest, services: Services = Depends(get_services)
) -> Curriculum:
    return await services.curricula.update(request)
