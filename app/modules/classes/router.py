"""Gym class API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.modules.classes.schemas import GymClassCreate, GymClassRead, GymClassUpdate
from app.modules.classes.service import ClassesService, get_classes_service
from app.modules.identity.service import get_current_user
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/classes", tags=["classes"])


@router.post("", response_model=GymClassRead, status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: GymClassCreate,
    service: ClassesService = Depends(get_classes_service),
    current_user=Depends(get_current_user),
) -> GymClassRead:
    """Add a class to the timetable."""
    gym_class = await service.create_class(payload, current_user)
    return GymClassRead.model_validate(gym_class)


@router.patch("/{class_id}", response_model=GymClassRead)
async def update_class(
    class_id: UUID,
    payload: GymClassUpdate,
    service: ClassesService = Depends(get_classes_service),
    current_user=Depends(get_current_user),
) -> GymClassRead:
    gym_class = await service.update_class(class_id, payload, current_user)
    return GymClassRead.model_validate(gym_class)


@router.get("", response_model=Page[GymClassRead])
async def list_classes(
    coach_id: UUID | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: ClassesService = Depends(get_classes_service),
) -> Page[GymClassRead]:
    """List the class timetable."""
    items, total = await service.list_classes(coach_id, pagination.limit, pagination.offset)
    serialized = [GymClassRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{class_id}", response_model=GymClassRead)
async def get_class(
    class_id: UUID,
    service: ClassesService = Depends(get_classes_service),
) -> GymClassRead:
    gym_class = await service.get_class(class_id)
    return GymClassRead.model_validate(gym_class)
