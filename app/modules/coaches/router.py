"""Coaches API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.modules.coaches.schemas import CoachProfileCreate, CoachProfileRead, CoachProfileUpdate
from app.modules.coaches.service import CoachesService, get_coaches_service
from app.modules.identity.service import get_current_user
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/coaches", tags=["coaches"])


@router.post("", response_model=CoachProfileRead, status_code=status.HTTP_201_CREATED)
async def create_profile(
    payload: CoachProfileCreate,
    service: CoachesService = Depends(get_coaches_service),
    current_user=Depends(get_current_user),
) -> CoachProfileRead:
    """Create coach profile."""
    profile = await service.create_profile(payload, current_user)
    return CoachProfileRead.model_validate(profile)


@router.patch("/{profile_id}", response_model=CoachProfileRead)
async def update_profile(
    profile_id: UUID,
    payload: CoachProfileUpdate,
    service: CoachesService = Depends(get_coaches_service),
    current_user=Depends(get_current_user),
) -> CoachProfileRead:
    """Update coach profile."""
    profile = await service.update_profile(profile_id, payload, current_user)
    return CoachProfileRead.model_validate(profile)


@router.get("", response_model=Page[CoachProfileRead])
async def list_profiles(
    pagination=Depends(get_pagination_params),
    service: CoachesService = Depends(get_coaches_service),
) -> Page[CoachProfileRead]:
    """List coaches."""
    items, total = await service.list_profiles(pagination.limit, pagination.offset)
    serialized = [CoachProfileRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{profile_id}", response_model=CoachProfileRead)
async def get_profile(
    profile_id: UUID,
    service: CoachesService = Depends(get_coaches_service),
) -> CoachProfileRead:
    """Get a single coach."""
    profile = await service.get_profile(profile_id)
    return CoachProfileRead.model_validate(profile)
