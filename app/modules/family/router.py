"""Family API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.modules.family.schemas import DependentCreate, DependentRead
from app.modules.family.service import FamilyService, get_family_service
from app.modules.identity.service import get_current_user

router = APIRouter(prefix="/family", tags=["family"])


@router.get("/dependents", response_model=list[DependentRead])
async def list_dependents(
    member_id: UUID | None = Query(default=None),
    service: FamilyService = Depends(get_family_service),
    current_user=Depends(get_current_user),
) -> list[DependentRead]:
    """List the caller's dependents (admins may pass ``member_id``)."""
    items = await service.list_dependents(current_user, member_id)
    return [DependentRead.model_validate(item) for item in items]


@router.post("/dependents", response_model=DependentRead, status_code=status.HTTP_201_CREATED)
async def create_dependent(
    payload: DependentCreate,
    service: FamilyService = Depends(get_family_service),
    current_user=Depends(get_current_user),
) -> DependentRead:
    dependent = await service.create_dependent(payload, current_user)
    return DependentRead.model_validate(dependent)


@router.delete("/dependents/{dependent_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dependent(
    dependent_id: UUID,
    service: FamilyService = Depends(get_family_service),
    current_user=Depends(get_current_user),
) -> None:
    await service.delete_dependent(dependent_id, current_user)
