"""Scheduling API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.modules.identity.service import get_current_user
from app.modules.scheduling.schemas import AppointmentRead, SlotCreate, SlotRead
from app.modules.scheduling.service import SchedulingService, get_scheduling_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


@router.post("/slots", response_model=SlotRead, status_code=status.HTTP_201_CREATED)
async def create_slot(
    payload: SlotCreate,
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(get_current_user),
) -> SlotRead:
    """Create coach slot."""
    slot = await service.create_slot(payload, current_user)
    return SlotRead.model_validate(slot)


@router.get("/slots/open", response_model=Page[SlotRead])
async def list_open_slots(
    coach_id: UUID | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: SchedulingService = Depends(get_scheduling_service),
) -> Page[SlotRead]:
    """List slots that can still be booked."""
    items, total = await service.list_open_slots(coach_id, pagination.limit, pagination.offset)
    serialized = [SlotRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/appointments/my", response_model=Page[AppointmentRead])
async def list_my_appointments(
    pagination=Depends(get_pagination_params),
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(get_current_user),
) -> Page[AppointmentRead]:
    items, total = await service.list_my_appointments(current_user, pagination.limit, pagination.offset)
    serialized = [AppointmentRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentRead)
async def cancel_appointment(
    appointment_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(get_current_user),
) -> AppointmentRead:
    """Cancel appointment and release its slot."""
    appointment = await service.cancel_appointment(appointment_id, current_user)
    return AppointmentRead.model_validate(appointment)
