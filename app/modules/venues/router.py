"""Venues API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.modules.teachers.models import Teacher
from app.modules.teachers.service import get_current_teacher
from app.modules.venues.schemas import VenueCreate, VenueListItem, VenueRead, VenueUpdate
from app.modules.venues.service import VenuesService, get_venues_service
from app.shared.results import unwrap

router = APIRouter(prefix="/venues", tags=["venues"])


@router.get("", response_model=list[VenueListItem])
async def list_venues(
    current_teacher: Teacher = Depends(get_current_teacher),
    service: VenuesService = Depends(get_venues_service),
) -> list[VenueListItem]:
    rows = unwrap(await service.list_venues(current_teacher.id))
    return [
        VenueListItem(venue=VenueRead.model_validate(venue), active_program_count=count)
        for venue, count in rows
    ]


@router.post("", response_model=VenueRead, status_code=status.HTTP_201_CREATED)
async def create_venue(
    payload: VenueCreate,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: VenuesService = Depends(get_venues_service),
) -> VenueRead:
    venue = unwrap(await service.create_venue(current_teacher.id, payload))
    return VenueRead.model_validate(venue)


@router.patch("/{venue_id}", response_model=VenueRead)
async def update_venue(
    venue_id: UUID,
    payload: VenueUpdate,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: VenuesService = Depends(get_venues_service),
) -> VenueRead:
    venue = unwrap(await service.update_venue(current_teacher.id, venue_id, payload))
    return VenueRead.model_validate(venue)


@router.delete("/{venue_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_venue(
    venue_id: UUID,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: VenuesService = Depends(get_venues_service),
) -> None:
    """Delete a venue no active program uses."""
    unwrap(await service.delete_venue(current_teacher.id, venue_id))
