"""Venues business logic layer."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.modules.venues.models import Venue
from app.modules.venues.repository import VenuesRepository
from app.modules.venues.schemas import VenueCreate, VenueUpdate
from app.shared.exceptions import ConflictException, NotFoundException
from app.shared.results import OperationResult, Success, service_operation, validate_payload


class VenuesService:
    """Venues domain service."""

    def __init__(self, repository: VenuesRepository) -> None:
        self.repository = repository

    async def _get_owned(self, teacher_id: UUID, venue_id: UUID) -> Venue:
        venue = await self.repository.get_teacher_venue(teacher_id, venue_id)
        if venue is None:
            raise NotFoundException("Venue not found")
        return venue

    @service_operation("Failed to create venue")
    async def create_venue(
        self,
        teacher_id: UUID,
        payload: VenueCreate | dict[str, Any],
    ) -> OperationResult[Venue]:
        data = validate_payload(VenueCreate, payload)
        venue = await self.repository.create_venue(teacher_id, **data.model_dump())
        return Success(venue)

    @service_operation("Failed to update venue")
    async def update_venue(
        self,
        teacher_id: UUID,
        venue_id: UUID,
        payload: VenueUpdate | dict[str, Any],
    ) -> OperationResult[Venue]:
        data = validate_payload(VenueUpdate, payload)
        venue = await self._get_owned(teacher_id, venue_id)
        changes = data.model_dump(exclude_unset=True)
        return Success(await self.repository.update_venue(venue, **changes))

    @service_operation("Failed to delete venue")
    async def delete_venue(self, teacher_id: UUID, venue_id: UUID) -> OperationResult[None]:
        """Delete a venue unless draft or published programs still use it."""
        venue = await self._get_owned(teacher_id, venue_id)
        if await self.repository.count_active_programs(venue.id) > 0:
            raise ConflictException("Cannot delete a venue used by draft or published programs")
        await self.repository.delete_venue(venue)
        return Success(None)

    @service_operation("Failed to load venues")
    async def list_venues(self, teacher_id: UUID) -> OperationResult[list[tuple[Venue, int]]]:
        return Success(await self.repository.list_venues(teacher_id))


async def get_venues_service(session: AsyncSession = Depends(get_db_session)) -> VenuesService:
    """Dependency provider for venues service."""
    return VenuesService(VenuesRepository(session))
