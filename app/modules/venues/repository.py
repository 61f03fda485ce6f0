"""Venues repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ProgramStatusEnum
from app.modules.programs.models import Program
from app.modules.venues.models import Venue

ACTIVE_PROGRAM_STATUSES = (ProgramStatusEnum.DRAFT, ProgramStatusEnum.PUBLISHED)


class VenuesRepository:
    """DB operations for venues domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_venue(self, teacher_id: UUID, **fields) -> Venue:
        venue = Venue(teacher_id=teacher_id, **fields)
        self.session.add(venue)
        await self.session.flush()
        return venue

    async def get_teacher_venue(self, teacher_id: UUID, venue_id: UUID) -> Venue | None:
        stmt = select(Venue).where(Venue.id == venue_id, Venue.teacher_id == teacher_id)
        return await self.session.scalar(stmt)

    async def list_venues(self, teacher_id: UUID) -> list[tuple[Venue, int]]:
        stmt = (
            select(Venue, func.count(Program.id))
            .outerjoin(
                Program,
                and_(Program.venue_id == Venue.id, Program.status.in_(ACTIVE_PROGRAM_STATUSES)),
            )
            .where(Venue.teacher_id == teacher_id)
            .group_by(Venue.id)
            .order_by(Venue.name.asc())
        )
        rows = (await self.session.execute(stmt)).all()
        return [(venue, int(count)) for venue, count in rows]

    async def count_active_programs(self, venue_id: UUID) -> int:
        stmt = select(func.count()).where(
            Program.venue_id == venue_id,
            Program.status.in_(ACTIVE_PROGRAM_STATUSES),
        )
        return int((await self.session.scalar(stmt)) or 0)

    async def update_venue(self, venue: Venue, **changes) -> Venue:
        for key, value in changes.items():
            setattr(venue, key, value)
        await self.session.flush()
        return venue

    async def delete_venue(self, venue: Venue) -> None:
        await self.session.delete(venue)
        await self.session.flush()
