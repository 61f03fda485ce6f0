"""Health forms repository layer."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.booking.models import Booking
from app.modules.health_forms.models import HealthForm


class HealthFormsRepository:
    """DB operations for health forms domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_health_form(self, **fields) -> HealthForm:
        health_form = HealthForm(**fields)
        self.session.add(health_form)
        await self.session.flush()
        return health_form

    async def list_program_health_forms(
        self,
        program_id: UUID,
        reviewed: bool | None = None,
    ) -> list[HealthForm]:
        stmt = (
            select(HealthForm)
            .join(Booking, HealthForm.booking_id == Booking.id)
            .where(Booking.program_id == program_id)
            .order_by(HealthForm.created_at.asc())
        )
        if reviewed is not None:
            stmt = stmt.where(HealthForm.is_reviewed.is_(reviewed))
        return list((await self.session.scalars(stmt)).all())

    async def get_teacher_health_forms(
        self,
        teacher_id: UUID,
        health_form_ids: Iterable[UUID],
    ) -> list[HealthForm]:
        """Forms among ``health_form_ids`` that belong to the teacher's bookings."""
        ids = list(health_form_ids)
        if not ids:
            return []
        stmt = (
            select(HealthForm)
            .join(Booking, HealthForm.booking_id == Booking.id)
            .where(HealthForm.id.in_(ids), Booking.teacher_id == teacher_id)
            .with_for_update(of=HealthForm)
        )
        return list((await self.session.scalars(stmt)).all())

    async def save(self) -> None:
        await self.session.flush()
