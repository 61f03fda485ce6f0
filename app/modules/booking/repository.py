"""Booking repository layer."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enums import BookingStatusEnum
from app.modules.booking.capacity import SEATLESS_STATUSES
from app.modules.booking.models import Booking
from app.modules.programs.models import Program


class BookingRepository:
    """DB operations for booking domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def count_active_bookings(self, program_id: UUID) -> int:
        stmt = select(func.count()).where(
            Booking.program_id == program_id,
            Booking.status.not_in(tuple(SEATLESS_STATUSES)),
        )
        return int((await self.session.scalar(stmt)) or 0)

    async def count_active_by_program(self, program_ids: Iterable[UUID]) -> dict[UUID, int]:
        ids = list(program_ids)
        if not ids:
            return {}
        stmt = (
            select(Booking.program_id, func.count())
            .where(Booking.program_id.in_(ids), Booking.status.not_in(tuple(SEATLESS_STATUSES)))
            .group_by(Booking.program_id)
        )
        rows = (await self.session.execute(stmt)).all()
        return {program_id: int(count) for program_id, count in rows}

    async def count_by_program(self, program_ids: Iterable[UUID]) -> dict[UUID, int]:
        ids = list(program_ids)
        if not ids:
            return {}
        stmt = select(Booking.program_id, func.count()).where(Booking.program_id.in_(ids)).group_by(Booking.program_id)
        rows = (await self.session.execute(stmt)).all()
        return {program_id: int(count) for program_id, count in rows}

    async def count_program_bookings(self, program_id: UUID) -> int:
        stmt = select(func.count()).where(Booking.program_id == program_id)
        return int((await self.session.scalar(stmt)) or 0)

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        return await self.session.get(Booking, booking_id)

    async def get_teacher_booking(self, teacher_id: UUID, booking_id: UUID) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id, Booking.teacher_id == teacher_id)
        return await self.session.scalar(stmt)

    async def get_booking_details(self, booking_id: UUID) -> Booking | None:
        stmt = (
            select(Booking)
            .options(
                selectinload(Booking.program).selectinload(Program.teacher),
                selectinload(Booking.program).selectinload(Program.venue),
                selectinload(Booking.student),
                selectinload(Booking.health_form),
            )
            .where(Booking.id == booking_id)
        )
        return await self.session.scalar(stmt)

    async def get_student_program_booking(self, student_id: UUID, program_id: UUID) -> Booking | None:
        stmt = select(Booking).where(Booking.student_id == student_id, Booking.program_id == program_id)
        return await self.session.scalar(stmt)

    async def teacher_owns_program(self, teacher_id: UUID, program_id: UUID) -> bool:
        stmt = select(Program.id).where(Program.id == program_id, Program.teacher_id == teacher_id)
        return await self.session.scalar(stmt) is not None

    async def list_program_bookings(
        self,
        program_id: UUID,
        status: BookingStatusEnum | None = None,
    ) -> list[Booking]:
        stmt = (
            select(Booking)
            .options(selectinload(Booking.student), selectinload(Booking.health_form))
            .where(Booking.program_id == program_id)
            .order_by(Booking.created_at.asc())
        )
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        return list((await self.session.scalars(stmt)).all())

    async def create_booking(self, **fields) -> Booking:
        """Insert inside a savepoint; a duplicate (student, program) raises IntegrityError."""
        booking = Booking(**fields)
        async with self.session.begin_nested():
            self.session.add(booking)
            await self.session.flush()
        return booking

    async def save(self, booking: Booking) -> Booking:
        await self.session.flush()
        return booking
