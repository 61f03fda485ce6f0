"""Students repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.modules.booking.models import Booking
from app.modules.students.models import Student
from app.modules.students.schemas import StudentFilters


class StudentsRepository:
    """DB operations for students domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_student_by_email(self, teacher_id: UUID, email: str) -> Student | None:
        stmt = select(Student).where(Student.teacher_id == teacher_id, Student.email == email)
        return await self.session.scalar(stmt)

    async def create_student(self, teacher_id: UUID, email: str, **fields) -> Student:
        """Insert inside a savepoint so a unique violation leaves the request transaction usable."""
        student = Student(teacher_id=teacher_id, email=email, **fields)
        async with self.session.begin_nested():
            self.session.add(student)
            await self.session.flush()
        return student

    async def update_student(self, student: Student, **changes) -> Student:
        for key, value in changes.items():
            setattr(student, key, value)
        await self.session.flush()
        return student

    async def get_teacher_student(self, teacher_id: UUID, student_id: UUID) -> Student | None:
        stmt = (
            select(Student)
            .options(
                selectinload(Student.bookings).selectinload(Booking.program),
                selectinload(Student.bookings).selectinload(Booking.health_form),
            )
            .where(Student.id == student_id, Student.teacher_id == teacher_id)
        )
        return await self.session.scalar(stmt)

    def _filtered(self, teacher_id: UUID, filters: StudentFilters) -> Select[tuple[Student]]:
        stmt = select(Student).where(Student.teacher_id == teacher_id)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            stmt = stmt.where(
                or_(
                    Student.name.ilike(pattern),
                    Student.email.ilike(pattern),
                    Student.phone.ilike(pattern),
                ),
            )
        if filters.tag:
            stmt = stmt.where(Student.tags.contains([filters.tag]))
        if filters.program_id is not None:
            stmt = stmt.where(
                Student.id.in_(select(Booking.student_id).where(Booking.program_id == filters.program_id)),
            )
        return stmt

    async def list_students(
        self,
        teacher_id: UUID,
        filters: StudentFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[tuple[Student, int, datetime | None]], int]:
        filtered = self._filtered(teacher_id, filters)
        total = await self.session.scalar(select(func.count()).select_from(filtered.subquery()))

        stats = (
            select(
                Booking.student_id.label("student_id"),
                func.count(distinct(Booking.program_id)).label("program_count"),
                func.max(Booking.created_at).label("last_booking_at"),
            )
            .group_by(Booking.student_id)
            .subquery()
        )
        stmt = (
            filtered.add_columns(func.coalesce(stats.c.program_count, 0), stats.c.last_booking_at)
            .outerjoin(stats, stats.c.student_id == Student.id)
            .order_by(Student.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await self.session.execute(stmt)).all()
        items = [(student, int(program_count), last_booking_at) for student, program_count, last_booking_at in rows]
        return items, int(total or 0)

    async def list_tags(self, teacher_id: UUID) -> list[str]:
        stmt = select(func.unnest(Student.tags)).where(Student.teacher_id == teacher_id).distinct()
        return sorted((await self.session.scalars(stmt)).all())
