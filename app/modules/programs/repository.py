"""Programs repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enums import ProgramStatusEnum
from app.modules.programs.models import Program, ScheduleTemplate
from app.modules.teachers.models import Teacher


class ProgramsRepository:
    """DB operations for programs domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_teacher_program(
        self,
        teacher_id: UUID,
        program_id: UUID,
        *,
        for_update: bool = False,
    ) -> Program | None:
        stmt = select(Program).where(Program.id == program_id, Program.teacher_id == teacher_id)
        if for_update:
            stmt = stmt.with_for_update()
        return await self.session.scalar(stmt)

    async def lock_program(self, program_id: UUID) -> Program | None:
        """Load a program holding its row lock until the transaction ends.

        Registrations for the same program serialize on this lock.
        """
        stmt = select(Program).where(Program.id == program_id).with_for_update()
        return await self.session.scalar(stmt)

    async def slug_exists(self, teacher_id: UUID, slug: str) -> bool:
        stmt = select(Program.id).where(Program.teacher_id == teacher_id, Program.slug == slug)
        return await self.session.scalar(stmt) is not None

    async def create_program(self, **fields) -> Program:
        """Insert inside a savepoint; a taken (teacher, slug) raises IntegrityError."""
        program = Program(**fields)
        async with self.session.begin_nested():
            self.session.add(program)
            await self.session.flush()
        return program

    async def save(self, program: Program) -> Program:
        await self.session.flush()
        return program

    async def delete_program(self, program: Program) -> None:
        await self.session.delete(program)
        await self.session.flush()

    async def list_programs(
        self,
        teacher_id: UUID,
        status: ProgramStatusEnum | None = None,
    ) -> list[Program]:
        stmt = select(Program).where(Program.teacher_id == teacher_id).order_by(Program.created_at.desc())
        if status is not None:
            stmt = stmt.where(Program.status == status)
        return list((await self.session.scalars(stmt)).all())

    async def get_template(self, template_id: UUID) -> ScheduleTemplate | None:
        return await self.session.get(ScheduleTemplate, template_id)

    async def list_templates(self, teacher_id: UUID) -> list[ScheduleTemplate]:
        stmt = (
            select(ScheduleTemplate)
            .where(
                or_(
                    ScheduleTemplate.is_platform_template.is_(True),
                    ScheduleTemplate.teacher_id == teacher_id,
                ),
            )
            .order_by(ScheduleTemplate.is_platform_template.desc(), ScheduleTemplate.name.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def create_template(self, **fields) -> ScheduleTemplate:
        template = ScheduleTemplate(**fields)
        self.session.add(template)
        await self.session.flush()
        return template

    async def get_teacher_by_slug(self, teacher_slug: str) -> Teacher | None:
        return await self.session.scalar(select(Teacher).where(Teacher.slug == teacher_slug))

    async def list_published_programs(self, teacher_id: UUID) -> list[Program]:
        stmt = (
            select(Program)
            .options(selectinload(Program.venue))
            .where(Program.teacher_id == teacher_id, Program.status == ProgramStatusEnum.PUBLISHED)
            .order_by(Program.created_at.desc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def get_published_program(self, teacher_id: UUID, program_slug: str) -> Program | None:
        stmt = (
            select(Program)
            .options(selectinload(Program.venue))
            .where(
                Program.teacher_id == teacher_id,
                Program.slug == program_slug,
                Program.status == ProgramStatusEnum.PUBLISHED,
            )
        )
        return await self.session.scalar(stmt)
