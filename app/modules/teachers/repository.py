"""Teachers repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.teachers.models import Teacher


class TeachersRepository:
    """DB operations for teachers domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, teacher_id: UUID) -> Teacher | None:
        return await self.session.get(Teacher, teacher_id)

    async def get_by_auth_user_id(self, auth_user_id: str) -> Teacher | None:
        return await self.session.scalar(select(Teacher).where(Teacher.auth_user_id == auth_user_id))

    async def get_by_email(self, email: str) -> Teacher | None:
        return await self.session.scalar(select(Teacher).where(Teacher.email == email))

    async def get_by_slug(self, slug: str) -> Teacher | None:
        return await self.session.scalar(select(Teacher).where(Teacher.slug == slug))

    async def slug_exists(self, slug: str) -> bool:
        return await self.get_by_slug(slug) is not None

    async def create_teacher(self, **fields) -> Teacher:
        teacher = Teacher(**fields)
        async with self.session.begin_nested():
            self.session.add(teacher)
            await self.session.flush()
        return teacher

    async def update_teacher(self, teacher: Teacher, **changes) -> Teacher:
        for key, value in changes.items():
            setattr(teacher, key, value)
        async with self.session.begin_nested():
            await self.session.flush()
        return teacher
