"""Students business logic layer."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.modules.students.models import Student
from app.modules.students.repository import StudentsRepository
from app.modules.students.schemas import (
    StudentContact,
    StudentFilters,
    StudentNotesUpdate,
    StudentTagsUpdate,
    StudentUpdate,
    normalize_email,
)
from app.shared.exceptions import NotFoundException
from app.shared.pagination import PaginationParams
from app.shared.results import OperationResult, Success, service_operation, validate_payload

logger = logging.getLogger(__name__)


class StudentIdentityResolver:
    """Find-or-create students per teacher, keyed by normalized email."""

    def __init__(self, repository: StudentsRepository) -> None:
        self.repository = repository

    async def resolve(self, teacher_id: UUID, contact: StudentContact) -> Student:
        """Return the teacher's student for this email with contact data refreshed.

        The latest submission always wins over stored contact fields.
        """
        email = normalize_email(contact.email)
        fields = contact.contact_fields()

        student = await self.repository.get_student_by_email(teacher_id, email)
        if student is not None:
            return await self.repository.update_student(student, **fields)

        try:
            return await self.repository.create_student(teacher_id=teacher_id, email=email, **fields)
        except IntegrityError:
            # Concurrent registration inserted the same (teacher, email) first.
            logger.info("Student create conflict for teacher %s, retrying as update", teacher_id)
            student = await self.repository.get_student_by_email(teacher_id, email)
            if student is None:
                raise
            return await self.repository.update_student(student, **fields)


class StudentsService:
    """Dashboard operations over a teacher's students."""

    def __init__(self, repository: StudentsRepository) -> None:
        self.repository = repository

    async def _get_owned(self, teacher_id: UUID, student_id: UUID) -> Student:
        student = await self.repository.get_teacher_student(teacher_id, student_id)
        if student is None:
            raise NotFoundException("Student not found")
        return student

    @service_operation("Failed to load students")
    async def list_students(
        self,
        teacher_id: UUID,
        filters: StudentFilters,
        pagination: PaginationParams,
    ) -> OperationResult[tuple[list[tuple[Student, int, datetime | None]], int]]:
        result = await self.repository.list_students(
            teacher_id,
            filters,
            limit=pagination.per_page,
            offset=pagination.offset,
        )
        return Success(result)

    @service_operation("Failed to load tags")
    async def list_student_tags(self, teacher_id: UUID) -> OperationResult[list[str]]:
        return Success(await self.repository.list_tags(teacher_id))

    @service_operation("Failed to load student")
    async def get_student(self, teacher_id: UUID, student_id: UUID) -> OperationResult[Student]:
        return Success(await self._get_owned(teacher_id, student_id))

    @service_operation("Failed to update student")
    async def update_student(
        self,
        teacher_id: UUID,
        student_id: UUID,
        payload: StudentUpdate | dict[str, Any],
    ) -> OperationResult[Student]:
        data = validate_payload(StudentUpdate, payload)
        student = await self._get_owned(teacher_id, student_id)
        changes = data.model_dump(exclude_unset=True)
        if "first_name" in changes or "last_name" in changes:
            first_name = changes.get("first_name", student.first_name)
            last_name = changes.get("last_name", student.last_name)
            changes["name"] = f"{first_name} {last_name}"
        return Success(await self.repository.update_student(student, **changes))

    @service_operation("Failed to update tags")
    async def update_student_tags(
        self,
        teacher_id: UUID,
        student_id: UUID,
        payload: StudentTagsUpdate | dict[str, Any],
    ) -> OperationResult[Student]:
        data = validate_payload(StudentTagsUpdate, payload)
        student = await self._get_owned(teacher_id, student_id)
        return Success(await self.repository.update_student(student, tags=data.tags))

    @service_operation("Failed to update notes")
    async def update_student_notes(
        self,
        teacher_id: UUID,
        student_id: UUID,
        payload: StudentNotesUpdate | dict[str, Any],
    ) -> OperationResult[Student]:
        data = validate_payload(StudentNotesUpdate, payload)
        student = await self._get_owned(teacher_id, student_id)
        notes = data.notes.strip() if data.notes else None
        return Success(await self.repository.update_student(student, teacher_notes=notes or None))


async def get_students_service(session: AsyncSession = Depends(get_db_session)) -> StudentsService:
    """Dependency provider for students service."""
    return StudentsService(StudentsRepository(session))
