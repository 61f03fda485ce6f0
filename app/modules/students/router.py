"""Students API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.modules.booking.models import Booking
from app.modules.students.models import Student
from app.modules.students.schemas import (
    StudentBookingRead,
    StudentDetail,
    StudentFilters,
    StudentListItem,
    StudentNotesUpdate,
    StudentRead,
    StudentTagsUpdate,
    StudentUpdate,
)
from app.modules.students.service import StudentsService, get_students_service
from app.modules.teachers.models import Teacher
from app.modules.teachers.service import get_current_teacher
from app.shared.pagination import Page, build_page, get_pagination_params
from app.shared.results import unwrap

router = APIRouter(prefix="/students", tags=["students"])


def _booking_row(booking: Booking) -> StudentBookingRead:
    health_form = booking.health_form
    return StudentBookingRead(
        id=booking.id,
        program_id=booking.program_id,
        program_name=booking.program.name,
        status=booking.status,
        payment_status=booking.payment_status,
        payment_amount=booking.payment_amount,
        payment_currency=booking.payment_currency,
        has_health_form=health_form is not None,
        health_form_reviewed=bool(health_form and health_form.is_reviewed),
        created_at=booking.created_at,
    )


def _detail(student: Student) -> StudentDetail:
    bookings = sorted(student.bookings, key=lambda booking: booking.created_at, reverse=True)
    return StudentDetail(
        student=StudentRead.model_validate(student),
        bookings=[_booking_row(booking) for booking in bookings],
    )


@router.get("", response_model=Page[StudentListItem])
async def list_students(
    search: str | None = Query(default=None, max_length=100),
    tag: str | None = Query(default=None, max_length=50),
    program_id: UUID | None = None,
    pagination=Depends(get_pagination_params),
    current_teacher: Teacher = Depends(get_current_teacher),
    service: StudentsService = Depends(get_students_service),
) -> Page[StudentListItem]:
    """List the teacher's students with booking aggregates."""
    filters = StudentFilters(search=search, tag=tag, program_id=program_id)
    rows, total = unwrap(await service.list_students(current_teacher.id, filters, pagination))
    items = [
        StudentListItem(
            student=StudentRead.model_validate(student),
            program_count=program_count,
            last_booking_at=last_booking_at,
        )
        for student, program_count, last_booking_at in rows
    ]
    return build_page(items, total, pagination)


@router.get("/tags", response_model=list[str])
async def list_student_tags(
    current_teacher: Teacher = Depends(get_current_teacher),
    service: StudentsService = Depends(get_students_service),
) -> list[str]:
    """Distinct tags across the teacher's students."""
    return unwrap(await service.list_student_tags(current_teacher.id))


@router.get("/{student_id}", response_model=StudentDetail)
async def get_student(
    student_id: UUID,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: StudentsService = Depends(get_students_service),
) -> StudentDetail:
    student = unwrap(await service.get_student(current_teacher.id, student_id))
    return _detail(student)


@router.patch("/{student_id}", response_model=StudentRead)
async def update_student(
    student_id: UUID,
    payload: StudentUpdate,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: StudentsService = Depends(get_students_service),
) -> StudentRead:
    student = unwrap(await service.update_student(current_teacher.id, student_id, payload))
    return StudentRead.model_validate(student)


@router.put("/{student_id}/tags", response_model=StudentRead)
async def update_student_tags(
    student_id: UUID,
    payload: StudentTagsUpdate,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: StudentsService = Depends(get_students_service),
) -> StudentRead:
    student = unwrap(await service.update_student_tags(current_teacher.id, student_id, payload))
    return StudentRead.model_validate(student)


@router.put("/{student_id}/notes", response_model=StudentRead)
async def update_student_notes(
    student_id: UUID,
    payload: StudentNotesUpdate,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: StudentsService = Depends(get_students_service),
) -> StudentRead:
    student = unwrap(await service.update_student_notes(current_teacher.id, student_id, payload))
    return StudentRead.model_validate(student)
