"""Public API router: program pages, registration and booking confirmation."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.metrics import record_booking_transition, record_registration
from app.modules.booking.capacity import is_full, spots_left
from app.modules.booking.schemas import BookingRead, CancellationRequest
from app.modules.booking.service import BookingService, get_booking_service
from app.modules.programs.models import Program
from app.modules.programs.schemas import PublicProgramRead
from app.modules.programs.service import ProgramsService, get_programs_service
from app.modules.registration.rate_limit import enforce_registration_rate_limit
from app.modules.registration.schemas import (
    BookingDetails,
    BookingStudentSummary,
    PublicProgramPage,
    PublicTeacherPrograms,
    RegistrationRequest,
    RegistrationResult,
)
from app.modules.registration.service import RegistrationService, get_registration_service
from app.modules.teachers.schemas import PublicTeacherRead
from app.shared.results import unwrap

router = APIRouter(prefix="/public", tags=["public"])


def public_program(program: Program, active_bookings: int) -> PublicProgramRead:
    return PublicProgramRead.model_validate(program).model_copy(
        update={
            "active_bookings": active_bookings,
            "spots_left": spots_left(program.capacity, active_bookings),
            "is_full": is_full(program.capacity, active_bookings),
        },
    )


@router.get("/teachers/{teacher_slug}/programs", response_model=PublicTeacherPrograms)
async def list_public_programs(
    teacher_slug: str,
    service: ProgramsService = Depends(get_programs_service),
) -> PublicTeacherPrograms:
    """Published programs of a teacher with remaining capacity."""
    teacher, rows = unwrap(await service.list_public_programs(teacher_slug))
    return PublicTeacherPrograms(
        teacher=PublicTeacherRead.model_validate(teacher),
        programs=[public_program(program, active) for program, active in rows],
    )


@router.get("/teachers/{teacher_slug}/programs/{program_slug}", response_model=PublicProgramPage)
async def get_public_program(
    teacher_slug: str,
    program_slug: str,
    service: ProgramsService = Depends(get_programs_service),
) -> PublicProgramPage:
    teacher, program, active = unwrap(await service.get_public_program(teacher_slug, program_slug))
    return PublicProgramPage(
        teacher=PublicTeacherRead.model_validate(teacher),
        program=public_program(program, active),
    )


@router.post(
    "/registrations",
    response_model=RegistrationResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_registration_rate_limit)],
)
async def register(
    payload: RegistrationRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationResult:
    """Submit a registration for a published program."""
    result = await service.register(payload)
    record_registration(result.value.status.value if result.ok else "rejected")
    return unwrap(result)


@router.get("/bookings/{booking_id}", response_model=BookingDetails)
async def get_booking_details(
    booking_id: UUID,
    service: RegistrationService = Depends(get_registration_service),
) -> BookingDetails:
    """Booking confirmation data; the booking id acts as the access token."""
    booking = unwrap(await service.get_booking_details(booking_id))
    program = booking.program
    return BookingDetails(
        booking=BookingRead.model_validate(booking),
        program=PublicProgramRead.model_validate(program),
        teacher=PublicTeacherRead.model_validate(program.teacher),
        student=BookingStudentSummary(
            first_name=booking.student.first_name,
            last_name=booking.student.last_name,
            email=booking.student.email,
        ),
        has_health_form=booking.health_form is not None,
    )


@router.post("/bookings/{booking_id}/cancellation-request", response_model=BookingRead)
async def request_cancellation(
    booking_id: UUID,
    payload: CancellationRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    """Student asks the teacher to cancel their booking."""
    result = await service.request_cancellation(booking_id, payload.reason)
    record_booking_transition("request_cancellation", result.ok)
    return BookingRead.model_validate(unwrap(result))
