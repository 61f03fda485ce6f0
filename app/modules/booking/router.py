"""Booking API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.core.enums import BookingStatusEnum
from app.core.metrics import record_booking_transition
from app.modules.booking.models import Booking
from app.modules.booking.schemas import (
    BookingRead,
    BookingStudentRead,
    CancellationApproval,
    CancellationRequest,
    PaymentStatusUpdate,
    ProgramBookingRead,
)
from app.modules.booking.service import BookingService, get_booking_service
from app.modules.teachers.models import Teacher
from app.modules.teachers.service import get_current_teacher
from app.shared.results import OperationResult, unwrap

router = APIRouter(prefix="/bookings", tags=["booking"])


def _transition_response(operation: str, result: OperationResult[Booking]) -> BookingRead:
    record_booking_transition(operation, result.ok)
    return BookingRead.model_validate(unwrap(result))


@router.get("", response_model=list[ProgramBookingRead])
async def list_program_bookings(
    program_id: UUID,
    status: BookingStatusEnum | None = None,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: BookingService = Depends(get_booking_service),
) -> list[ProgramBookingRead]:
    """List a program's bookings, optionally filtered by status."""
    bookings = unwrap(await service.list_program_bookings(current_teacher.id, program_id, status))
    return [
        ProgramBookingRead(
            booking=BookingRead.model_validate(booking),
            student=BookingStudentRead.model_validate(booking.student),
            has_health_form=booking.health_form is not None,
            health_form_reviewed=bool(booking.health_form and booking.health_form.is_reviewed),
        )
        for booking in bookings
    ]


@router.post("/{booking_id}/cancellation-request", response_model=BookingRead)
async def request_cancellation(
    booking_id: UUID,
    payload: CancellationRequest,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    """Open a cancellation request on behalf of the student."""
    result = await service.request_cancellation(booking_id, payload.reason, teacher_id=current_teacher.id)
    return _transition_response("request_cancellation", result)


@router.post("/{booking_id}/cancellation/approve", response_model=BookingRead)
async def approve_cancellation(
    booking_id: UUID,
    payload: CancellationApproval,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    """Cancel a booking whose cancellation was requested."""
    result = await service.approve_cancellation(current_teacher.id, booking_id, payload.refund_notes)
    return _transition_response("approve_cancellation", result)


@router.post("/{booking_id}/cancellation/decline", response_model=BookingRead)
async def decline_cancellation(
    booking_id: UUID,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    """Keep the booking and restore its pre-request status."""
    result = await service.decline_cancellation(current_teacher.id, booking_id)
    return _transition_response("decline_cancellation", result)


@router.post("/{booking_id}/offer-spot", response_model=BookingRead)
async def offer_waitlist_spot(
    booking_id: UUID,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    result = await service.offer_waitlist_spot(current_teacher.id, booking_id)
    return _transition_response("offer_waitlist_spot", result)


@router.post("/{booking_id}/payment-status", response_model=BookingRead)
async def update_payment_status(
    booking_id: UUID,
    payload: PaymentStatusUpdate,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: BookingService = Depends(get_booking_service),
) -> BookingRead:
    result = await service.update_payment_status(current_teacher.id, booking_id, payload.payment_status)
    return _transition_response("update_payment_status", result)
