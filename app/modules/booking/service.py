"""Booking business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import BookingStatusEnum, PaymentStatusEnum
from app.modules.booking.models import Booking
from app.modules.booking.repository import BookingRepository
from app.modules.booking.schemas import CancellationApproval, CancellationRequest, PaymentStatusUpdate
from app.shared.exceptions import ConflictException, NotFoundException
from app.shared.results import OperationResult, Success, service_operation, validate_payload
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset(
    {BookingStatusEnum.CANCELLED, BookingStatusEnum.COMPLETED, BookingStatusEnum.NO_SHOW},
)
SETTLED_PAYMENT_STATUSES = frozenset({PaymentStatusEnum.PAID, PaymentStatusEnum.WAIVED})
CONFIRMED_BY_PAYMENT = frozenset({BookingStatusEnum.PENDING_PAYMENT, BookingStatusEnum.WAITLIST_OFFERED})


def restored_status(payment_status: PaymentStatusEnum) -> BookingStatusEnum:
    """Status a booking returns to when its cancellation request is declined."""
    if payment_status in SETTLED_PAYMENT_STATUSES:
        return BookingStatusEnum.CONFIRMED
    return BookingStatusEnum.PENDING_PAYMENT


class BookingService:
    """Booking status machine with teacher-scoped transitions."""

    def __init__(self, booking_repository: BookingRepository) -> None:
        self.booking_repository = booking_repository

    async def _get_booking(self, booking_id: UUID, teacher_id: UUID | None) -> Booking:
        if teacher_id is None:
            booking = await self.booking_repository.get_booking_by_id(booking_id)
        else:
            booking = await self.booking_repository.get_teacher_booking(teacher_id, booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    async def _require_pending_cancellation(self, teacher_id: UUID, booking_id: UUID) -> Booking:
        booking = await self._get_booking(booking_id, teacher_id)
        if booking.status != BookingStatusEnum.CANCELLATION_REQUESTED:
            raise ConflictException(
                "Booking has no pending cancellation request",
                {"status": booking.status.value},
            )
        return booking

    @service_operation("Failed to request cancellation")
    async def request_cancellation(
        self,
        booking_id: UUID,
        reason: str | None = None,
        teacher_id: UUID | None = None,
    ) -> OperationResult[Booking]:
        """Move a booking to CANCELLATION_REQUESTED.

        Without ``teacher_id`` the booking id itself authorizes the student.
        """
        data = validate_payload(CancellationRequest, {"reason": reason})
        booking = await self._get_booking(booking_id, teacher_id)
        if booking.status == BookingStatusEnum.CANCELLED:
            raise ConflictException("Booking is already cancelled")
        if booking.status == BookingStatusEnum.CANCELLATION_REQUESTED:
            raise ConflictException("Cancellation already requested")
        if booking.status in TERMINAL_STATUSES:
            raise ConflictException(
                f"Cannot cancel a booking that is {booking.status.value}",
                {"status": booking.status.value},
            )

        booking.status = BookingStatusEnum.CANCELLATION_REQUESTED
        booking.cancelled_reason = data.reason.strip() if data.reason and data.reason.strip() else None
        await self.booking_repository.save(booking)
        logger.info("Cancellation requested for booking %s", booking.id)
        return Success(booking)

    @service_operation("Failed to approve cancellation")
    async def approve_cancellation(
        self,
        teacher_id: UUID,
        booking_id: UUID,
        refund_notes: str | None = None,
    ) -> OperationResult[Booking]:
        data = validate_payload(CancellationApproval, {"refund_notes": refund_notes})
        booking = await self._require_pending_cancellation(teacher_id, booking_id)
        booking.status = BookingStatusEnum.CANCELLED
        booking.cancelled_at = utc_now()
        booking.refund_notes = data.refund_notes or None
        await self.booking_repository.save(booking)
        logger.info("Cancellation approved for booking %s", booking.id)
        return Success(booking)

    @service_operation("Failed to decline cancellation")
    async def decline_cancellation(self, teacher_id: UUID, booking_id: UUID) -> OperationResult[Booking]:
        booking = await self._require_pending_cancellation(teacher_id, booking_id)
        booking.status = restored_status(booking.payment_status)
        booking.cancelled_reason = None
        await self.booking_repository.save(booking)
        return Success(booking)

    @service_operation("Failed to offer waitlist spot")
    async def offer_waitlist_spot(self, teacher_id: UUID, booking_id: UUID) -> OperationResult[Booking]:
        booking = await self._get_booking(booking_id, teacher_id)
        if booking.status != BookingStatusEnum.WAITLISTED:
            raise ConflictException(
                "Only waitlisted bookings can be offered a spot",
                {"status": booking.status.value},
            )
        booking.status = BookingStatusEnum.WAITLIST_OFFERED
        await self.booking_repository.save(booking)
        return Success(booking)

    @service_operation("Failed to update payment status")
    async def update_payment_status(
        self,
        teacher_id: UUID,
        booking_id: UUID,
        payment_status: PaymentStatusEnum | str,
    ) -> OperationResult[Booking]:
        """Set the payment status; receiving payment confirms an open reservation."""
        data = validate_payload(PaymentStatusUpdate, {"payment_status": payment_status})
        booking = await self._get_booking(booking_id, teacher_id)
        booking.payment_status = data.payment_status
        if data.payment_status == PaymentStatusEnum.PAID and booking.status in CONFIRMED_BY_PAYMENT:
            booking.status = BookingStatusEnum.CONFIRMED
        await self.booking_repository.save(booking)
        return Success(booking)

    @service_operation("Failed to load bookings")
    async def list_program_bookings(
        self,
        teacher_id: UUID,
        program_id: UUID,
        status: BookingStatusEnum | None = None,
    ) -> OperationResult[list[Booking]]:
        if not await self.booking_repository.teacher_owns_program(teacher_id, program_id):
            raise NotFoundException("Program not found")
        return Success(await self.booking_repository.list_program_bookings(program_id, status))


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    return BookingService(BookingRepository(session))
