"""Registration intake business logic."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import BookingStatusEnum, PaymentMethodEnum, PaymentStatusEnum, ProgramStatusEnum
from app.modules.booking.capacity import CapacityEvaluator
from app.modules.booking.models import Booking
from app.modules.booking.repository import BookingRepository
from app.modules.health_forms.repository import HealthFormsRepository
from app.modules.health_forms.schemas import HealthFormSubmission
from app.modules.programs.models import Program
from app.modules.programs.repository import ProgramsRepository
from app.modules.registration.schemas import RegistrationRequest, RegistrationResult
from app.modules.students.repository import StudentsRepository
from app.modules.students.service import StudentIdentityResolver
from app.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ValidationFailedException,
)
from app.shared.results import OperationResult, Success, service_operation, validate_payload
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)

ALREADY_REGISTERED_MESSAGE = "You are already registered for this program"


def initial_booking_status(
    *,
    is_waitlisted: bool,
    is_free: bool,
    payment_method: PaymentMethodEnum,
) -> BookingStatusEnum:
    if is_waitlisted:
        return BookingStatusEnum.WAITLISTED
    if is_free or payment_method != PaymentMethodEnum.ONLINE:
        return BookingStatusEnum.CONFIRMED
    return BookingStatusEnum.PENDING_PAYMENT


def initial_payment_status(*, is_free: bool) -> PaymentStatusEnum:
    return PaymentStatusEnum.WAIVED if is_free else PaymentStatusEnum.PENDING


def registration_message(
    *,
    is_waitlisted: bool,
    is_free: bool,
    payment_method: PaymentMethodEnum,
) -> str:
    if is_waitlisted:
        return "The program is full. You have been added to the waitlist."
    if is_free:
        return "Registration successful!"
    if payment_method == PaymentMethodEnum.ONLINE:
        return "Please complete payment to confirm your booking"
    return "Registration successful! Please make payment as instructed."


def effective_payment_method(program: Program, requested: PaymentMethodEnum) -> PaymentMethodEnum:
    """Free programs always record FREE; paid programs cannot be taken for free."""
    if program.is_free:
        return PaymentMethodEnum.FREE
    if requested == PaymentMethodEnum.FREE:
        raise BusinessRuleException(
            "This program requires payment. Please choose a payment method.",
            {"field": "payment_method"},
        )
    return requested


class RegistrationService:
    """Accepts public registrations and decides each booking's starting state."""

    def __init__(
        self,
        programs_repository: ProgramsRepository,
        booking_repository: BookingRepository,
        health_forms_repository: HealthFormsRepository,
        student_resolver: StudentIdentityResolver,
    ) -> None:
        self.programs_repository = programs_repository
        self.booking_repository = booking_repository
        self.health_forms_repository = health_forms_repository
        self.student_resolver = student_resolver
        self.capacity = CapacityEvaluator(booking_repository)

    async def _existing_booking_conflict(self, student_id: UUID, program_id: UUID) -> None:
        existing = await self.booking_repository.get_student_program_booking(student_id, program_id)
        if existing is not None:
            raise ConflictException(ALREADY_REGISTERED_MESSAGE, {"booking_id": str(existing.id)})

    async def _create_booking(self, **fields) -> Booking:
        try:
            return await self.booking_repository.create_booking(**fields)
        except IntegrityError:
            # A concurrent submission for the same student won the unique constraint.
            await self._existing_booking_conflict(fields["student_id"], fields["program_id"])
            raise

    async def _attach_health_form(self, booking: Booking, form: HealthFormSubmission) -> None:
        await self.health_forms_repository.create_health_form(
            booking_id=booking.id,
            student_id=booking.student_id,
            how_did_you_hear=form.how_did_you_hear or None,
            previous_practice=form.previous_practice or None,
            has_prior_training=form.has_prior_training,
            prior_training_details=form.prior_training_details or None,
            health_conditions=form.health_conditions,
            condition_details=form.condition_details or None,
            is_pregnant=form.is_pregnant,
            had_recent_surgery=form.had_recent_surgery,
            consent_given=form.consent_given,
            consent_at=utc_now(),
        )

    @service_operation("Failed to complete registration. Please try again.")
    async def register(
        self,
        payload: RegistrationRequest | dict[str, Any],
    ) -> OperationResult[RegistrationResult]:
        """Register a student for a published program.

        The program row stays locked until the request transaction ends, so the
        capacity count and the booking insert cannot interleave with another
        registration for the same program.
        """
        data = validate_payload(RegistrationRequest, payload)

        program = await self.programs_repository.lock_program(data.program_id)
        if program is None:
            raise NotFoundException("Program not found")
        if program.status != ProgramStatusEnum.PUBLISHED:
            raise BusinessRuleException("This program is not accepting registrations")

        is_waitlisted = not await self.capacity.has_room(program)

        if program.requires_health_form and data.health_form is None:
            raise ValidationFailedException(
                "Health form is required for this program",
                {"field": "health_form"},
            )
        payment_method = effective_payment_method(program, data.payment_method)

        student = await self.student_resolver.resolve(program.teacher_id, data.student)
        await self._existing_booking_conflict(student.id, program.id)

        status = initial_booking_status(
            is_waitlisted=is_waitlisted,
            is_free=program.is_free,
            payment_method=payment_method,
        )
        payment_status = initial_payment_status(is_free=program.is_free)
        booking = await self._create_booking(
            student_id=student.id,
            program_id=program.id,
            teacher_id=program.teacher_id,
            status=status,
            payment_status=payment_status,
            payment_method=payment_method,
            payment_amount=None if program.is_free else program.price_amount,
            payment_currency=program.price_currency,
        )
        if data.health_form is not None:
            await self._attach_health_form(booking, data.health_form)

        logger.info(
            "Booking %s created for program %s with status %s",
            booking.id,
            program.id,
            status.value,
        )
        return Success(
            RegistrationResult(
                booking_id=booking.id,
                student_id=student.id,
                status=status,
                payment_status=payment_status,
                is_waitlisted=is_waitlisted,
                requires_payment=status == BookingStatusEnum.PENDING_PAYMENT,
                message=registration_message(
                    is_waitlisted=is_waitlisted,
                    is_free=program.is_free,
                    payment_method=payment_method,
                ),
            ),
        )

    @service_operation("Failed to fetch booking details")
    async def get_booking_details(self, booking_id: UUID) -> OperationResult[Booking]:
        booking = await self.booking_repository.get_booking_details(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return Success(booking)


async def get_registration_service(session: AsyncSession = Depends(get_db_session)) -> RegistrationService:
    """Dependency provider for registration service."""
    return RegistrationService(
        ProgramsRepository(session),
        BookingRepository(session),
        HealthFormsRepository(session),
        StudentIdentityResolver(StudentsRepository(session)),
    )
