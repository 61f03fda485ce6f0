from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

import app.modules.registration.service as registration_service_module
from app.core.enums import (
    BookingStatusEnum,
    PaymentMethodEnum,
    PaymentStatusEnum,
    ProgramStatusEnum,
)
from app.modules.booking.capacity import SEATLESS_STATUSES
from app.modules.registration.service import (
    RegistrationService,
    initial_booking_status,
    registration_message,
)
from app.modules.students.service import StudentIdentityResolver
from app.shared.results import Failure, Success


@dataclass
class FakeProgram:
    id: UUID
    teacher_id: UUID
    status: ProgramStatusEnum = ProgramStatusEnum.PUBLISHED
    capacity: int | None = None
    is_free: bool = False
    price_amount: Decimal | None = Decimal("120.00")
    price_currency: str = "EUR"
    requires_health_form: bool = False


@dataclass
class FakeStudent:
    id: UUID
    teacher_id: UUID
    email: str
    fields: dict = field(default_factory=dict)


@dataclass
class FakeBooking:
    id: UUID
    student_id: UUID
    program_id: UUID
    teacher_id: UUID
    status: BookingStatusEnum
    payment_status: PaymentStatusEnum
    payment_method: PaymentMethodEnum
    payment_amount: Decimal | None
    payment_currency: str | None


class FakeProgramsRepository:
    def __init__(self, *programs: FakeProgram) -> None:
        self._programs = {program.id: program for program in programs}
        self.locked: list[UUID] = []

    async def lock_program(self, program_id: UUID) -> FakeProgram | None:
        self.locked.append(program_id)
        return self._programs.get(program_id)


class FakeBookingRepository:
    def __init__(self) -> None:
        self.bookings: list[FakeBooking] = []
        self.fail_next_insert_with: FakeBooking | None = None

    async def count_active_bookings(self, program_id: UUID) -> int:
        return sum(
            1
            for booking in self.bookings
            if booking.program_id == program_id
            and booking.status not in SEATLESS_STATUSES
        )

    async def get_student_program_booking(self, student_id: UUID, program_id: UUID) -> FakeBooking | None:
        for booking in self.bookings:
            if booking.student_id == student_id and booking.program_id == program_id:
                return booking
        return None

    async def create_booking(self, **fields) -> FakeBooking:
        if self.fail_next_insert_with is not None:
            # Simulates a concurrent insert that committed between the check and this insert.
            self.bookings.append(self.fail_next_insert_with)
            self.fail_next_insert_with = None
            raise IntegrityError("INSERT INTO bookings", {}, Exception("duplicate key"))
        booking = FakeBooking(id=uuid4(), **fields)
        self.bookings.append(booking)
        return booking


class FakeHealthFormsRepository:
    def __init__(self) -> None:
        self.forms: list[dict] = []

    async def create_health_form(self, **fields) -> dict:
        self.forms.append(fields)
        return fields


class FakeStudentsRepository:
    def __init__(self) -> None:
        self.students: dict[tuple[UUID, str], FakeStudent] = {}

    async def get_student_by_email(self, teacher_id: UUID, email: str) -> FakeStudent | None:
        return self.students.get((teacher_id, email))

    async def create_student(self, teacher_id: UUID, email: str, **fields) -> FakeStudent:
        student = FakeStudent(id=uuid4(), teacher_id=teacher_id, email=email, fields=fields)
        self.students[(teacher_id, email)] = student
        return student

    async def update_student(self, student: FakeStudent, **changes) -> FakeStudent:
        student.fields.update(changes)
        return student


@dataclass
class Harness:
    service: RegistrationService
    programs: FakeProgramsRepository
    bookings: FakeBookingRepository
    health_forms: FakeHealthFormsRepository
    students: FakeStudentsRepository


def make_service(*programs: FakeProgram) -> Harness:
    programs_repository = FakeProgramsRepository(*programs)
    booking_repository = FakeBookingRepository()
    health_forms_repository = FakeHealthFormsRepository()
    students_repository = FakeStudentsRepository()
    service = RegistrationService(
        programs_repository,
        booking_repository,
        health_forms_repository,
        StudentIdentityResolver(students_repository),
    )
    return Harness(service, programs_repository, booking_repository, health_forms_repository, students_repository)


def make_program(**overrides) -> FakeProgram:
    fields = {"id": uuid4(), "teacher_id": uuid4()}
    fields.update(overrides)
    return FakeProgram(**fields)


def registration_payload(
    program: FakeProgram,
    *,
    email: str = "maya@yogamail.org",
    payment_method: str = "cash",
    health_form: dict | None = None,
) -> dict:
    return {
        "program_id": str(program.id),
        "student": {
            "first_name": "Maya",
            "last_name": "Patel",
            "email": email,
            "phone": "+44 7700 900123",
            "emergency_contact_name": "Ravi Patel",
            "emergency_contact_relation": "Brother",
            "emergency_contact_phone": "+44 7700 900456",
        },
        "health_form": health_form,
        "payment_method": payment_method,
    }


@pytest.mark.asyncio
async def test_first_seat_with_cash_is_confirmed_and_second_is_waitlisted() -> None:
    program = make_program(capacity=1)
    harness = make_service(program)

    first = await harness.service.register(registration_payload(program, email="x@yogamail.org"))
    second = await harness.service.register(registration_payload(program, email="y@yogamail.org"))

    assert isinstance(first, Success)
    assert first.value.status == BookingStatusEnum.CONFIRMED
    assert first.value.payment_status == PaymentStatusEnum.PENDING
    assert first.value.requires_payment is False
    assert isinstance(second, Success)
    assert second.value.status == BookingStatusEnum.WAITLISTED
    assert second.value.is_waitlisted is True
    assert second.value.message == "The program is full. You have been added to the waitlist."
    assert harness.programs.locked == [program.id, program.id]


def seed_booking(harness: Harness, program: FakeProgram, status: BookingStatusEnum) -> FakeBooking:
    booking = FakeBooking(
        id=uuid4(),
        student_id=uuid4(),
        program_id=program.id,
        teacher_id=program.teacher_id,
        status=status,
        payment_status=PaymentStatusEnum.PENDING,
        payment_method=PaymentMethodEnum.CASH,
        payment_amount=program.price_amount,
        payment_currency=program.price_currency,
    )
    harness.bookings.bookings.append(booking)
    return booking


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [BookingStatusEnum.CANCELLED, BookingStatusEnum.WAITLISTED])
async def test_cancelled_and_waitlisted_bookings_do_not_hold_a_seat(status: BookingStatusEnum) -> None:
    program = make_program(capacity=1)
    harness = make_service(program)
    seed_booking(harness, program, status)

    result = await harness.service.register(registration_payload(program))

    assert result.value.status == BookingStatusEnum.CONFIRMED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [
        BookingStatusEnum.CONFIRMED,
        BookingStatusEnum.PENDING_PAYMENT,
        BookingStatusEnum.WAITLIST_OFFERED,
        BookingStatusEnum.CANCELLATION_REQUESTED,
    ],
)
async def test_seat_holding_bookings_fill_the_program(status: BookingStatusEnum) -> None:
    program = make_program(capacity=1)
    harness = make_service(program)
    seed_booking(harness, program, status)

    result = await harness.service.register(registration_payload(program))

    assert result.value.status == BookingStatusEnum.WAITLISTED


@pytest.mark.asyncio
async def test_free_program_records_free_method_and_waived_payment() -> None:
    program = make_program(is_free=True, price_amount=None)
    harness = make_service(program)

    result = await harness.service.register(registration_payload(program, payment_method="online"))

    assert result.value.status == BookingStatusEnum.CONFIRMED
    assert result.value.payment_status == PaymentStatusEnum.WAIVED
    assert result.value.message == "Registration successful!"
    booking = harness.bookings.bookings[0]
    assert booking.payment_method == PaymentMethodEnum.FREE
    assert booking.payment_amount is None


@pytest.mark.asyncio
async def test_online_payment_leaves_booking_pending_payment() -> None:
    program = make_program()
    harness = make_service(program)

    result = await harness.service.register(registration_payload(program, payment_method="online"))

    assert result.value.status == BookingStatusEnum.PENDING_PAYMENT
    assert result.value.payment_status == PaymentStatusEnum.PENDING
    assert result.value.requires_payment is True
    booking = harness.bookings.bookings[0]
    assert booking.payment_amount == Decimal("120.00")
    assert booking.payment_currency == "EUR"


@pytest.mark.asyncio
async def test_free_method_on_paid_program_is_rejected() -> None:
    program = make_program()
    harness = make_service(program)

    result = await harness.service.register(registration_payload(program, payment_method="free"))

    assert isinstance(result, Failure)
    assert result.code == "business_rule_violation"
    assert result.details == {"field": "payment_method"}
    assert harness.bookings.bookings == []


@pytest.mark.asyncio
async def test_second_registration_by_same_email_returns_existing_booking() -> None:
    program = make_program()
    harness = make_service(program)

    first = await harness.service.register(registration_payload(program, email="Maya@YogaMail.org "))
    second = await harness.service.register(registration_payload(program, email="maya@yogamail.org"))

    assert isinstance(second, Failure)
    assert second.code == "conflict"
    assert second.message == "You are already registered for this program"
    assert second.details == {"booking_id": str(first.value.booking_id)}
    assert len(harness.students.students) == 1


@pytest.mark.asyncio
async def test_concurrent_duplicate_insert_reports_winning_booking() -> None:
    program = make_program()
    harness = make_service(program)
    await harness.service.register(registration_payload(program, email="early@yogamail.org"))
    student = next(iter(harness.students.students.values()))
    winner = FakeBooking(
        id=uuid4(),
        student_id=uuid4(),
        program_id=program.id,
        teacher_id=program.teacher_id,
        status=BookingStatusEnum.CONFIRMED,
        payment_status=PaymentStatusEnum.PENDING,
        payment_method=PaymentMethodEnum.CASH,
        payment_amount=None,
        payment_currency="EUR",
    )
    harness.bookings.bookings.clear()
    winner.student_id = student.id
    harness.bookings.fail_next_insert_with = winner

    result = await harness.service.register(registration_payload(program, email="early@yogamail.org"))

    assert isinstance(result, Failure)
    assert result.code == "conflict"
    assert result.details == {"booking_id": str(winner.id)}


@pytest.mark.asyncio
async def test_health_form_required_when_program_demands_it() -> None:
    program = make_program(requires_health_form=True)
    harness = make_service(program)

    result = await harness.service.register(registration_payload(program))

    assert isinstance(result, Failure)
    assert result.code == "validation_error"
    assert result.message == "Health form is required for this program"
    assert harness.students.students == {}


@pytest.mark.asyncio
async def test_health_form_is_stored_with_consent_timestamp(monkeypatch: pytest.MonkeyPatch) -> None:
    fixed_now = datetime(2026, 3, 2, 8, 30, tzinfo=UTC)
    monkeypatch.setattr(registration_service_module, "utc_now", lambda: fixed_now)
    program = make_program(requires_health_form=True)
    harness = make_service(program)

    result = await harness.service.register(
        registration_payload(
            program,
            health_form={
                "health_conditions": ["  back pain ", ""],
                "consent_given": True,
            },
        ),
    )

    assert result.ok
    form = harness.health_forms.forms[0]
    assert form["booking_id"] == result.value.booking_id
    assert form["health_conditions"] == ["back pain"]
    assert form["consent_at"] == fixed_now


@pytest.mark.asyncio
async def test_health_form_without_consent_is_rejected() -> None:
    program = make_program(requires_health_form=True)
    harness = make_service(program)

    result = await harness.service.register(
        registration_payload(program, health_form={"consent_given": False}),
    )

    assert isinstance(result, Failure)
    assert result.message == "You must accept the terms and conditions"
    assert result.details == {"field": "health_form.consent_given"}


@pytest.mark.asyncio
async def test_invalid_contact_reports_first_field_message() -> None:
    program = make_program()
    harness = make_service(program)
    payload = registration_payload(program)
    payload["student"]["first_name"] = "M"

    result = await harness.service.register(payload)

    assert isinstance(result, Failure)
    assert result.code == "validation_error"
    assert result.message == "First name must be at least 2 characters"
    assert result.details == {"field": "student.first_name"}


@pytest.mark.asyncio
async def test_invalid_email_is_rejected_with_friendly_message() -> None:
    program = make_program()
    harness = make_service(program)

    result = await harness.service.register(registration_payload(program, email="not-an-email"))

    assert isinstance(result, Failure)
    assert result.message == "Invalid email address"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [ProgramStatusEnum.DRAFT, ProgramStatusEnum.CANCELLED, ProgramStatusEnum.COMPLETED],
)
async def test_only_published_programs_accept_registrations(status: ProgramStatusEnum) -> None:
    program = make_program(status=status)
    harness = make_service(program)

    result = await harness.service.register(registration_payload(program))

    assert isinstance(result, Failure)
    assert result.code == "business_rule_violation"
    assert result.message == "This program is not accepting registrations"


@pytest.mark.asyncio
async def test_unknown_program_is_not_found() -> None:
    harness = make_service()

    result = await harness.service.register(registration_payload(make_program()))

    assert isinstance(result, Failure)
    assert result.code == "not_found"
    assert result.message == "Program not found"


@pytest.mark.parametrize(
    ("is_waitlisted", "is_free", "method", "expected"),
    [
        (True, False, PaymentMethodEnum.ONLINE, BookingStatusEnum.WAITLISTED),
        (True, True, PaymentMethodEnum.FREE, BookingStatusEnum.WAITLISTED),
        (False, True, PaymentMethodEnum.FREE, BookingStatusEnum.CONFIRMED),
        (False, False, PaymentMethodEnum.ONLINE, BookingStatusEnum.PENDING_PAYMENT),
        (False, False, PaymentMethodEnum.BANK_TRANSFER, BookingStatusEnum.CONFIRMED),
        (False, False, PaymentMethodEnum.CASH, BookingStatusEnum.CONFIRMED),
    ],
)
def test_initial_booking_status_table(
    is_waitlisted: bool,
    is_free: bool,
    method: PaymentMethodEnum,
    expected: BookingStatusEnum,
) -> None:
    assert initial_booking_status(is_waitlisted=is_waitlisted, is_free=is_free, payment_method=method) == expected


def test_offline_payment_message_mentions_instructions() -> None:
    message = registration_message(
        is_waitlisted=False,
        is_free=False,
        payment_method=PaymentMethodEnum.BANK_TRANSFER,
    )
    assert message == "Registration successful! Please make payment as instructed."
