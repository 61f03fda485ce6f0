"""Registration schemas."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel

from app.core.enums import BookingStatusEnum, PaymentMethodEnum, PaymentStatusEnum
from app.modules.booking.schemas import BookingRead
from app.modules.health_forms.schemas import HealthFormSubmission
from app.modules.programs.schemas import PublicProgramRead
from app.modules.students.schemas import StudentContact
from app.modules.teachers.schemas import PublicTeacherRead


class RegistrationRequest(BaseModel):
    """Public registration form submission."""

    program_id: UUID
    student: StudentContact
    health_form: HealthFormSubmission | None = None
    payment_method: PaymentMethodEnum


class RegistrationResult(BaseModel):
    """Outcome of an accepted registration."""

    booking_id: UUID
    student_id: UUID
    status: BookingStatusEnum
    payment_status: PaymentStatusEnum
    is_waitlisted: bool
    requires_payment: bool
    message: str


class PublicTeacherPrograms(BaseModel):
    """Teacher page: profile plus published programs."""

    teacher: PublicTeacherRead
    programs: list[PublicProgramRead]


class PublicProgramPage(BaseModel):
    """Registration page for one published program."""

    teacher: PublicTeacherRead
    program: PublicProgramRead


class BookingStudentSummary(BaseModel):
    """Student shown on the confirmation screen."""

    first_name: str
    last_name: str
    email: str


class BookingDetails(BaseModel):
    """Everything the booking confirmation screen shows."""

    booking: BookingRead
    program: PublicProgramRead
    teacher: PublicTeacherRead
    student: BookingStudentSummary
    has_health_form: bool
