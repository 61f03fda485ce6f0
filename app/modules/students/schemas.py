"""Students schemas."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from app.core.enums import BookingStatusEnum, GenderEnum, PaymentStatusEnum


def normalize_email(value: str) -> str:
    """Emails identify students per teacher, compare them case-insensitively."""
    return value.strip().lower()


class StudentContact(BaseModel):
    """Contact data submitted with every registration."""

    first_name: str = Field(min_length=2, max_length=100)
    last_name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    date_of_birth: dt.date | None = None
    gender: GenderEnum | None = None
    phone: str = Field(min_length=10, max_length=32)
    whatsapp_phone: str | None = Field(default=None, max_length=32)
    emergency_contact_name: str = Field(min_length=2, max_length=100)
    emergency_contact_relation: str = Field(min_length=2, max_length=100)
    emergency_contact_phone: str = Field(min_length=10, max_length=32)

    @field_validator("first_name", mode="before")
    @classmethod
    def check_first_name(cls, value: str) -> str:
        if not isinstance(value, str) or len(value.strip()) < 2:
            raise ValueError("First name must be at least 2 characters")
        return value.strip()

    @field_validator("last_name", mode="before")
    @classmethod
    def check_last_name(cls, value: str) -> str:
        if not isinstance(value, str) or len(value.strip()) < 2:
            raise ValueError("Last name must be at least 2 characters")
        return value.strip()

    @field_validator("email", mode="wrap")
    @classmethod
    def check_email(cls, value: object, handler: ValidatorFunctionWrapHandler) -> str:
        if not isinstance(value, str):
            raise ValueError("Invalid email address")
        try:
            return handler(normalize_email(value))
        except ValidationError as exc:
            raise ValueError("Invalid email address") from exc

    @field_validator("phone", "emergency_contact_phone", mode="before")
    @classmethod
    def check_phone(cls, value: str) -> str:
        if not isinstance(value, str) or len(value.strip()) < 10:
            raise ValueError("Phone number must be at least 10 digits")
        return value.strip()

    @field_validator("emergency_contact_name", mode="before")
    @classmethod
    def check_emergency_name(cls, value: str) -> str:
        if not isinstance(value, str) or len(value.strip()) < 2:
            raise ValueError("Emergency contact name is required")
        return value.strip()

    @field_validator("emergency_contact_relation", mode="before")
    @classmethod
    def check_emergency_relation(cls, value: str) -> str:
        if not isinstance(value, str) or len(value.strip()) < 2:
            raise ValueError("Emergency contact relation is required")
        return value.strip()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def contact_fields(self) -> dict:
        """Columns overwritten on every registration."""
        fields = self.model_dump(exclude={"email"})
        fields["name"] = self.full_name
        return fields


class StudentUpdate(BaseModel):
    """Dashboard edit of a student's contact data."""

    first_name: str | None = Field(default=None, min_length=2, max_length=100)
    last_name: str | None = Field(default=None, min_length=2, max_length=100)
    date_of_birth: dt.date | None = None
    gender: GenderEnum | None = None
    phone: str | None = Field(default=None, min_length=10, max_length=32)
    whatsapp_phone: str | None = Field(default=None, max_length=32)
    emergency_contact_name: str | None = Field(default=None, min_length=2, max_length=100)
    emergency_contact_relation: str | None = Field(default=None, min_length=2, max_length=100)
    emergency_contact_phone: str | None = Field(default=None, min_length=10, max_length=32)


class StudentTagsUpdate(BaseModel):
    """Replace a student's tag set."""

    tags: list[str] = Field(max_length=50)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value: list[str]) -> list[str]:
        unique: list[str] = []
        for raw in value:
            tag = raw.strip()
            if not 1 <= len(tag) <= 50:
                raise ValueError("Tags must be between 1 and 50 characters")
            if tag not in unique:
                unique.append(tag)
        return unique


class StudentNotesUpdate(BaseModel):
    """Replace a student's teacher notes."""

    notes: str | None = Field(default=None, max_length=5000)


class StudentFilters(BaseModel):
    """Dashboard list filters."""

    search: str | None = Field(default=None, max_length=100)
    tag: str | None = Field(default=None, max_length=50)
    program_id: UUID | None = None


class StudentRead(BaseModel):
    """Student response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    teacher_id: UUID
    email: str
    name: str
    first_name: str
    last_name: str
    date_of_birth: dt.date | None
    gender: GenderEnum | None
    phone: str
    whatsapp_phone: str | None
    emergency_contact_name: str | None
    emergency_contact_relation: str | None
    emergency_contact_phone: str | None
    tags: list[str]
    teacher_notes: str | None
    created_at: dt.datetime
    updated_at: dt.datetime


class StudentListItem(BaseModel):
    """Student row with booking aggregates."""

    student: StudentRead
    program_count: int
    last_booking_at: dt.datetime | None


class StudentBookingRead(BaseModel):
    """Booking as shown on a student's detail page."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    program_id: UUID
    program_name: str
    status: BookingStatusEnum
    payment_status: PaymentStatusEnum
    payment_amount: Decimal | None
    payment_currency: str | None
    has_health_form: bool
    health_form_reviewed: bool
    created_at: dt.datetime


class StudentDetail(BaseModel):
    """Student with their bookings."""

    student: StudentRead
    bookings: list[StudentBookingRead]
