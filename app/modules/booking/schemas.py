"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import BookingStatusEnum, PaymentMethodEnum, PaymentStatusEnum


class CancellationRequest(BaseModel):
    """Student or teacher asks to cancel a booking."""

    reason: str | None = Field(default=None, max_length=1000)


class CancellationApproval(BaseModel):
    """Teacher approves a pending cancellation."""

    refund_notes: str | None = Field(default=None, max_length=2000)


class PaymentStatusUpdate(BaseModel):
    """Teacher records a payment status change."""

    payment_status: PaymentStatusEnum


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    program_id: UUID
    teacher_id: UUID
    status: BookingStatusEnum
    payment_status: PaymentStatusEnum
    payment_method: PaymentMethodEnum
    payment_amount: Decimal | None
    payment_currency: str | None
    cancelled_reason: str | None
    cancelled_at: datetime | None
    refund_notes: str | None
    created_at: datetime
    updated_at: datetime


class BookingStudentRead(BaseModel):
    """Student contact shown next to a booking."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str


class ProgramBookingRead(BaseModel):
    """Dashboard row of a program's booking list."""

    booking: BookingRead
    student: BookingStudentRead
    has_health_form: bool
    health_form_reviewed: bool
