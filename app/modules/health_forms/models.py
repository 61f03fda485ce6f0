"""Health forms ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin

if TYPE_CHECKING:
    from app.modules.booking.models import Booking


class HealthForm(BaseModelMixin, Base):
    """Intake questionnaire attached to a booking."""

    __tablename__ = "health_forms"

    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    how_did_you_hear: Mapped[str | None] = mapped_column(String(255), nullable=True)
    previous_practice: Mapped[str | None] = mapped_column(Text, nullable=True)
    has_prior_training: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    prior_training_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    health_conditions: Mapped[list[str]] = mapped_column(ARRAY(String(100)), default=list, nullable=False)
    condition_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_pregnant: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    had_recent_surgery: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    consent_given: Mapped[bool] = mapped_column(Boolean, nullable=False)
    consent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    is_reviewed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("teachers.id", ondelete="SET NULL"),
        nullable=True,
    )

    booking: Mapped["Booking"] = relationship(back_populates="health_form")
