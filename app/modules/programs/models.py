"""Programs ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import BaseModel, TypeAdapter
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from app.core.database import Base, BaseModelMixin
from app.core.enums import (
    MeetingProviderEnum,
    ProgramStatusEnum,
    TemplateFormatEnum,
    VenueTypeEnum,
)
from app.modules.programs.schemas import SessionEntry, TemplateSession

if TYPE_CHECKING:
    from app.modules.booking.models import Booking
    from app.modules.teachers.models import Teacher
    from app.modules.venues.models import Venue

PROGRAM_NAME_MAX_LENGTH = 120
PROGRAM_SLUG_MAX_LENGTH = 100


class _TypedJSONList(TypeDecorator):
    """JSONB column holding a list of pydantic records."""

    impl = JSONB
    cache_ok = True

    def __init__(self, item_type: type[BaseModel]) -> None:
        super().__init__()
        self.item_type = item_type
        self._adapter = TypeAdapter(list[item_type])

    def process_bind_param(self, value: Any, dialect) -> list[dict] | None:
        if value is None:
            return None
        items = self._adapter.validate_python(value)
        return [item.model_dump(mode="json") for item in items]

    def process_result_value(self, value: Any, dialect) -> list[BaseModel] | None:
        if value is None:
            return None
        return self._adapter.validate_python(value)


class SessionListType(_TypedJSONList):
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(SessionEntry)


class TemplateSessionListType(_TypedJSONList):
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(TemplateSession)


class ScheduleTemplate(BaseModelMixin, Base):
    """Reusable default-session blueprint."""

    __tablename__ = "schedule_templates"
    __table_args__ = (
        CheckConstraint(
            "(is_platform_template AND teacher_id IS NULL) "
            "OR (NOT is_platform_template AND teacher_id IS NOT NULL)",
            name="platform_or_owned",
        ),
    )

    teacher_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("teachers.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    format_type: Mapped[TemplateFormatEnum] = mapped_column(
        SAEnum(TemplateFormatEnum, name="template_format_enum", native_enum=False),
        default=TemplateFormatEnum.CUSTOM,
        nullable=False,
    )
    default_sessions: Mapped[list[TemplateSession]] = mapped_column(
        TemplateSessionListType(),
        default=list,
        nullable=False,
    )
    default_capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    default_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    default_currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    default_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_what_to_bring: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_preparation: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_platform_template: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class Program(BaseModelMixin, Base):
    """Scheduled course offering published by a teacher."""

    __tablename__ = "programs"
    __table_args__ = (
        UniqueConstraint("teacher_id", "slug", name="uq_programs_teacher_id_slug"),
        CheckConstraint("capacity IS NULL OR capacity > 0", name="capacity_positive"),
        CheckConstraint(
            "is_free OR (price_amount IS NOT NULL AND price_amount > 0)",
            name="paid_has_price",
        ),
    )

    teacher_id: Mapped[UUID] = mapped_column(
        ForeignKey("teachers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    template_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("schedule_templates.id", ondelete="SET NULL"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(PROGRAM_NAME_MAX_LENGTH), nullable=False)
    slug: Mapped[str] = mapped_column(String(PROGRAM_SLUG_MAX_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ProgramStatusEnum] = mapped_column(
        SAEnum(ProgramStatusEnum, name="program_status_enum", native_enum=False),
        default=ProgramStatusEnum.DRAFT,
        nullable=False,
        index=True,
    )

    venue_type: Mapped[VenueTypeEnum] = mapped_column(
        SAEnum(VenueTypeEnum, name="venue_type_enum", native_enum=False),
        nullable=False,
    )
    venue_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("venues.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    online_meeting_provider: Mapped[MeetingProviderEnum | None] = mapped_column(
        SAEnum(MeetingProviderEnum, name="meeting_provider_enum", native_enum=False),
        nullable=True,
    )
    online_meeting_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    sessions: Mapped[list[SessionEntry]] = mapped_column(SessionListType(), default=list, nullable=False)
    registration_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_free: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    price_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    price_currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    allow_pay_at_venue: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    what_to_bring: Mapped[str | None] = mapped_column(Text, nullable=True)
    preparation_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_policy_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    requires_health_form: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    teacher: Mapped["Teacher"] = relationship(back_populates="programs")
    venue: Mapped["Venue | None"] = relationship(back_populates="programs")
    template: Mapped[ScheduleTemplate | None] = relationship()
    bookings: Mapped[list["Booking"]] = relationship(back_populates="program", passive_deletes=True)
