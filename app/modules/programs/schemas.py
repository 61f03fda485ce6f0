"""Programs schemas."""

from __future__ import annotations

import re
import datetime as dt
from decimal import Decimal
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.enums import (
    MeetingProviderEnum,
    ProgramStatusEnum,
    TemplateFormatEnum,
    VenueTypeEnum,
)
from app.modules.venues.schemas import VenueCreate
from app.shared.utils import SLUG_REGEX

RESERVED_PROGRAM_SLUGS = frozenset(
    {
        "new",
        "edit",
        "settings",
        "bookings",
        "students",
        "create",
        "all",
        "upcoming",
        "past",
        "draft",
        "published",
    },
)

_SCHEME_REGEX = re.compile(r"^https?://", re.IGNORECASE)


class SessionEntry(BaseModel):
    """One dated meeting of a program."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    start_time: dt.time
    end_time: dt.time
    title: str = Field(min_length=1, max_length=100)

    @model_validator(mode="after")
    def check_time_order(self) -> "SessionEntry":
        if self.end_time <= self.start_time:
            raise ValueError("Session end time must be after its start time")
        return self


class TemplateSession(BaseModel):
    """Session blueprint relative to a program's first day."""

    model_config = ConfigDict(frozen=True)

    day_offset: int = Field(ge=0)
    start_time: dt.time
    end_time: dt.time
    label: str = Field(min_length=1, max_length=100)


def sessions_to_template(sessions: list[SessionEntry]) -> list[TemplateSession]:
    """Convert dated sessions into offsets from the earliest session date."""
    if not sessions:
        return []
    first_day = min(entry.date for entry in sessions)
    return [
        TemplateSession(
            day_offset=(entry.date - first_day).days,
            start_time=entry.start_time,
            end_time=entry.end_time,
            label=entry.title,
        )
        for entry in sessions
    ]


def _validate_slug(value: str) -> str:
    if not SLUG_REGEX.match(value):
        raise ValueError("Slug can only contain lowercase letters, numbers, and hyphens")
    if value in RESERVED_PROGRAM_SLUGS:
        raise ValueError("This slug is reserved. Please choose a different one.")
    return value


class ProgramCreate(BaseModel):
    """Create program request."""

    template_id: UUID
    name: str = Field(min_length=3, max_length=100)
    slug: str = Field(min_length=3, max_length=50)
    description: str | None = Field(default=None, max_length=2000)

    venue_type: VenueTypeEnum
    venue_id: UUID | None = None
    new_venue: VenueCreate | None = None

    online_meeting_provider: MeetingProviderEnum | None = None
    online_meeting_url: str | None = None

    sessions: list[SessionEntry]
    registration_deadline: dt.datetime | None = None

    capacity: int | None = Field(default=None, gt=0)
    is_free: bool
    price_amount: Decimal | None = Field(default=None, max_digits=10, decimal_places=2)
    price_currency: str = Field(default="USD", min_length=3, max_length=3)
    allow_pay_at_venue: bool = False

    notes: str | None = Field(default=None, max_length=2000)
    what_to_bring: str | None = Field(default=None, max_length=2000)
    preparation_instructions: str | None = Field(default=None, max_length=2000)
    cancellation_policy_text: str | None = Field(default=None, max_length=2000)
    requires_health_form: bool = False

    status: ProgramStatusEnum = ProgramStatusEnum.DRAFT

    @field_validator("slug")
    @classmethod
    def check_slug(cls, value: str) -> str:
        return _validate_slug(value)

    @field_validator("sessions")
    @classmethod
    def require_sessions(cls, value: list[SessionEntry]) -> list[SessionEntry]:
        if not value:
            raise ValueError("At least one session is required")
        return value

    @field_validator("price_currency")
    @classmethod
    def normalize_currency(cls, value: str) -> str:
        return value.upper()

    @field_validator("online_meeting_url")
    @classmethod
    def normalize_meeting_url(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        value = value.strip()
        if not _SCHEME_REGEX.match(value):
            value = f"https://{value}"
        parsed = urlparse(value)
        if not parsed.netloc or " " in value:
            raise ValueError("Please enter a valid URL")
        return value

    @model_validator(mode="after")
    def check_consistency(self) -> "ProgramCreate":
        if self.status not in (ProgramStatusEnum.DRAFT, ProgramStatusEnum.PUBLISHED):
            raise ValueError("New programs must start as draft or published")
        if not self.is_free and (self.price_amount is None or self.price_amount <= 0):
            raise ValueError("Price is required for paid programs")
        in_person = self.venue_type in (VenueTypeEnum.IN_PERSON, VenueTypeEnum.HYBRID)
        online = self.venue_type in (VenueTypeEnum.ONLINE, VenueTypeEnum.HYBRID)
        if in_person and self.venue_id is None and self.new_venue is None:
            raise ValueError("Venue is required for in-person programs")
        if online and (self.online_meeting_provider is None or self.online_meeting_url is None):
            raise ValueError("Meeting details are required for online programs")
        return self


class ProgramStatusUpdate(BaseModel):
    """Requested lifecycle transition."""

    status: ProgramStatusEnum


class SaveAsTemplateRequest(BaseModel):
    """Name for the template snapshot."""

    name: str = Field(min_length=2, max_length=100)


class ProgramRead(BaseModel):
    """Program response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    teacher_id: UUID
    template_id: UUID | None
    name: str
    slug: str
    description: str | None
    status: ProgramStatusEnum
    venue_type: VenueTypeEnum
    venue_id: UUID | None
    online_meeting_provider: MeetingProviderEnum | None
    online_meeting_url: str | None
    sessions: list[SessionEntry]
    registration_deadline: dt.datetime | None
    capacity: int | None
    is_free: bool
    price_amount: Decimal | None
    price_currency: str
    allow_pay_at_venue: bool
    notes: str | None
    what_to_bring: str | None
    preparation_instructions: str | None
    cancellation_policy_text: str | None
    requires_health_form: bool
    created_at: dt.datetime
    updated_at: dt.datetime


class ProgramSummary(BaseModel):
    """Dashboard list row."""

    program: ProgramRead
    booking_count: int


class PublicVenueRead(BaseModel):
    """Venue as shown on the public page."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    address: str
    city: str
    country: str


class PublicProgramRead(BaseModel):
    """Published program with remaining capacity; meeting links stay private."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    teacher_id: UUID
    name: str
    slug: str
    description: str | None
    venue_type: VenueTypeEnum
    venue: PublicVenueRead | None
    online_meeting_provider: MeetingProviderEnum | None
    sessions: list[SessionEntry]
    registration_deadline: dt.datetime | None
    capacity: int | None
    is_free: bool
    price_amount: Decimal | None
    price_currency: str
    allow_pay_at_venue: bool
    notes: str | None
    what_to_bring: str | None
    preparation_instructions: str | None
    cancellation_policy_text: str | None
    requires_health_form: bool

    active_bookings: int = 0
    spots_left: int | None = None
    is_full: bool = False


class ScheduleTemplateRead(BaseModel):
    """Schedule template response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    teacher_id: UUID | None
    name: str
    format_type: TemplateFormatEnum
    default_sessions: list[TemplateSession]
    default_capacity: int | None
    default_price: Decimal | None
    default_currency: str
    default_notes: str | None
    default_what_to_bring: str | None
    default_preparation: str | None
    is_platform_template: bool


class SlugAvailability(BaseModel):
    """Slug availability check response."""

    slug: str
    available: bool
