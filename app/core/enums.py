"""Core enums used across modules."""

from enum import StrEnum


class ProgramStatusEnum(StrEnum):
    """Program lifecycle status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class VenueTypeEnum(StrEnum):
    """Where a program takes place."""

    IN_PERSON = "in_person"
    ONLINE = "online"
    HYBRID = "hybrid"


class MeetingProviderEnum(StrEnum):
    """Online meeting provider."""

    ZOOM = "zoom"
    GOOGLE_MEET = "google_meet"
    CUSTOM = "custom"


class TemplateFormatEnum(StrEnum):
    """Schedule template format."""

    MULTI_DAY = "multi_day"
    SINGLE_DAY = "single_day"
    HALF_DAY = "half_day"
    CUSTOM = "custom"


class BookingStatusEnum(StrEnum):
    """Booking lifecycle status."""

    PENDING_PAYMENT = "pending_payment"
    CONFIRMED = "confirmed"
    WAITLISTED = "waitlisted"
    WAITLIST_OFFERED = "waitlist_offered"
    CANCELLATION_REQUESTED = "cancellation_requested"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class PaymentStatusEnum(StrEnum):
    """Booking payment status."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    WAIVED = "waived"


class PaymentMethodEnum(StrEnum):
    """How the student pays for a booking."""

    ONLINE = "online"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    FREE = "free"


class GenderEnum(StrEnum):
    """Student gender."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
