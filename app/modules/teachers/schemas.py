"""Teachers schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from app.shared.utils import SLUG_REGEX

RESERVED_TEACHER_SLUGS = frozenset(
    {
        "admin",
        "api",
        "auth",
        "dashboard",
        "login",
        "register",
        "onboarding",
        "settings",
        "help",
        "support",
        "about",
        "terms",
        "privacy",
        "blog",
        "pricing",
        "shala",
    },
)


def is_valid_teacher_slug(value: str) -> bool:
    return 3 <= len(value) <= 50 and bool(SLUG_REGEX.match(value)) and value not in RESERVED_TEACHER_SLUGS


class OnboardingRequest(BaseModel):
    """Profile completion submitted after first sign-in."""

    name: str = Field(min_length=2, max_length=100)
    slug: str = Field(min_length=3, max_length=50)
    city: str = Field(min_length=1, max_length=100)
    country: str = Field(min_length=1, max_length=100)
    languages: list[str] = Field(min_length=1)
    photo_url: HttpUrl | None = None
    bio: str | None = Field(default=None, max_length=500)

    @field_validator("name", "city", "country", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("slug")
    @classmethod
    def check_slug(cls, value: str) -> str:
        if not SLUG_REGEX.match(value):
            raise ValueError("URL can only contain lowercase letters, numbers, and hyphens")
        if value in RESERVED_TEACHER_SLUGS:
            raise ValueError("This URL is reserved. Please choose a different one.")
        return value


class TeacherRead(BaseModel):
    """Teacher response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    slug: str
    name: str
    bio: str | None
    city: str | None
    country: str | None
    languages: list[str]
    photo_url: str | None
    onboarding_completed: bool
    created_at: datetime
    updated_at: datetime


class TeacherSession(BaseModel):
    """Signed-in teacher plus where the client should go next."""

    teacher: TeacherRead
    is_new: bool
    redirect_to: str


class PublicTeacherRead(BaseModel):
    """Teacher profile as shown on the public page."""

    model_config = ConfigDict(from_attributes=True)

    slug: str
    name: str
    bio: str | None
    city: str | None
    country: str | None
    languages: list[str]
    photo_url: str | None
