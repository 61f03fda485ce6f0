"""Health forms schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HealthFormSubmission(BaseModel):
    """Intake questionnaire submitted with a registration."""

    how_did_you_hear: str | None = Field(default=None, max_length=255)
    previous_practice: str | None = Field(default=None, max_length=2000)
    has_prior_training: bool = False
    prior_training_details: str | None = Field(default=None, max_length=2000)
    health_conditions: list[str] = Field(default_factory=list, max_length=50)
    condition_details: str | None = Field(default=None, max_length=5000)
    is_pregnant: bool = False
    had_recent_surgery: bool = False
    consent_given: bool

    @field_validator("consent_given")
    @classmethod
    def require_consent(cls, value: bool) -> bool:
        if value is not True:
            raise ValueError("You must accept the terms and conditions")
        return value

    @field_validator("health_conditions")
    @classmethod
    def clean_conditions(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]


class HealthFormRead(BaseModel):
    """Health form response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    student_id: UUID
    how_did_you_hear: str | None
    previous_practice: str | None
    has_prior_training: bool
    prior_training_details: str | None
    health_conditions: list[str]
    condition_details: str | None
    is_pregnant: bool
    had_recent_surgery: bool
    consent_given: bool
    consent_at: datetime
    is_reviewed: bool
    reviewed_at: datetime | None
    reviewed_by: UUID | None
    created_at: datetime


class ReviewManyRequest(BaseModel):
    """Batch review request."""

    health_form_ids: list[UUID] = Field(min_length=1, max_length=200)


class ReviewSummary(BaseModel):
    """How many forms a batch review changed."""

    reviewed: int
    already_reviewed: int
