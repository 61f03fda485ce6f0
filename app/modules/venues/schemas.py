"""Venues schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VenueCreate(BaseModel):
    """Create venue request."""

    name: str = Field(min_length=2, max_length=100)
    address: str = Field(min_length=5, max_length=500)
    city: str = Field(min_length=2, max_length=100)
    country: str = Field(min_length=2, max_length=100)
    capacity: int | None = Field(default=None, gt=0)
    notes: str | None = Field(default=None, max_length=2000)
    is_shared: bool = False


class VenueUpdate(BaseModel):
    """Update venue request; omitted fields are left as they are."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    address: str | None = Field(default=None, min_length=5, max_length=500)
    city: str | None = Field(default=None, min_length=2, max_length=100)
    country: str | None = Field(default=None, min_length=2, max_length=100)
    capacity: int | None = Field(default=None, gt=0)
    notes: str | None = Field(default=None, max_length=2000)
    is_shared: bool | None = None


class VenueRead(BaseModel):
    """Venue response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    teacher_id: UUID
    name: str
    address: str
    city: str
    country: str
    capacity: int | None
    notes: str | None
    is_shared: bool
    created_at: datetime
    updated_at: datetime


class VenueListItem(BaseModel):
    """Venue with the number of programs still using it."""

    venue: VenueRead
    active_program_count: int
