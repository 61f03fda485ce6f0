"""Teachers ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin

if TYPE_CHECKING:
    from app.modules.programs.models import Program
    from app.modules.students.models import Student
    from app.modules.venues.models import Venue


class Teacher(BaseModelMixin, Base):
    """Tenant owning programs, venues, students and bookings."""

    __tablename__ = "teachers"

    auth_user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    languages: Mapped[list[str]] = mapped_column(ARRAY(String(32)), default=list, nullable=False)
    photo_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    onboarding_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    programs: Mapped[list["Program"]] = relationship(back_populates="teacher")
    venues: Mapped[list["Venue"]] = relationship(back_populates="teacher")
    students: Mapped[list["Student"]] = relationship(back_populates="teacher")
