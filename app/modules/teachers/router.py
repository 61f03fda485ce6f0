"""Teachers API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.core.security import IdentityClaims
from app.modules.programs.schemas import SlugAvailability
from app.modules.teachers.models import Teacher
from app.modules.teachers.schemas import OnboardingRequest, TeacherRead, TeacherSession
from app.modules.teachers.service import (
    TeachersService,
    get_current_teacher,
    get_identity_claims,
    get_teachers_service,
    post_auth_redirect,
)
from app.shared.results import unwrap

router = APIRouter(prefix="/teachers", tags=["teachers"])


@router.get("/me", response_model=TeacherSession)
async def get_me(
    identity: IdentityClaims = Depends(get_identity_claims),
    service: TeachersService = Depends(get_teachers_service),
) -> TeacherSession:
    """Return the signed-in teacher, creating the profile on first visit."""
    teacher, is_new = unwrap(await service.ensure_teacher_exists(identity))
    return TeacherSession(
        teacher=TeacherRead.model_validate(teacher),
        is_new=is_new,
        redirect_to=post_auth_redirect(teacher),
    )


@router.post("/me/onboarding", response_model=TeacherRead)
async def complete_onboarding(
    payload: OnboardingRequest,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: TeachersService = Depends(get_teachers_service),
) -> TeacherRead:
    """Complete the public profile."""
    teacher = unwrap(await service.complete_onboarding(current_teacher.id, payload))
    return TeacherRead.model_validate(teacher)


@router.get("/check-slug", response_model=SlugAvailability)
async def check_slug(
    slug: str = Query(min_length=1, max_length=100),
    current_teacher: Teacher = Depends(get_current_teacher),
    service: TeachersService = Depends(get_teachers_service),
) -> SlugAvailability:
    """Check whether a public profile URL is free."""
    available = unwrap(await service.check_teacher_slug(slug, current_teacher.id))
    return SlugAvailability(slug=slug, available=available)
