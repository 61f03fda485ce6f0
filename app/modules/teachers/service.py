"""Teachers business logic layer."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.security import IdentityClaims, bearer_scheme, claims_from_payload, decode_token
from app.modules.students.schemas import normalize_email
from app.modules.teachers.models import Teacher
from app.modules.teachers.repository import TeachersRepository
from app.modules.teachers.schemas import (
    RESERVED_TEACHER_SLUGS,
    OnboardingRequest,
    is_valid_teacher_slug,
)
from app.shared.exceptions import ConflictException, NotFoundException, UnauthorizedException
from app.shared.results import OperationResult, Success, service_operation, unwrap, validate_payload
from app.shared.utils import slugify

logger = logging.getLogger(__name__)

SLUG_TAKEN_MESSAGE = "This URL is already taken. Please choose a different one."
MAX_PROVISION_ATTEMPTS = 5


def post_auth_redirect(teacher: Teacher) -> str:
    """Where a freshly signed-in teacher lands."""
    return "/dashboard" if teacher.onboarding_completed else "/onboarding"


def display_name(identity: IdentityClaims, email: str) -> str:
    return identity.name or identity.full_name or email.split("@")[0] or "Teacher"


class TeachersService:
    """Teacher provisioning and onboarding."""

    def __init__(self, repository: TeachersRepository) -> None:
        self.repository = repository

    async def _unique_slug(self, name: str) -> str:
        base = slugify(name)[:40].strip("-") or "teacher"
        candidate = base
        counter = 1
        while candidate in RESERVED_TEACHER_SLUGS or await self.repository.slug_exists(candidate):
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate

    async def _find_existing(self, identity: IdentityClaims, email: str) -> Teacher | None:
        teacher = await self.repository.get_by_auth_user_id(identity.user_id)
        if teacher is not None:
            return teacher
        return await self.repository.get_by_email(email)

    @service_operation("Failed to load teacher profile")
    async def ensure_teacher_exists(self, identity: IdentityClaims) -> OperationResult[tuple[Teacher, bool]]:
        """Map an authenticated identity to its teacher, provisioning one on first sight.

        Lookup goes by identity id, then by email (a provider switch re-keys the
        row). Returns ``(teacher, is_new)``.
        """
        teacher = await self.repository.get_by_auth_user_id(identity.user_id)
        if teacher is not None:
            return Success((teacher, False))

        if not identity.email:
            raise UnauthorizedException("Identity provider did not supply an email address")
        email = normalize_email(identity.email)

        teacher = await self.repository.get_by_email(email)
        if teacher is not None:
            logger.info("Re-keying teacher %s to identity %s", teacher.id, identity.user_id)
            await self.repository.update_teacher(teacher, auth_user_id=identity.user_id)
            return Success((teacher, False))

        name = display_name(identity, email)[:100]
        for _ in range(MAX_PROVISION_ATTEMPTS):
            slug = await self._unique_slug(name)
            try:
                teacher = await self.repository.create_teacher(
                    auth_user_id=identity.user_id,
                    email=email,
                    name=name,
                    slug=slug,
                    languages=[],
                    photo_url=identity.avatar_url,
                    onboarding_completed=False,
                )
            except IntegrityError:
                existing = await self._find_existing(identity, email)
                if existing is not None:
                    return Success((existing, False))
                logger.info("Teacher slug %s taken concurrently, retrying", slug)
                continue
            logger.info("Provisioned teacher %s for identity %s", teacher.id, identity.user_id)
            return Success((teacher, True))

        raise ConflictException("Could not allocate a profile URL. Please try again.")

    @service_operation("Failed to complete onboarding")
    async def complete_onboarding(
        self,
        teacher_id: UUID,
        payload: OnboardingRequest | dict[str, Any],
    ) -> OperationResult[Teacher]:
        data = validate_payload(OnboardingRequest, payload)
        teacher = await self.repository.get_by_id(teacher_id)
        if teacher is None:
            raise NotFoundException("Teacher not found")

        owner = await self.repository.get_by_slug(data.slug)
        if owner is not None and owner.id != teacher.id:
            raise ConflictException(SLUG_TAKEN_MESSAGE)

        try:
            await self.repository.update_teacher(
                teacher,
                name=data.name,
                slug=data.slug,
                city=data.city,
                country=data.country,
                languages=data.languages,
                photo_url=str(data.photo_url) if data.photo_url else None,
                bio=data.bio or None,
                onboarding_completed=True,
            )
        except IntegrityError as exc:
            raise ConflictException(SLUG_TAKEN_MESSAGE) from exc
        return Success(teacher)

    @service_operation("Failed to check URL availability")
    async def check_teacher_slug(self, slug: str, teacher_id: UUID | None = None) -> OperationResult[bool]:
        if not is_valid_teacher_slug(slug):
            return Success(False)
        owner = await self.repository.get_by_slug(slug)
        return Success(owner is None or owner.id == teacher_id)


async def get_teachers_service(session: AsyncSession = Depends(get_db_session)) -> TeachersService:
    """Dependency provider for teachers service."""
    return TeachersService(TeachersRepository(session))


async def get_identity_claims(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> IdentityClaims:
    """Decode the bearer token issued by the identity provider."""
    return claims_from_payload(decode_token(credentials.credentials))


async def get_current_teacher(
    identity: IdentityClaims = Depends(get_identity_claims),
    service: TeachersService = Depends(get_teachers_service),
) -> Teacher:
    """Resolve the acting teacher, provisioning one on first sign-in."""
    teacher, _ = unwrap(await service.ensure_teacher_exists(identity))
    return teacher
