"""Health forms business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.modules.booking.repository import BookingRepository
from app.modules.health_forms.models import HealthForm
from app.modules.health_forms.repository import HealthFormsRepository
from app.modules.health_forms.schemas import ReviewSummary
from app.shared.exceptions import NotFoundException
from app.shared.results import OperationResult, Success, service_operation
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)


class HealthFormsService:
    """Teacher review workflow for intake forms."""

    def __init__(
        self,
        health_forms_repository: HealthFormsRepository,
        booking_repository: BookingRepository,
    ) -> None:
        self.health_forms_repository = health_forms_repository
        self.booking_repository = booking_repository

    def _mark(self, health_form: HealthForm, teacher_id: UUID) -> bool:
        if health_form.is_reviewed:
            return False
        health_form.is_reviewed = True
        health_form.reviewed_at = utc_now()
        health_form.reviewed_by = teacher_id
        return True

    @service_operation("Failed to load health forms")
    async def list_program_health_forms(
        self,
        teacher_id: UUID,
        program_id: UUID,
        reviewed: bool | None = None,
    ) -> OperationResult[list[HealthForm]]:
        if not await self.booking_repository.teacher_owns_program(teacher_id, program_id):
            raise NotFoundException("Program not found")
        return Success(await self.health_forms_repository.list_program_health_forms(program_id, reviewed))

    @service_operation("Failed to mark health form as reviewed")
    async def mark_reviewed(self, teacher_id: UUID, health_form_id: UUID) -> OperationResult[HealthForm]:
        """Mark one form reviewed; reviewing it again changes nothing."""
        forms = await self.health_forms_repository.get_teacher_health_forms(teacher_id, [health_form_id])
        if not forms:
            raise NotFoundException("Health form not found")
        health_form = forms[0]
        if self._mark(health_form, teacher_id):
            await self.health_forms_repository.save()
        return Success(health_form)

    @service_operation("Failed to mark health forms as reviewed")
    async def mark_many_reviewed(
        self,
        teacher_id: UUID,
        health_form_ids: list[UUID],
    ) -> OperationResult[ReviewSummary]:
        """Review a batch; nothing changes unless the teacher owns every form."""
        requested = set(health_form_ids)
        forms = await self.health_forms_repository.get_teacher_health_forms(teacher_id, requested)
        if len(forms) != len(requested):
            raise NotFoundException(
                "Some health forms were not found",
                {"missing": sorted(str(form_id) for form_id in requested - {form.id for form in forms})},
            )

        changed = sum(1 for form in forms if self._mark(form, teacher_id))
        if changed:
            await self.health_forms_repository.save()
        logger.info("Teacher %s reviewed %s health forms", teacher_id, changed)
        return Success(ReviewSummary(reviewed=changed, already_reviewed=len(forms) - changed))


async def get_health_forms_service(session: AsyncSession = Depends(get_db_session)) -> HealthFormsService:
    """Dependency provider for health forms service."""
    return HealthFormsService(HealthFormsRepository(session), BookingRepository(session))
