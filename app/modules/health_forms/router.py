"""Health forms API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.modules.health_forms.schemas import HealthFormRead, ReviewManyRequest, ReviewSummary
from app.modules.health_forms.service import HealthFormsService, get_health_forms_service
from app.modules.teachers.models import Teacher
from app.modules.teachers.service import get_current_teacher
from app.shared.results import unwrap

router = APIRouter(prefix="/health-forms", tags=["health-forms"])


@router.get("", response_model=list[HealthFormRead])
async def list_program_health_forms(
    program_id: UUID,
    reviewed: bool | None = None,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: HealthFormsService = Depends(get_health_forms_service),
) -> list[HealthFormRead]:
    forms = unwrap(await service.list_program_health_forms(current_teacher.id, program_id, reviewed))
    return [HealthFormRead.model_validate(form) for form in forms]


@router.post("/review", response_model=ReviewSummary)
async def mark_many_reviewed(
    payload: ReviewManyRequest,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: HealthFormsService = Depends(get_health_forms_service),
) -> ReviewSummary:
    """Mark several forms reviewed at once."""
    return unwrap(await service.mark_many_reviewed(current_teacher.id, payload.health_form_ids))


@router.post("/{health_form_id}/review", response_model=HealthFormRead)
async def mark_reviewed(
    health_form_id: UUID,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: HealthFormsService = Depends(get_health_forms_service),
) -> HealthFormRead:
    form = unwrap(await service.mark_reviewed(current_teacher.id, health_form_id))
    return HealthFormRead.model_validate(form)
