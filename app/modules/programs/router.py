"""Programs API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import ProgramStatusEnum
from app.modules.programs.schemas import (
    ProgramCreate,
    ProgramRead,
    ProgramStatusUpdate,
    ProgramSummary,
    SaveAsTemplateRequest,
    ScheduleTemplateRead,
    SlugAvailability,
)
from app.modules.programs.service import ProgramsService, get_programs_service
from app.modules.teachers.models import Teacher
from app.modules.teachers.service import get_current_teacher
from app.shared.results import unwrap

router = APIRouter(prefix="/programs", tags=["programs"])


@router.get("", response_model=list[ProgramSummary])
async def list_programs(
    program_status: ProgramStatusEnum | None = Query(default=None, alias="status"),
    current_teacher: Teacher = Depends(get_current_teacher),
    service: ProgramsService = Depends(get_programs_service),
) -> list[ProgramSummary]:
    """Dashboard program list with booking counts."""
    rows = unwrap(await service.list_programs(current_teacher.id, program_status))
    return [
        ProgramSummary(program=ProgramRead.model_validate(program), booking_count=count)
        for program, count in rows
    ]


@router.post("", response_model=ProgramRead, status_code=status.HTTP_201_CREATED)
async def create_program(
    payload: ProgramCreate,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: ProgramsService = Depends(get_programs_service),
) -> ProgramRead:
    program = unwrap(await service.create_program(current_teacher.id, payload))
    return ProgramRead.model_validate(program)


@router.get("/templates", response_model=list[ScheduleTemplateRead])
async def list_templates(
    current_teacher: Teacher = Depends(get_current_teacher),
    service: ProgramsService = Depends(get_programs_service),
) -> list[ScheduleTemplateRead]:
    """Platform templates followed by the teacher's own."""
    templates = unwrap(await service.list_templates(current_teacher.id))
    return [ScheduleTemplateRead.model_validate(template) for template in templates]


@router.get("/check-slug", response_model=SlugAvailability)
async def check_program_slug(
    slug: str = Query(min_length=1, max_length=100),
    current_teacher: Teacher = Depends(get_current_teacher),
    service: ProgramsService = Depends(get_programs_service),
) -> SlugAvailability:
    available = unwrap(await service.check_program_slug(current_teacher.id, slug))
    return SlugAvailability(slug=slug, available=available)


@router.post("/{program_id}/status", response_model=ProgramRead)
async def update_program_status(
    program_id: UUID,
    payload: ProgramStatusUpdate,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: ProgramsService = Depends(get_programs_service),
) -> ProgramRead:
    """Move a program along its lifecycle."""
    program = unwrap(await service.update_program_status(current_teacher.id, program_id, payload.status))
    return ProgramRead.model_validate(program)


@router.post("/{program_id}/duplicate", response_model=ProgramRead, status_code=status.HTTP_201_CREATED)
async def duplicate_program(
    program_id: UUID,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: ProgramsService = Depends(get_programs_service),
) -> ProgramRead:
    program = unwrap(await service.duplicate_program(current_teacher.id, program_id))
    return ProgramRead.model_validate(program)


@router.delete("/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_program(
    program_id: UUID,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: ProgramsService = Depends(get_programs_service),
) -> None:
    """Delete a draft program that has no bookings."""
    unwrap(await service.delete_program(current_teacher.id, program_id))


@router.post("/{program_id}/template", response_model=ScheduleTemplateRead, status_code=status.HTTP_201_CREATED)
async def save_as_template(
    program_id: UUID,
    payload: SaveAsTemplateRequest,
    current_teacher: Teacher = Depends(get_current_teacher),
    service: ProgramsService = Depends(get_programs_service),
) -> ScheduleTemplateRead:
    """Snapshot a program's schedule and defaults into a reusable template."""
    template = unwrap(await service.save_as_template(current_teacher.id, program_id, payload.name))
    return ScheduleTemplateRead.model_validate(template)
