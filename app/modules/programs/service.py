"""Programs business logic layer."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import ProgramStatusEnum, TemplateFormatEnum, VenueTypeEnum
from app.modules.booking.repository import BookingRepository
from app.modules.programs.models import (
    PROGRAM_NAME_MAX_LENGTH,
    PROGRAM_SLUG_MAX_LENGTH,
    Program,
    ScheduleTemplate,
)
from app.modules.programs.repository import ProgramsRepository
from app.modules.programs.schemas import (
    RESERVED_PROGRAM_SLUGS,
    ProgramCreate,
    ProgramStatusUpdate,
    SaveAsTemplateRequest,
    sessions_to_template,
)
from app.modules.teachers.models import Teacher
from app.modules.venues.repository import VenuesRepository
from app.shared.exceptions import BusinessRuleException, ConflictException, NotFoundException
from app.shared.results import OperationResult, Success, service_operation, validate_payload
from app.shared.utils import SLUG_REGEX

logger = logging.getLogger(__name__)

ALLOWED_STATUS_TRANSITIONS: dict[ProgramStatusEnum, frozenset[ProgramStatusEnum]] = {
    ProgramStatusEnum.DRAFT: frozenset({ProgramStatusEnum.PUBLISHED}),
    ProgramStatusEnum.PUBLISHED: frozenset({ProgramStatusEnum.CANCELLED, ProgramStatusEnum.COMPLETED}),
    ProgramStatusEnum.CANCELLED: frozenset(),
    ProgramStatusEnum.COMPLETED: frozenset(),
}
SLUG_TAKEN_MESSAGE = "You already have a program with this slug"
MAX_DUPLICATE_INSERT_ATTEMPTS = 5
COPY_NAME_SUFFIX = " (Copy)"

# Descriptive columns carried over by duplication.
COPIED_PROGRAM_FIELDS = (
    "template_id",
    "description",
    "venue_type",
    "venue_id",
    "online_meeting_provider",
    "online_meeting_url",
    "registration_deadline",
    "capacity",
    "is_free",
    "price_amount",
    "price_currency",
    "allow_pay_at_venue",
    "notes",
    "what_to_bring",
    "preparation_instructions",
    "cancellation_policy_text",
    "requires_health_form",
)


def can_transition(current: ProgramStatusEnum, new: ProgramStatusEnum) -> bool:
    return new in ALLOWED_STATUS_TRANSITIONS.get(current, frozenset())


def _with_suffix(base: str, suffix: str, max_length: int) -> str:
    return base[: max_length - len(suffix)].rstrip("-") + suffix


def copy_name(name: str) -> str:
    return name[: PROGRAM_NAME_MAX_LENGTH - len(COPY_NAME_SUFFIX)].rstrip() + COPY_NAME_SUFFIX


def copy_slug_candidates(slug: str) -> Iterator[str]:
    """Yield ``<slug>-copy``, ``<slug>-copy-2``, ``<slug>-copy-3``...

    The base slug is cut short when needed so every candidate fits the slug column.
    """
    yield _with_suffix(slug, "-copy", PROGRAM_SLUG_MAX_LENGTH)
    suffix = 2
    while True:
        yield _with_suffix(slug, f"-copy-{suffix}", PROGRAM_SLUG_MAX_LENGTH)
        suffix += 1


class ProgramsService:
    """Program lifecycle machine and program queries."""

    def __init__(
        self,
        programs_repository: ProgramsRepository,
        venues_repository: VenuesRepository,
        booking_repository: BookingRepository,
    ) -> None:
        self.programs_repository = programs_repository
        self.venues_repository = venues_repository
        self.booking_repository = booking_repository

    async def _get_owned(self, teacher_id: UUID, program_id: UUID, *, for_update: bool = False) -> Program:
        program = await self.programs_repository.get_teacher_program(teacher_id, program_id, for_update=for_update)
        if program is None:
            raise NotFoundException("Program not found")
        return program

    async def _usable_template(self, teacher_id: UUID, template_id: UUID) -> ScheduleTemplate:
        template = await self.programs_repository.get_template(template_id)
        if template is None or not (template.is_platform_template or template.teacher_id == teacher_id):
            raise NotFoundException("Template not found")
        return template

    async def _resolve_venue_id(self, teacher_id: UUID, data: ProgramCreate) -> UUID | None:
        if data.venue_type == VenueTypeEnum.ONLINE:
            return None
        if data.new_venue is not None:
            venue = await self.venues_repository.create_venue(teacher_id, **data.new_venue.model_dump())
            return venue.id
        venue = await self.venues_repository.get_teacher_venue(teacher_id, data.venue_id)
        if venue is None:
            raise NotFoundException("Venue not found")
        return venue.id

    @service_operation("Failed to create program")
    async def create_program(
        self,
        teacher_id: UUID,
        payload: ProgramCreate | dict[str, Any],
    ) -> OperationResult[Program]:
        data = validate_payload(ProgramCreate, payload)
        await self._usable_template(teacher_id, data.template_id)
        if await self.programs_repository.slug_exists(teacher_id, data.slug):
            raise ConflictException(SLUG_TAKEN_MESSAGE, {"field": "slug"})

        venue_id = await self._resolve_venue_id(teacher_id, data)
        online = data.venue_type in (VenueTypeEnum.ONLINE, VenueTypeEnum.HYBRID)
        try:
            program = await self.programs_repository.create_program(
                teacher_id=teacher_id,
                template_id=data.template_id,
                name=data.name,
                slug=data.slug,
                description=data.description or None,
                status=data.status,
                venue_type=data.venue_type,
                venue_id=venue_id,
                online_meeting_provider=data.online_meeting_provider if online else None,
                online_meeting_url=data.online_meeting_url if online else None,
                sessions=list(data.sessions),
                registration_deadline=data.registration_deadline,
                capacity=data.capacity,
                is_free=data.is_free,
                price_amount=None if data.is_free else data.price_amount,
                price_currency=data.price_currency,
                allow_pay_at_venue=data.allow_pay_at_venue,
                notes=data.notes or None,
                what_to_bring=data.what_to_bring or None,
                preparation_instructions=data.preparation_instructions or None,
                cancellation_policy_text=data.cancellation_policy_text or None,
                requires_health_form=data.requires_health_form,
            )
        except IntegrityError as exc:
            raise ConflictException(SLUG_TAKEN_MESSAGE, {"field": "slug"}) from exc
        logger.info("Program %s created for teacher %s", program.id, teacher_id)
        return Success(program)

    @service_operation("Failed to load templates")
    async def list_templates(self, teacher_id: UUID) -> OperationResult[list[ScheduleTemplate]]:
        return Success(await self.programs_repository.list_templates(teacher_id))

    @service_operation("Failed to check slug availability")
    async def check_program_slug(self, teacher_id: UUID, slug: str) -> OperationResult[bool]:
        if len(slug) < 3 or not SLUG_REGEX.match(slug) or slug in RESERVED_PROGRAM_SLUGS:
            return Success(False)
        return Success(not await self.programs_repository.slug_exists(teacher_id, slug))

    @service_operation("Failed to update program status")
    async def update_program_status(
        self,
        teacher_id: UUID,
        program_id: UUID,
        new_status: ProgramStatusEnum | str,
    ) -> OperationResult[Program]:
        data = validate_payload(ProgramStatusUpdate, {"status": new_status})
        program = await self._get_owned(teacher_id, program_id, for_update=True)
        if not can_transition(program.status, data.status):
            raise ConflictException(
                f"Cannot change from {program.status.name} to {data.status.name}",
                {"from": program.status.value, "to": data.status.value},
            )
        program.status = data.status
        await self.programs_repository.save(program)
        logger.info("Program %s moved to %s", program.id, program.status.value)
        return Success(program)

    async def _next_free_slug(self, teacher_id: UUID, candidates: Iterator[str]) -> str:
        slug = next(candidates)
        while await self.programs_repository.slug_exists(teacher_id, slug):
            slug = next(candidates)
        return slug

    @service_operation("Failed to duplicate program")
    async def duplicate_program(self, teacher_id: UUID, program_id: UUID) -> OperationResult[Program]:
        """Copy a program into a new DRAFT without sessions under the first free ``-copy`` slug."""
        source = await self._get_owned(teacher_id, program_id)
        fields = {name: getattr(source, name) for name in COPIED_PROGRAM_FIELDS}

        candidates = copy_slug_candidates(source.slug)
        for _ in range(MAX_DUPLICATE_INSERT_ATTEMPTS):
            slug = await self._next_free_slug(teacher_id, candidates)
            try:
                duplicate = await self.programs_repository.create_program(
                    teacher_id=teacher_id,
                    name=copy_name(source.name),
                    slug=slug,
                    status=ProgramStatusEnum.DRAFT,
                    sessions=[],
                    **fields,
                )
            except IntegrityError:
                logger.info("Slug %s taken concurrently while duplicating %s", slug, source.id)
                continue
            return Success(duplicate)
        raise ConflictException("Could not find a free slug for the copy. Please try again.")

    @service_operation("Failed to delete program")
    async def delete_program(self, teacher_id: UUID, program_id: UUID) -> OperationResult[None]:
        program = await self._get_owned(teacher_id, program_id, for_update=True)
        if program.status != ProgramStatusEnum.DRAFT:
            raise BusinessRuleException("Only draft programs can be deleted", {"reason": "not_draft"})
        if await self.booking_repository.count_program_bookings(program.id) > 0:
            raise ConflictException("Cannot delete a program with bookings", {"reason": "has_bookings"})
        await self.programs_repository.delete_program(program)
        logger.info("Program %s deleted", program_id)
        return Success(None)

    @service_operation("Failed to save template")
    async def save_as_template(
        self,
        teacher_id: UUID,
        program_id: UUID,
        name: str,
    ) -> OperationResult[ScheduleTemplate]:
        data = validate_payload(SaveAsTemplateRequest, {"name": name})
        program = await self._get_owned(teacher_id, program_id)
        format_type = TemplateFormatEnum.CUSTOM
        if program.template_id is not None:
            source_template = await self.programs_repository.get_template(program.template_id)
            if source_template is not None:
                format_type = source_template.format_type

        template = await self.programs_repository.create_template(
            teacher_id=teacher_id,
            name=data.name,
            format_type=format_type,
            default_sessions=sessions_to_template(list(program.sessions or [])),
            default_capacity=program.capacity,
            default_price=program.price_amount,
            default_currency=program.price_currency,
            default_notes=program.notes,
            default_what_to_bring=program.what_to_bring,
            default_preparation=program.preparation_instructions,
            is_platform_template=False,
        )
        return Success(template)

    @service_operation("Failed to load programs")
    async def list_programs(
        self,
        teacher_id: UUID,
        status: ProgramStatusEnum | None = None,
    ) -> OperationResult[list[tuple[Program, int]]]:
        programs = await self.programs_repository.list_programs(teacher_id, status)
        counts = await self.booking_repository.count_by_program(program.id for program in programs)
        return Success([(program, counts.get(program.id, 0)) for program in programs])

    async def _public_teacher(self, teacher_slug: str) -> Teacher:
        teacher = await self.programs_repository.get_teacher_by_slug(teacher_slug)
        if teacher is None:
            raise NotFoundException("Teacher not found")
        return teacher

    @service_operation("Failed to load programs")
    async def list_public_programs(
        self,
        teacher_slug: str,
    ) -> OperationResult[tuple[Teacher, list[tuple[Program, int]]]]:
        """Published programs of a teacher with their active booking counts."""
        teacher = await self._public_teacher(teacher_slug)
        programs = await self.programs_repository.list_published_programs(teacher.id)
        counts = await self.booking_repository.count_active_by_program(program.id for program in programs)
        return Success((teacher, [(program, counts.get(program.id, 0)) for program in programs]))

    @service_operation("Failed to load program")
    async def get_public_program(
        self,
        teacher_slug: str,
        program_slug: str,
    ) -> OperationResult[tuple[Teacher, Program, int]]:
        teacher = await self._public_teacher(teacher_slug)
        program = await self.programs_repository.get_published_program(teacher.id, program_slug)
        if program is None:
            raise NotFoundException("Program not found")
        active = await self.booking_repository.count_active_bookings(program.id)
        return Success((teacher, program, active))


async def get_programs_service(session: AsyncSession = Depends(get_db_session)) -> ProgramsService:
    """Dependency provider for programs service."""
    return ProgramsService(
        ProgramsRepository(session),
        VenuesRepository(session),
        BookingRepository(session),
    )
