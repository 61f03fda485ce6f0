from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from itertools import islice
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.enums import ProgramStatusEnum, TemplateFormatEnum, VenueTypeEnum
from app.modules.programs.models import PROGRAM_NAME_MAX_LENGTH, PROGRAM_SLUG_MAX_LENGTH
from app.modules.programs.schemas import SessionEntry
from app.modules.programs.service import ProgramsService, can_transition, copy_name, copy_slug_candidates
from app.shared.results import Failure, Success


@dataclass
class FakeTemplate:
    id: UUID
    teacher_id: UUID | None
    is_platform_template: bool
    format_type: TemplateFormatEnum = TemplateFormatEnum.MULTI_DAY


@dataclass
class FakeProgram:
    id: UUID
    teacher_id: UUID
    name: str
    slug: str
    status: ProgramStatusEnum = ProgramStatusEnum.DRAFT
    sessions: list[SessionEntry] = field(default_factory=list)
    template_id: UUID | None = None
    description: str | None = None
    venue_type: VenueTypeEnum = VenueTypeEnum.ONLINE
    venue_id: UUID | None = None
    online_meeting_provider: str | None = "zoom"
    online_meeting_url: str | None = "https://zoom.us/j/1"
    registration_deadline: dt.datetime | None = None
    capacity: int | None = 12
    is_free: bool = False
    price_amount: Decimal | None = Decimal("80.00")
    price_currency: str = "USD"
    allow_pay_at_venue: bool = False
    notes: str | None = None
    what_to_bring: str | None = "Mat"
    preparation_instructions: str | None = None
    cancellation_policy_text: str | None = None
    requires_health_form: bool = True


@dataclass
class FakeVenue:
    id: UUID
    teacher_id: UUID


class FakeProgramsRepository:
    def __init__(self) -> None:
        self.programs: dict[UUID, FakeProgram] = {}
        self.templates: dict[UUID, FakeTemplate] = {}
        self.created_templates: list[dict] = []
        self.racing_slugs: set[str] = set()

    async def get_teacher_program(
        self,
        teacher_id: UUID,
        program_id: UUID,
        *,
        for_update: bool = False,
    ) -> FakeProgram | None:
        program = self.programs.get(program_id)
        if program is None or program.teacher_id != teacher_id:
            return None
        return program

    async def slug_exists(self, teacher_id: UUID, slug: str) -> bool:
        return any(p.teacher_id == teacher_id and p.slug == slug for p in self.programs.values())

    async def create_program(self, **fields) -> FakeProgram:
        if fields["slug"] in self.racing_slugs:
            self.racing_slugs.discard(fields["slug"])
            self.programs[uuid4()] = FakeProgram(
                id=uuid4(),
                teacher_id=fields["teacher_id"],
                name="Racer",
                slug=fields["slug"],
            )
            raise IntegrityError("INSERT INTO programs", {}, Exception("duplicate key"))
        program = FakeProgram(id=uuid4(), **fields)
        self.programs[program.id] = program
        return program

    async def save(self, program: FakeProgram) -> FakeProgram:
        return program

    async def delete_program(self, program: FakeProgram) -> None:
        self.programs.pop(program.id)

    async def get_template(self, template_id: UUID) -> FakeTemplate | None:
        return self.templates.get(template_id)

    async def create_template(self, **fields) -> dict:
        self.created_templates.append(fields)
        return fields


class FakeVenuesRepository:
    def __init__(self) -> None:
        self.venues: dict[UUID, FakeVenue] = {}
        self.created: list[dict] = []

    async def create_venue(self, teacher_id: UUID, **fields) -> FakeVenue:
        venue = FakeVenue(id=uuid4(), teacher_id=teacher_id)
        self.venues[venue.id] = venue
        self.created.append(fields)
        return venue

    async def get_teacher_venue(self, teacher_id: UUID, venue_id: UUID) -> FakeVenue | None:
        venue = self.venues.get(venue_id)
        if venue is None or venue.teacher_id != teacher_id:
            return None
        return venue


class FakeBookingRepository:
    def __init__(self) -> None:
        self.counts: dict[UUID, int] = {}

    async def count_program_bookings(self, program_id: UUID) -> int:
        return self.counts.get(program_id, 0)


@dataclass
class Harness:
    service: ProgramsService
    programs: FakeProgramsRepository
    venues: FakeVenuesRepository
    bookings: FakeBookingRepository
    teacher_id: UUID = field(default_factory=uuid4)

    def add_program(self, **overrides) -> FakeProgram:
        fields = {"id": uuid4(), "teacher_id": self.teacher_id, "name": "Spring Retreat", "slug": "spring-retreat"}
        fields.update(overrides)
        program = FakeProgram(**fields)
        self.programs.programs[program.id] = program
        return program

    def add_template(self, *, owned: bool = False) -> FakeTemplate:
        template = FakeTemplate(
            id=uuid4(),
            teacher_id=self.teacher_id if owned else None,
            is_platform_template=not owned,
        )
        self.programs.templates[template.id] = template
        return template


def make_service() -> Harness:
    programs = FakeProgramsRepository()
    venues = FakeVenuesRepository()
    bookings = FakeBookingRepository()
    return Harness(ProgramsService(programs, venues, bookings), programs, venues, bookings)


def session(day: int, title: str = "Morning practice") -> SessionEntry:
    return SessionEntry(
        date=dt.date(2026, 4, day),
        start_time=dt.time(9, 0),
        end_time=dt.time(11, 0),
        title=title,
    )


def create_payload(template_id: UUID, **overrides) -> dict:
    payload = {
        "template_id": str(template_id),
        "name": "Spring Retreat",
        "slug": "spring-retreat",
        "venue_type": "in_person",
        "new_venue": {
            "name": "Lotus Studio",
            "address": "12 Harbour Road",
            "city": "Lisbon",
            "country": "Portugal",
        },
        "online_meeting_provider": "zoom",
        "online_meeting_url": "zoom.us/j/123",
        "sessions": [
            {"date": "2026-04-10", "start_time": "09:00", "end_time": "11:00", "title": "Opening circle"},
        ],
        "is_free": False,
        "price_amount": "150.00",
        "price_currency": "eur",
    }
    payload.update(overrides)
    return payload


def test_allowed_transitions() -> None:
    assert can_transition(ProgramStatusEnum.DRAFT, ProgramStatusEnum.PUBLISHED)
    assert can_transition(ProgramStatusEnum.PUBLISHED, ProgramStatusEnum.CANCELLED)
    assert can_transition(ProgramStatusEnum.PUBLISHED, ProgramStatusEnum.COMPLETED)
    assert not can_transition(ProgramStatusEnum.DRAFT, ProgramStatusEnum.CANCELLED)
    assert not can_transition(ProgramStatusEnum.PUBLISHED, ProgramStatusEnum.DRAFT)
    assert not can_transition(ProgramStatusEnum.CANCELLED, ProgramStatusEnum.PUBLISHED)
    assert not can_transition(ProgramStatusEnum.COMPLETED, ProgramStatusEnum.PUBLISHED)


def test_copy_slug_candidates_sequence() -> None:
    assert list(islice(copy_slug_candidates("yoga"), 3)) == ["yoga-copy", "yoga-copy-2", "yoga-copy-3"]


def test_copy_slug_candidates_fit_slug_column() -> None:
    slug = "a" * 95 + "-bcde"

    first, second = islice(copy_slug_candidates(slug), 2)

    assert len(first) <= PROGRAM_SLUG_MAX_LENGTH
    assert first == "a" * 95 + "-copy"
    assert second == "a" * 93 + "-copy-2"


def test_copy_name_fits_name_column() -> None:
    assert copy_name("Yoga") == "Yoga (Copy)"
    assert copy_name("x" * 120) == "x" * 113 + " (Copy)"


@pytest.mark.asyncio
async def test_create_program_with_inline_venue_drops_meeting_details() -> None:
    harness = make_service()
    template = harness.add_template()

    result = await harness.service.create_program(harness.teacher_id, create_payload(template.id))

    assert isinstance(result, Success)
    program = result.value
    assert program.status == ProgramStatusEnum.DRAFT
    assert program.venue_id in harness.venues.venues
    assert program.online_meeting_provider is None
    assert program.online_meeting_url is None
    assert program.price_currency == "EUR"
    assert harness.venues.created[0]["name"] == "Lotus Studio"


@pytest.mark.asyncio
async def test_create_online_program_normalizes_meeting_url() -> None:
    harness = make_service()
    template = harness.add_template()

    result = await harness.service.create_program(
        harness.teacher_id,
        create_payload(template.id, venue_type="online", new_venue=None),
    )

    assert result.value.venue_id is None
    assert result.value.online_meeting_url == "https://zoom.us/j/123"


@pytest.mark.asyncio
async def test_create_free_program_discards_price() -> None:
    harness = make_service()
    template = harness.add_template()

    result = await harness.service.create_program(
        harness.teacher_id,
        create_payload(template.id, is_free=True, price_amount="10.00"),
    )

    assert result.value.is_free is True
    assert result.value.price_amount is None


@pytest.mark.asyncio
async def test_create_paid_program_without_price_is_rejected() -> None:
    harness = make_service()
    template = harness.add_template()

    result = await harness.service.create_program(
        harness.teacher_id,
        create_payload(template.id, price_amount=None),
    )

    assert isinstance(result, Failure)
    assert result.code == "validation_error"
    assert result.message == "Price is required for paid programs"


@pytest.mark.asyncio
async def test_create_program_with_taken_slug_is_conflict() -> None:
    harness = make_service()
    template = harness.add_template()
    harness.add_program(slug="spring-retreat")

    result = await harness.service.create_program(harness.teacher_id, create_payload(template.id))

    assert isinstance(result, Failure)
    assert result.code == "conflict"
    assert result.message == "You already have a program with this slug"


@pytest.mark.asyncio
async def test_create_program_rejects_other_teachers_template() -> None:
    harness = make_service()
    foreign = FakeTemplate(id=uuid4(), teacher_id=uuid4(), is_platform_template=False)
    harness.programs.templates[foreign.id] = foreign

    result = await harness.service.create_program(harness.teacher_id, create_payload(foreign.id))

    assert isinstance(result, Failure)
    assert result.message == "Template not found"


@pytest.mark.asyncio
async def test_create_program_rejects_reserved_slug() -> None:
    harness = make_service()
    template = harness.add_template()

    result = await harness.service.create_program(harness.teacher_id, create_payload(template.id, slug="settings"))

    assert isinstance(result, Failure)
    assert result.details == {"field": "slug"}


@pytest.mark.asyncio
async def test_publish_then_cancel() -> None:
    harness = make_service()
    program = harness.add_program(sessions=[session(10)])

    published = await harness.service.update_program_status(harness.teacher_id, program.id, "published")
    cancelled = await harness.service.update_program_status(harness.teacher_id, program.id, "cancelled")

    assert published.ok and cancelled.ok
    assert program.status == ProgramStatusEnum.CANCELLED


@pytest.mark.asyncio
async def test_invalid_transition_names_both_states() -> None:
    harness = make_service()
    program = harness.add_program(status=ProgramStatusEnum.PUBLISHED, sessions=[session(10)])

    result = await harness.service.update_program_status(harness.teacher_id, program.id, "draft")

    assert isinstance(result, Failure)
    assert result.code == "conflict"
    assert result.message == "Cannot change from PUBLISHED to DRAFT"
    assert program.status == ProgramStatusEnum.PUBLISHED


@pytest.mark.asyncio
async def test_duplicate_of_published_program_can_be_published() -> None:
    harness = make_service()
    source = harness.add_program(status=ProgramStatusEnum.PUBLISHED, sessions=[session(10)])
    duplicate = (await harness.service.duplicate_program(harness.teacher_id, source.id)).value

    result = await harness.service.update_program_status(harness.teacher_id, duplicate.id, "published")

    assert isinstance(result, Success)
    assert duplicate.status == ProgramStatusEnum.PUBLISHED


@pytest.mark.asyncio
async def test_duplicate_creates_draft_without_sessions_under_next_copy_slug() -> None:
    harness = make_service()
    source = harness.add_program(status=ProgramStatusEnum.PUBLISHED, sessions=[session(10)])
    harness.add_program(slug="spring-retreat-copy")

    result = await harness.service.duplicate_program(harness.teacher_id, source.id)

    duplicate = result.value
    assert duplicate.slug == "spring-retreat-copy-2"
    assert duplicate.name == "Spring Retreat (Copy)"
    assert duplicate.status == ProgramStatusEnum.DRAFT
    assert duplicate.sessions == []
    assert duplicate.capacity == source.capacity
    assert duplicate.what_to_bring == "Mat"


@pytest.mark.asyncio
async def test_chained_duplicates_stay_within_column_lengths() -> None:
    harness = make_service()
    program = harness.add_program(name="n" * 100, slug="s" * 50)

    for _ in range(12):
        program = (await harness.service.duplicate_program(harness.teacher_id, program.id)).value

        assert len(program.name) <= PROGRAM_NAME_MAX_LENGTH
        assert len(program.slug) <= PROGRAM_SLUG_MAX_LENGTH
    assert program.name.endswith(" (Copy)")
    assert "-copy" in program.slug


@pytest.mark.asyncio
async def test_duplicate_retries_when_slug_is_taken_concurrently() -> None:
    harness = make_service()
    source = harness.add_program()
    harness.programs.racing_slugs.add("spring-retreat-copy")

    result = await harness.service.duplicate_program(harness.teacher_id, source.id)

    assert result.value.slug == "spring-retreat-copy-2"


@pytest.mark.asyncio
async def test_delete_draft_without_bookings() -> None:
    harness = make_service()
    program = harness.add_program()

    result = await harness.service.delete_program(harness.teacher_id, program.id)

    assert result.ok
    assert program.id not in harness.programs.programs


@pytest.mark.asyncio
async def test_delete_draft_with_bookings_reports_has_bookings() -> None:
    harness = make_service()
    program = harness.add_program()
    harness.bookings.counts[program.id] = 1

    result = await harness.service.delete_program(harness.teacher_id, program.id)

    assert isinstance(result, Failure)
    assert result.code == "conflict"
    assert result.details == {"reason": "has_bookings"}
    assert program.id in harness.programs.programs


@pytest.mark.asyncio
async def test_delete_published_program_reports_not_draft() -> None:
    harness = make_service()
    program = harness.add_program(status=ProgramStatusEnum.PUBLISHED)

    result = await harness.service.delete_program(harness.teacher_id, program.id)

    assert isinstance(result, Failure)
    assert result.code == "business_rule_violation"
    assert result.details == {"reason": "not_draft"}


@pytest.mark.asyncio
async def test_foreign_program_is_not_found() -> None:
    harness = make_service()
    program = harness.add_program()

    result = await harness.service.delete_program(uuid4(), program.id)

    assert isinstance(result, Failure)
    assert result.code == "not_found"


@pytest.mark.asyncio
async def test_save_as_template_converts_sessions_to_day_offsets() -> None:
    harness = make_service()
    template = harness.add_template()
    program = harness.add_program(
        template_id=template.id,
        sessions=[session(12, "Closing"), session(10, "Opening")],
    )

    result = await harness.service.save_as_template(harness.teacher_id, program.id, "Weekend retreat")

    assert result.ok
    created = harness.programs.created_templates[0]
    assert created["format_type"] == TemplateFormatEnum.MULTI_DAY
    assert created["is_platform_template"] is False
    assert created["teacher_id"] == harness.teacher_id
    assert [(s.day_offset, s.label) for s in created["default_sessions"]] == [(2, "Closing"), (0, "Opening")]
    assert created["default_price"] == Decimal("80.00")


@pytest.mark.asyncio
async def test_save_as_template_without_source_template_is_custom() -> None:
    harness = make_service()
    program = harness.add_program()

    await harness.service.save_as_template(harness.teacher_id, program.id, "Mine")

    assert harness.programs.created_templates[0]["format_type"] == TemplateFormatEnum.CUSTOM
