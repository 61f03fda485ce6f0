from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from app.modules.students.schemas import StudentContact
from app.modules.students.service import StudentIdentityResolver, StudentsService
from app.shared.results import Failure


@dataclass
class FakeStudent:
    id: UUID
    teacher_id: UUID
    email: str
    first_name: str = ""
    last_name: str = ""
    name: str = ""
    phone: str = ""
    tags: list[str] = field(default_factory=list)
    teacher_notes: str | None = None


class FakeStudentsRepository:
    def __init__(self) -> None:
        self.students: dict[UUID, FakeStudent] = {}
        self.racing_insert: FakeStudent | None = None
        self.create_calls = 0

    async def get_student_by_email(self, teacher_id: UUID, email: str) -> FakeStudent | None:
        for student in self.students.values():
            if student.teacher_id == teacher_id and student.email == email:
                return student
        return None

    async def create_student(self, teacher_id: UUID, email: str, **fields) -> FakeStudent:
        self.create_calls += 1
        if self.racing_insert is not None:
            self.students[self.racing_insert.id] = self.racing_insert
            raise IntegrityError("INSERT INTO students", {}, Exception("duplicate key"))
        student = FakeStudent(id=uuid4(), teacher_id=teacher_id, email=email)
        self.students[student.id] = student
        return await self.update_student(student, **fields)

    async def update_student(self, student: FakeStudent, **changes) -> FakeStudent:
        for key, value in changes.items():
            setattr(student, key, value)
        return student

    async def get_teacher_student(self, teacher_id: UUID, student_id: UUID) -> FakeStudent | None:
        student = self.students.get(student_id)
        if student is None or student.teacher_id != teacher_id:
            return None
        return student


def make_contact(email: str = "ana@yogamail.org", **overrides) -> StudentContact:
    fields = {
        "first_name": "Ana",
        "last_name": "Lima",
        "email": email,
        "phone": "+351 912 345 678",
        "emergency_contact_name": "Rui Lima",
        "emergency_contact_relation": "Partner",
        "emergency_contact_phone": "+351 912 000 111",
    }
    fields.update(overrides)
    return StudentContact(**fields)


@pytest.mark.asyncio
async def test_resolve_creates_student_with_normalized_email() -> None:
    repository = FakeStudentsRepository()
    resolver = StudentIdentityResolver(repository)
    teacher_id = uuid4()

    student = await resolver.resolve(teacher_id, make_contact(email="  Ana@YogaMail.org"))

    assert student.email == "ana@yogamail.org"
    assert student.name == "Ana Lima"
    assert student.teacher_id == teacher_id


@pytest.mark.asyncio
async def test_resolve_reuses_student_and_latest_contact_wins() -> None:
    repository = FakeStudentsRepository()
    resolver = StudentIdentityResolver(repository)
    teacher_id = uuid4()

    first = await resolver.resolve(teacher_id, make_contact())
    second = await resolver.resolve(teacher_id, make_contact(last_name="Lima-Costa", phone="+351 900 000 000"))

    assert first.id == second.id
    assert second.name == "Ana Lima-Costa"
    assert second.phone == "+351 900 000 000"
    assert repository.create_calls == 1


@pytest.mark.asyncio
async def test_same_email_under_two_teachers_is_two_students() -> None:
    repository = FakeStudentsRepository()
    resolver = StudentIdentityResolver(repository)

    first = await resolver.resolve(uuid4(), make_contact())
    second = await resolver.resolve(uuid4(), make_contact())

    assert first.id != second.id


@pytest.mark.asyncio
async def test_resolve_falls_back_to_update_after_concurrent_insert() -> None:
    repository = FakeStudentsRepository()
    teacher_id = uuid4()
    repository.racing_insert = FakeStudent(id=uuid4(), teacher_id=teacher_id, email="ana@yogamail.org")

    student = await StudentIdentityResolver(repository).resolve(teacher_id, make_contact())

    assert student.id == repository.racing_insert.id
    assert student.first_name == "Ana"


@pytest.mark.asyncio
async def test_update_student_recomputes_display_name() -> None:
    repository = FakeStudentsRepository()
    teacher_id = uuid4()
    student = await StudentIdentityResolver(repository).resolve(teacher_id, make_contact())
    service = StudentsService(repository)

    result = await service.update_student(teacher_id, student.id, {"first_name": "Anabela"})

    assert result.ok
    assert student.name == "Anabela Lima"


@pytest.mark.asyncio
async def test_tags_are_trimmed_and_deduplicated() -> None:
    repository = FakeStudentsRepository()
    teacher_id = uuid4()
    student = await StudentIdentityResolver(repository).resolve(teacher_id, make_contact())
    service = StudentsService(repository)

    result = await service.update_student_tags(teacher_id, student.id, {"tags": [" vip ", "vip", "retreat"]})

    assert result.value.tags == ["vip", "retreat"]


@pytest.mark.asyncio
async def test_blank_notes_clear_teacher_notes() -> None:
    repository = FakeStudentsRepository()
    teacher_id = uuid4()
    student = await StudentIdentityResolver(repository).resolve(teacher_id, make_contact())
    student.teacher_notes = "Prefers mornings"

    result = await StudentsService(repository).update_student_notes(teacher_id, student.id, {"notes": "   "})

    assert result.ok
    assert student.teacher_notes is None


@pytest.mark.asyncio
async def test_other_teachers_student_is_not_found() -> None:
    repository = FakeStudentsRepository()
    student = await StudentIdentityResolver(repository).resolve(uuid4(), make_contact())

    result = await StudentsService(repository).get_student(uuid4(), student.id)

    assert isinstance(result, Failure)
    assert result.code == "not_found"
    assert result.message == "Student not found"
