"""Program capacity evaluation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol
from uuid import UUID

from app.core.enums import BookingStatusEnum

if TYPE_CHECKING:
    from app.modules.programs.models import Program

# Bookings in these statuses do not hold a seat.
SEATLESS_STATUSES = frozenset({BookingStatusEnum.CANCELLED, BookingStatusEnum.WAITLISTED})


class ActiveBookingCounter(Protocol):
    async def count_active_bookings(self, program_id: UUID) -> int: ...


def spots_left(capacity: int | None, active_bookings: int) -> int | None:
    """Remaining seats; ``None`` means unlimited."""
    if capacity is None:
        return None
    return max(capacity - active_bookings, 0)


def is_full(capacity: int | None, active_bookings: int) -> bool:
    return capacity is not None and active_bookings >= capacity


class CapacityEvaluator:
    """Decides whether a program can seat one more booking.

    Callers that insert a booking after ``has_room`` must hold the program row
    lock for the count to stay valid until commit.
    """

    def __init__(self, counter: ActiveBookingCounter) -> None:
        self.counter = counter

    async def has_room(self, program: "Program") -> bool:
        if program.capacity is None:
            return True
        active = await self.counter.count_active_bookings(program.id)
        return not is_full(program.capacity, active)
