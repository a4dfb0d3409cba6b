"""Time slot algebra and conflict detection for venue bookings.

Slots are half-open ``[start, end)`` intervals inside a single day written as
zero-padded ``HH:MM`` strings, so lexical comparison orders them correctly.
``24:00`` is accepted as an end of day marker.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from ..core.errors import FieldError, InvalidRequestError
from ..db import models

TIME_PATTERN = re.compile(r"^(?:(?:[01]\d|2[0-3]):[0-5]\d|24:00)$")


@dataclass(frozen=True, slots=True)
class TimeSlot:
    start: str
    end: str

    def as_dict(self) -> dict[str, str]:
        return {"start_time": self.start, "end_time": self.end}


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def slots_overlap(a: TimeSlot, b: TimeSlot) -> bool:
    return a.start < b.end and a.end > b.start


def slot_hours(slot: TimeSlot) -> int:
    return (to_minutes(slot.end) - to_minutes(slot.start)) // 60


def total_hours(slots: Iterable[TimeSlot]) -> int:
    return sum(slot_hours(slot) for slot in slots)


def validate_slots(
    raw_slots: Sequence[TimeSlot],
    open_time: str | None = None,
    close_time: str | None = None,
) -> list[TimeSlot]:
    """Check format, ordering, whole-hour length, operating hours and self-overlap.

    Raises ``InvalidRequestError`` carrying one ``FieldError`` per problem.
    """
    errors: list[FieldError] = []
    if not raw_slots:
        raise InvalidRequestError(
            "At least one time slot is required",
            [FieldError("time_slots", "At least one time slot is required")],
        )

    slots: list[TimeSlot] = []
    for index, slot in enumerate(raw_slots):
        prefix = f"time_slots[{index}]"
        if not TIME_PATTERN.match(slot.start or "") or slot.start == "24:00":
            errors.append(FieldError(f"{prefix}.start_time", "Expected HH:MM"))
            continue
        if not TIME_PATTERN.match(slot.end or ""):
            errors.append(FieldError(f"{prefix}.end_time", "Expected HH:MM"))
            continue
        if slot.start >= slot.end:
            errors.append(FieldError(prefix, "Start time must be before end time"))
            continue
        if (to_minutes(slot.end) - to_minutes(slot.start)) % 60:
            errors.append(FieldError(prefix, "Slot length must be a whole number of hours"))
            continue
        if open_time and close_time and (slot.start < open_time or slot.end > close_time):
            errors.append(
                FieldError(prefix, f"Slot must be within operating hours {open_time}-{close_time}")
            )
            continue
        slots.append(slot)

    if not errors:
        for i, first in enumerate(slots):
            for second in slots[i + 1:]:
                if slots_overlap(first, second):
                    errors.append(
                        FieldError(
                            "time_slots",
                            f"Slots {first.start}-{first.end} and {second.start}-{second.end} overlap",
                        )
                    )

    if errors:
        raise InvalidRequestError("Invalid time slots", errors)
    return slots


def _active_slots_query(venue_id: int, booking_date: date):
    return (
        select(models.BookingSlot)
        .join(models.Booking, models.BookingSlot.booking_id == models.Booking.id)
        .where(
            models.Booking.venue_id == venue_id,
            models.Booking.booking_date == booking_date,
            models.Booking.booking_status.in_(models.ACTIVE_BOOKING_STATUSES),
        )
    )


def find_conflicts(
    db: Session, venue_id: int, booking_date: date, slots: Sequence[TimeSlot]
) -> list[models.BookingSlot]:
    if not slots:
        return []
    overlaps = [
        and_(models.BookingSlot.start_time < slot.end, models.BookingSlot.end_time > slot.start)
        for slot in slots
    ]
    stmt = _active_slots_query(venue_id, booking_date).where(or_(*overlaps))
    return list(db.execute(stmt).scalars().all())


def has_conflict(db: Session, venue_id: int, booking_date: date, slots: Sequence[TimeSlot]) -> bool:
    return bool(find_conflicts(db, venue_id, booking_date, slots))


def booked_slots(db: Session, venue_id: int, booking_date: date) -> list[TimeSlot]:
    stmt = _active_slots_query(venue_id, booking_date).order_by(models.BookingSlot.start_time)
    return [
        TimeSlot(row.start_time, row.end_time) for row in db.execute(stmt).scalars().all()
    ]


def free_ranges(open_time: str, close_time: str, booked: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Complement of ``booked`` within ``[open_time, close_time)``."""
    free: list[TimeSlot] = []
    cursor = open_time
    for slot in sorted(booked, key=lambda s: (s.start, s.end)):
        if slot.end <= cursor:
            continue
        if slot.start > cursor:
            free.append(TimeSlot(cursor, min(slot.start, close_time)))
        cursor = max(cursor, slot.end)
        if cursor >= close_time:
            break
    if cursor < close_time:
        free.append(TimeSlot(cursor, close_time))
    return [slot for slot in free if slot.start < slot.end]
