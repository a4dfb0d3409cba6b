import pytest

from app.core.errors import InvalidRequestError
from app.db import models
from app.services import slot_service
from app.services.slot_service import TimeSlot

from factories import create_booking_row, create_user, create_venue, future_date


def test_overlap_is_symmetric():
    a = TimeSlot("18:00", "19:00")
    b = TimeSlot("18:30", "19:30")
    assert slot_service.slots_overlap(a, b)
    assert slot_service.slots_overlap(b, a)


def test_back_to_back_slots_do_not_overlap():
    a = TimeSlot("18:00", "19:00")
    b = TimeSlot("19:00", "20:00")
    assert not slot_service.slots_overlap(a, b)
    assert not slot_service.slots_overlap(b, a)


def test_containing_slot_overlaps():
    assert slot_service.slots_overlap(TimeSlot("08:00", "12:00"), TimeSlot("09:00", "10:00"))


def test_total_hours():
    slots = [TimeSlot("06:00", "08:00"), TimeSlot("18:00", "19:00")]
    assert slot_service.total_hours(slots) == 3


def test_validate_slots_accepts_end_of_day():
    slots = slot_service.validate_slots([TimeSlot("22:00", "24:00")], "06:00", "24:00")
    assert slots == [TimeSlot("22:00", "24:00")]


@pytest.mark.parametrize(
    "slot",
    [
        TimeSlot("9:00", "10:00"),
        TimeSlot("18:00", "25:00"),
        TimeSlot("19:00", "18:00"),
        TimeSlot("18:00", "18:00"),
        TimeSlot("18:00", "18:30"),
        TimeSlot("05:00", "06:00"),
        TimeSlot("22:00", "24:00"),
    ],
)
def test_validate_slots_rejects(slot):
    with pytest.raises(InvalidRequestError) as excinfo:
        slot_service.validate_slots([slot], "06:00", "23:00")
    assert excinfo.value.errors


def test_validate_slots_rejects_empty_list():
    with pytest.raises(InvalidRequestError):
        slot_service.validate_slots([], "06:00", "23:00")


def test_validate_slots_rejects_overlap_within_request():
    with pytest.raises(InvalidRequestError) as excinfo:
        slot_service.validate_slots(
            [TimeSlot("18:00", "20:00"), TimeSlot("19:00", "21:00")], "06:00", "23:00"
        )
    assert excinfo.value.errors[0].field == "time_slots"


def test_validate_slots_reports_each_bad_slot():
    with pytest.raises(InvalidRequestError) as excinfo:
        slot_service.validate_slots(
            [TimeSlot("xx", "10:00"), TimeSlot("10:00", "10:30")], "06:00", "23:00"
        )
    fields = [error.field for error in excinfo.value.errors]
    assert fields == ["time_slots[0].start_time", "time_slots[1]"]


def test_free_ranges_complement():
    booked = [TimeSlot("18:00", "20:00"), TimeSlot("08:00", "09:00")]
    free = slot_service.free_ranges("06:00", "23:00", booked)
    assert free == [
        TimeSlot("06:00", "08:00"),
        TimeSlot("09:00", "18:00"),
        TimeSlot("20:00", "23:00"),
    ]


def test_free_ranges_fully_booked():
    assert slot_service.free_ranges("06:00", "08:00", [TimeSlot("06:00", "08:00")]) == []


def test_conflicts_ignore_cancelled_bookings(db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)
    day = future_date()
    create_booking_row(db_session, user, venue, day, status=models.BookingStatus.cancelled)

    assert not slot_service.has_conflict(db_session, venue.id, day, [TimeSlot("18:00", "19:00")])


def test_conflicts_only_on_same_venue_and_date(db_session):
    user = create_user(db_session)
    venue = create_venue(db_session)
    other = create_venue(db_session)
    day = future_date()
    create_booking_row(db_session, user, venue, day, slots=(("18:00", "19:00"),))

    slot = [TimeSlot("18:30", "19:30")]
    assert slot_service.has_conflict(db_session, venue.id, day, slot)
    assert not slot_service.has_conflict(db_session, other.id, day, slot)
    assert not slot_service.has_conflict(db_session, venue.id, future_date(4), slot)
    assert not slot_service.has_conflict(
        db_session, venue.id, day, [TimeSlot("19:00", "20:00")]
    )
