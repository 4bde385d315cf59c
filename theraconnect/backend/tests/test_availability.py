from datetime import date, datetime, time, timezone

import pytest
from app.db import models
from app.services import availability_service, booking_service
from app.services.errors import InvalidStateError, NotFoundError, ValidationError

MONDAY = date(2024, 11, 4)
SATURDAY = date(2024, 11, 2)


def approve_leave(session, therapist, day):
    leave = models.TherapistLeave(
        therapist_id=therapist.id,
        leave_date=day,
        status=models.LeaveStatus.approved,
    )
    session.add(leave)
    session.commit()
    return leave


def test_day_slots_reflect_existing_booking(db_session, clock, parent, child, therapist):
    booking_service.book_slot(db_session, parent, child.id, therapist.id, MONDAY, "09:00")

    slots = availability_service.get_day_slots(db_session, therapist.id, MONDAY)

    assert [(slot.time, slot.is_available) for slot in slots] == [
        (time(9, 0), False),
        (time(10, 0), True),
    ]
    assert availability_service.is_available(db_session, therapist.id, MONDAY, "09:00") is False
    assert availability_service.is_available(db_session, therapist.id, MONDAY, "10:00") is True


def test_cancelled_booking_frees_the_slot(db_session, clock, parent, child, therapist):
    booking = booking_service.book_slot(
        db_session, parent, child.id, therapist.id, MONDAY, "09:00"
    )
    booking_service.cancel_booking(db_session, booking, actor=parent.user)

    assert availability_service.is_available(db_session, therapist.id, MONDAY, "09:00") is True


def test_weekend_has_no_slots(db_session, clock, therapist):
    assert availability_service.get_day_slots(db_session, therapist.id, SATURDAY) == []
    assert availability_service.is_available(db_session, therapist.id, SATURDAY, "09:00") is False


def test_past_date_is_rejected(db_session, clock, therapist):
    with pytest.raises(ValidationError):
        availability_service.get_day_slots(db_session, therapist.id, date(2024, 10, 31))
    with pytest.raises(ValidationError):
        availability_service.is_available(db_session, therapist.id, date(2024, 10, 31), "09:00")


def test_started_slot_today_is_not_available(db_session, clock, therapist):
    slots = availability_service.get_day_slots(db_session, therapist.id, date(2024, 11, 1))

    assert [slot.is_available for slot in slots] == [False, True]


def test_checker_agrees_with_catalog_for_started_slot(
    db_session, clock, parent, child, therapist
):
    today = date(2024, 11, 1)
    clock(datetime(2024, 11, 1, 10, 30, tzinfo=timezone.utc))

    slots = {
        slot.time: slot.is_available
        for slot in availability_service.get_day_slots(db_session, therapist.id, today)
    }

    assert slots == {time(9, 0): False, time(10, 0): False}
    assert availability_service.is_available(db_session, therapist.id, today, "09:00") is False
    assert availability_service.is_available(db_session, therapist.id, today, "10:00") is False
    with pytest.raises(ValidationError):
        booking_service.book_slot(db_session, parent, child.id, therapist.id, today, "09:00")


def test_time_must_be_activated(db_session, clock, therapist):
    with pytest.raises(ValidationError):
        availability_service.is_available(db_session, therapist.id, MONDAY, "11:00")
    with pytest.raises(ValidationError):
        availability_service.is_available(db_session, therapist.id, MONDAY, "nine")


def test_unknown_or_inactive_therapist(db_session, clock, make_therapist):
    pending = make_therapist(status=models.TherapistStatus.pending)
    no_times = make_therapist(times=())

    with pytest.raises(NotFoundError):
        availability_service.get_day_slots(db_session, 9999, MONDAY)
    with pytest.raises(NotFoundError):
        availability_service.get_day_slots(db_session, pending.id, MONDAY)
    with pytest.raises(NotFoundError):
        availability_service.get_day_slots(db_session, no_times.id, MONDAY)


def test_approved_leave_blocks_the_day(db_session, clock, therapist):
    approve_leave(db_session, therapist, MONDAY)

    slots = availability_service.get_day_slots(db_session, therapist.id, MONDAY)

    assert slots
    assert not any(slot.is_available for slot in slots)
    assert availability_service.is_available(db_session, therapist.id, MONDAY, "10:00") is False


def test_pending_leave_does_not_block(db_session, clock, therapist):
    db_session.add(models.TherapistLeave(therapist_id=therapist.id, leave_date=MONDAY))
    db_session.commit()

    assert availability_service.is_available(db_session, therapist.id, MONDAY, "10:00") is True


def test_activate_times(db_session, make_therapist):
    therapist = make_therapist(times=())

    activated = availability_service.activate_times(db_session, therapist, ["14:00", "09:00"])

    assert activated == [time(9, 0), time(14, 0)]
    with pytest.raises(InvalidStateError):
        availability_service.activate_times(db_session, therapist, ["16:00"])


@pytest.mark.parametrize(
    "values",
    [
        [],
        ["09:00", "09:30"],
        ["23:30"],
        ["9 o'clock"],
        [f"{hour:02d}:00" for hour in range(8, 19)],
    ],
)
def test_activate_times_rejects_invalid_sets(db_session, make_therapist, values):
    therapist = make_therapist(times=())

    with pytest.raises(ValidationError):
        availability_service.activate_times(db_session, therapist, values)


def test_preview_range_marks_taken_days(db_session, clock, make_parent, make_child, therapist):
    other = make_parent(name="Other Parent")
    other_child = make_child(other, name="Leo")
    booking_service.book_slot(db_session, other, other_child.id, therapist.id, MONDAY, "10:00")

    preview = availability_service.preview_range(
        db_session, therapist.id, "10:00", [MONDAY, date(2024, 11, 5)]
    )

    assert preview == [(MONDAY, False), (date(2024, 11, 5), True)]
