from datetime import date

import pytest
from sqlalchemy import event
from app.core.constants import THERAPIST_LEAVE_REASON
from app.db import models
from app.services import availability_service, booking_service, leave_service
from app.services.errors import InvalidStateError, SlotConflictError, ValidationError
from app.services.leave_service import LeaveAction

LEAVE_DAY = date(2024, 11, 6)
NEXT_DAY = date(2024, 11, 7)


def add_leave(session, therapist, day, *, leave_type=models.LeaveType.casual, status=models.LeaveStatus.approved):
    leave = models.TherapistLeave(
        therapist_id=therapist.id,
        leave_date=day,
        type=leave_type,
        status=status,
    )
    session.add(leave)
    session.commit()
    return leave


def test_request_leave_notifies_admins(db_session, clock, make_admin, therapist, notifications):
    admin = make_admin()

    leave = leave_service.request_leave(
        db_session, therapist, LEAVE_DAY, models.LeaveType.sick, "Flu"
    )

    assert leave.status == models.LeaveStatus.pending
    assert leave.type == models.LeaveType.sick
    [notice] = notifications(models.NotificationType.leave_request_submitted)
    assert notice.user_id == admin.id
    assert therapist.name in notice.message


def test_request_leave_validation(db_session, clock, therapist):
    with pytest.raises(ValidationError):
        leave_service.request_leave(db_session, therapist, date(2024, 10, 31))

    leave_service.request_leave(db_session, therapist, LEAVE_DAY)
    with pytest.raises(InvalidStateError):
        leave_service.request_leave(db_session, therapist, LEAVE_DAY)


def test_leave_balance_limits_requests(db_session, clock, therapist):
    for day in (4, 5, 6, 7, 8):
        add_leave(db_session, therapist, date(2024, 3, day))
    add_leave(db_session, therapist, date(2024, 11, 4), leave_type=models.LeaveType.optional)

    balance = leave_service.leave_balance(db_session, therapist, date(2024, 11, 12))

    assert balance.casual_remaining == 0
    assert balance.sick_remaining == 5
    assert balance.festive_remaining == 5
    assert balance.optional_remaining == 0
    assert leave_service.leave_balance(db_session, therapist, date(2024, 12, 2)).optional_remaining == 1
    with pytest.raises(ValidationError):
        leave_service.request_leave(db_session, therapist, date(2024, 11, 12))
    with pytest.raises(ValidationError):
        leave_service.request_leave(
            db_session, therapist, date(2024, 11, 13), models.LeaveType.optional
        )
    leave_service.request_leave(db_session, therapist, date(2024, 12, 2), models.LeaveType.optional)


def test_approve_cancels_only_that_therapists_day(
    db_session, clock, make_admin, make_parent, make_child, make_therapist, parent, child, therapist,
    notifications,
):
    admin = make_admin()
    other_parent = make_parent(name="Other Parent")
    other_child = make_child(other_parent, name="Leo")
    other_therapist = make_therapist(name="Dr. Other")

    morning = booking_service.book_slot(db_session, parent, child.id, therapist.id, LEAVE_DAY, "09:00")
    later = booking_service.book_slot(
        db_session, other_parent, other_child.id, therapist.id, LEAVE_DAY, "10:00"
    )
    next_day = booking_service.book_slot(db_session, parent, child.id, therapist.id, NEXT_DAY, "09:00")
    elsewhere = booking_service.book_slot(
        db_session, parent, child.id, other_therapist.id, LEAVE_DAY, "09:00"
    )
    leave = leave_service.request_leave(db_session, therapist, LEAVE_DAY)

    processed = leave_service.process_leave(
        db_session, leave.id, LeaveAction.approve, admin=admin, admin_notes="Get well"
    )

    assert processed.status == models.LeaveStatus.approved
    assert processed.decided_by == admin.id
    for booking in (morning, later, next_day, elsewhere):
        db_session.refresh(booking)
    for booking in (morning, later):
        assert booking.status == models.BookingStatus.cancelled
        assert booking.cancellation_reason == THERAPIST_LEAVE_REASON
        db_session.refresh(booking.time_slot)
        assert booking.time_slot.is_booked is False
    assert next_day.status == models.BookingStatus.scheduled
    assert elsewhere.status == models.BookingStatus.scheduled

    [audit] = db_session.query(models.AuditLog).filter_by(action="leave_approved").all()
    assert sorted(audit.payload["canceled_booking_ids"]) == sorted([morning.id, later.id])
    affected = {n.user_id for n in notifications(models.NotificationType.session_cancelled_by_leave)}
    assert affected == {parent.user_id, other_parent.user_id}
    [decided] = notifications(models.NotificationType.leave_decided)
    assert decided.user_id == therapist.user_id

    with pytest.raises(SlotConflictError):
        booking_service.book_slot(db_session, parent, child.id, therapist.id, LEAVE_DAY, "09:00")


def test_completed_sessions_survive_approval(db_session, clock, make_admin, parent, child, therapist):
    booking = booking_service.book_slot(db_session, parent, child.id, therapist.id, LEAVE_DAY, "09:00")
    booking_service.complete_session(db_session, booking)
    leave = leave_service.request_leave(db_session, therapist, LEAVE_DAY)

    leave_service.process_leave(db_session, leave.id, LeaveAction.approve, admin=make_admin())

    db_session.refresh(booking)
    assert booking.status == models.BookingStatus.completed


def test_reject_leaves_bookings_untouched(
    db_session, clock, make_admin, parent, child, therapist, notifications
):
    booking = booking_service.book_slot(db_session, parent, child.id, therapist.id, LEAVE_DAY, "09:00")
    leave = leave_service.request_leave(db_session, therapist, LEAVE_DAY)

    processed = leave_service.process_leave(
        db_session, leave.id, LeaveAction.reject, admin=make_admin(), admin_notes="Busy week"
    )

    assert processed.status == models.LeaveStatus.rejected
    db_session.refresh(booking)
    assert booking.status == models.BookingStatus.scheduled
    assert notifications(models.NotificationType.session_cancelled_by_leave) == []
    [decided] = notifications(models.NotificationType.leave_decided)
    assert "Busy week" in decided.message


def test_leave_can_only_be_decided_once(db_session, clock, make_admin, therapist):
    admin = make_admin()
    leave = leave_service.request_leave(db_session, therapist, LEAVE_DAY)
    leave_service.process_leave(db_session, leave.id, LeaveAction.approve, admin=admin)

    with pytest.raises(InvalidStateError):
        leave_service.process_leave(db_session, leave.id, LeaveAction.approve, admin=admin)
    with pytest.raises(InvalidStateError):
        leave_service.process_leave(db_session, leave.id, LeaveAction.reject, admin=admin)


def test_stale_decision_is_rejected(session_factory, db_session, clock, make_admin, therapist):
    admin = make_admin()
    leave = leave_service.request_leave(db_session, therapist, LEAVE_DAY)
    other = session_factory()
    try:
        stale = leave_service.get_leave(other, leave.id)
        assert stale.status == models.LeaveStatus.pending

        leave_service.process_leave(db_session, leave.id, LeaveAction.reject, admin=admin)

        with pytest.raises(InvalidStateError):
            leave_service.process_leave(
                other, leave.id, LeaveAction.approve, admin=other.get(models.User, admin.id)
            )
    finally:
        other.close()


def test_booking_and_leave_decision_lock_therapist_first(
    db_session, clock, make_admin, parent, child, therapist, monkeypatch
):
    admin = make_admin()
    events = []
    lock_therapist = availability_service.lock_therapist

    def recording_lock(db, therapist_id):
        events.append(("lock", therapist_id))
        lock_therapist(db, therapist_id)

    def capture(conn, cursor, statement, parameters, context, executemany):
        events.append(("sql", " ".join(statement.split()[:2]).lower()))

    monkeypatch.setattr(availability_service, "lock_therapist", recording_lock)
    engine = db_session.get_bind()
    event.listen(engine, "before_cursor_execute", capture)
    try:
        booking = booking_service.book_slot(
            db_session, parent, child.id, therapist.id, LEAVE_DAY, "09:00"
        )
        leave = leave_service.request_leave(db_session, therapist, LEAVE_DAY)
        leave_service.process_leave(db_session, leave.id, LeaveAction.approve, admin=admin)
    finally:
        event.remove(engine, "before_cursor_execute", capture)

    locks = [index for index, item in enumerate(events) if item == ("lock", therapist.id)]
    assert len(locks) == 2
    assert locks[0] < events.index(("sql", "update time_slots"))
    assert locks[1] < events.index(("sql", "update therapist_leaves"))
    db_session.refresh(booking)
    assert booking.status == models.BookingStatus.cancelled


def test_list_leaves_filters_by_status(db_session, clock, therapist):
    add_leave(db_session, therapist, date(2024, 11, 20))
    pending = leave_service.request_leave(db_session, therapist, date(2024, 11, 21))

    assert [leave.id for leave in leave_service.list_leaves(db_session, models.LeaveStatus.pending)] == [
        pending.id
    ]
    assert len(leave_service.list_leaves(db_session)) == 2
    assert len(leave_service.list_therapist_leaves(db_session, therapist)) == 2
