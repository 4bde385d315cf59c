from datetime import date

from app.db import models
from app.services import analytics_service, booking_service, feedback_service


def test_admin_and_therapist_summaries(db_session, clock, parent, child, therapist):
    first = booking_service.book_slot(db_session, parent, child.id, therapist.id, date(2024, 11, 4), "09:00")
    second = booking_service.book_slot(db_session, parent, child.id, therapist.id, date(2024, 11, 5), "09:00")
    booking_service.book_slot(db_session, parent, child.id, therapist.id, date(2024, 11, 6), "09:00")
    booking_service.complete_session(db_session, first)
    booking_service.cancel_booking(db_session, second, actor=parent.user)
    feedback_service.submit_feedback(db_session, parent, first.id, rating=4)
    db_session.add(
        models.TherapistLeave(
            therapist_id=therapist.id,
            leave_date=date(2024, 12, 2),
            status=models.LeaveStatus.approved,
        )
    )
    db_session.commit()

    summary = analytics_service.admin_summary(db_session)

    assert summary["parents"] == 1
    assert summary["children"] == 1
    assert summary["therapists"]["active"] == 1
    assert summary["bookings"] == {"scheduled": 1, "completed": 1, "cancelled": 1}
    assert summary["completion_rate"] == 50.0
    assert summary["average_rating"] == 4.0

    stats = analytics_service.therapist_summary(db_session, therapist)

    assert stats["total_sessions"] == 3
    assert stats["completed_sessions"] == 1
    assert stats["cancelled_sessions"] == 1
    assert stats["upcoming_sessions"] == 1
    assert stats["approved_leave_days"] == 1
