from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...services import (
    availability_service,
    booking_service,
    feedback_service,
    recurring_service,
    video_service,
)
from ...services.errors import ServiceError

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _service_error(exc: ServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))


@router.get("/slots", response_model=schemas.DaySlots)
def get_day_slots(
    therapist_id: int,
    day: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.get_current_user),
):
    try:
        slots = availability_service.get_day_slots(db, therapist_id, day)
    except ServiceError as exc:
        raise _service_error(exc) from exc
    return schemas.DaySlots(
        therapist_id=therapist_id,
        date=day,
        slots=[schemas.SlotView.model_validate(slot) for slot in slots],
    )


@router.get("/availability", response_model=schemas.Availability)
def check_availability(
    therapist_id: int,
    day: date = Query(..., alias="date"),
    start: str = Query(..., alias="time", description="HH:MM"),
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.get_current_user),
):
    try:
        available = availability_service.is_available(db, therapist_id, day, start)
    except ServiceError as exc:
        raise _service_error(exc) from exc
    return schemas.Availability(
        therapist_id=therapist_id, date=day, time=start, is_available=available
    )


@router.post("", response_model=schemas.Booking, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: schemas.BookingCreate,
    db: Session = Depends(get_db),
    parent: models.Parent = Depends(deps.get_current_parent),
):
    try:
        return booking_service.book_slot(
            db, parent, payload.child_id, payload.therapist_id, payload.date, payload.time
        )
    except ServiceError as exc:
        raise _service_error(exc) from exc


@router.get("/recurring/preview", response_model=list[schemas.RecurringPreviewDay])
def preview_recurring(
    therapist_id: int,
    start_date: date,
    start: str = Query(..., alias="time", description="HH:MM"),
    db: Session = Depends(get_db),
    _: models.Parent = Depends(deps.get_current_parent),
):
    try:
        days = recurring_service.preview_monthly_availability(db, therapist_id, start, start_date)
    except ServiceError as exc:
        raise _service_error(exc) from exc
    return [schemas.RecurringPreviewDay(date=day, is_available=free) for day, free in days]


@router.post(
    "/recurring",
    response_model=schemas.RecurringBookingResult,
    status_code=status.HTTP_201_CREATED,
)
def create_recurring(
    payload: schemas.RecurringBookingCreate,
    db: Session = Depends(get_db),
    parent: models.Parent = Depends(deps.get_current_parent),
):
    try:
        result = recurring_service.create_recurring_bookings(
            db,
            parent,
            payload.child_id,
            payload.therapist_id,
            payload.time,
            payload.start_date,
        )
    except ServiceError as exc:
        raise _service_error(exc) from exc
    return schemas.RecurringBookingResult.model_validate(result)


@router.get("/recurring", response_model=list[schemas.RecurringBookingSummary])
def list_recurring(
    db: Session = Depends(get_db),
    parent: models.Parent = Depends(deps.get_current_parent),
):
    return [
        schemas.RecurringBookingSummary.model_validate(summary)
        for summary in recurring_service.list_recurring_bookings(db, parent)
    ]


@router.post("/recurring/{recurring_booking_id}/cancel", response_model=schemas.RecurringCancelResult)
def cancel_recurring(
    recurring_booking_id: int,
    db: Session = Depends(get_db),
    parent: models.Parent = Depends(deps.get_current_parent),
):
    try:
        recurring, canceled = recurring_service.cancel_recurring_booking(
            db, parent, recurring_booking_id
        )
    except ServiceError as exc:
        raise _service_error(exc) from exc
    return schemas.RecurringCancelResult(
        recurring_booking=schemas.RecurringBooking.model_validate(recurring),
        canceled_sessions=canceled,
    )


@router.get("", response_model=list[schemas.Booking])
def list_bookings(
    status_filter: models.BookingStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.require_roles("parent", "therapist")),
):
    return booking_service.list_bookings_for_user(db, user, status=status_filter)


@router.get("/{booking_id}", response_model=schemas.Booking)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        return booking_service.get_booking_for_user(db, booking_id, user)
    except ServiceError as exc:
        raise _service_error(exc) from exc


@router.post("/{booking_id}/cancel", response_model=schemas.Booking)
def cancel_booking(
    booking_id: int,
    payload: schemas.BookingCancel,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    try:
        booking = booking_service.get_booking_for_user(db, booking_id, user)
        return booking_service.cancel_booking(db, booking, actor=user, reason=payload.reason)
    except ServiceError as exc:
        raise _service_error(exc) from exc


@router.post("/{booking_id}/complete", response_model=schemas.Booking)
def complete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.require_roles("therapist", "admin")),
):
    try:
        booking = booking_service.get_booking_for_user(db, booking_id, user)
        return booking_service.complete_session(db, booking)
    except ServiceError as exc:
        raise _service_error(exc) from exc


@router.get("/{booking_id}/video-credentials", response_model=schemas.VideoCredentials)
def get_video_credentials(
    booking_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.require_roles("parent", "therapist")),
):
    try:
        booking = booking_service.get_booking_for_user(db, booking_id, user)
        return video_service.build_join_credentials(booking, user)
    except ServiceError as exc:
        raise _service_error(exc) from exc


@router.post(
    "/{booking_id}/feedback", response_model=schemas.Feedback, status_code=status.HTTP_201_CREATED
)
def submit_feedback(
    booking_id: int,
    payload: schemas.FeedbackCreate,
    db: Session = Depends(get_db),
    parent: models.Parent = Depends(deps.get_current_parent),
):
    try:
        return feedback_service.submit_feedback(db, parent, booking_id, **payload.model_dump())
    except ServiceError as exc:
        raise _service_error(exc) from exc


@router.post(
    "/{booking_id}/report",
    response_model=schemas.SessionReport,
    status_code=status.HTTP_201_CREATED,
)
def submit_report(
    booking_id: int,
    payload: schemas.SessionReportCreate,
    db: Session = Depends(get_db),
    therapist: models.Therapist = Depends(deps.get_current_therapist),
):
    try:
        return feedback_service.submit_session_report(
            db, therapist, booking_id, **payload.model_dump()
        )
    except ServiceError as exc:
        raise _service_error(exc) from exc
