from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, selectinload
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...services import analytics_service, demo_service, leave_service, therapist_service
from ...services.errors import ServiceError

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/therapists", response_model=list[schemas.Therapist])
def list_therapists(
    status_filter: models.TherapistStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    return therapist_service.list_therapists(db, status_filter)


@router.patch("/therapists/{therapist_id}/status", response_model=schemas.Therapist)
def update_therapist_status(
    therapist_id: int,
    payload: schemas.TherapistStatusUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_roles("admin")),
):
    try:
        status = models.TherapistStatus(payload.status)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Unknown therapist status") from exc
    try:
        return therapist_service.update_therapist_status(db, therapist_id, status, admin=admin)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/bookings", response_model=list[schemas.Booking])
def list_bookings(
    therapist_id: int | None = None,
    parent_id: int | None = None,
    status_filter: models.BookingStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    query = db.query(models.Booking).options(selectinload(models.Booking.time_slot))
    if therapist_id:
        query = query.filter(models.Booking.therapist_id == therapist_id)
    if parent_id:
        query = query.filter(models.Booking.parent_id == parent_id)
    if status_filter:
        query = query.filter(models.Booking.status == status_filter)
    return query.order_by(models.Booking.created_at.desc(), models.Booking.id.desc()).all()


@router.get("/analytics", response_model=schemas.AdminAnalytics)
def get_analytics(
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    return analytics_service.admin_summary(db)


@router.get("/leaves", response_model=list[schemas.Leave])
def list_leaves(
    status_filter: models.LeaveStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    return leave_service.list_leaves(db, status_filter)


@router.get("/leaves/{leave_id}", response_model=schemas.Leave)
def get_leave(
    leave_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    try:
        return leave_service.get_leave(db, leave_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.patch("/leaves/{leave_id}", response_model=schemas.Leave)
def process_leave(
    leave_id: int,
    payload: schemas.LeaveDecision,
    db: Session = Depends(get_db),
    admin: models.User = Depends(deps.require_roles("admin")),
):
    try:
        return leave_service.process_leave(
            db,
            leave_id,
            leave_service.LeaveAction(payload.action),
            admin=admin,
            admin_notes=payload.admin_notes,
        )
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/demo/slots", response_model=list[schemas.AdminDemoSlot])
def list_demo_slots(
    year: int | None = None,
    month: int | None = None,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    try:
        slots = demo_service.list_month_slots(db, year, month)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return [schemas.AdminDemoSlot.model_validate(slot) for slot in slots]


@router.put("/demo/slots", response_model=list[schemas.AdminDemoSlot])
def set_demo_slots(
    payload: schemas.DemoMonthSlots,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    try:
        slots = demo_service.set_month_slots(db, payload.year, payload.month, payload.times)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return [schemas.AdminDemoSlot.model_validate(slot) for slot in slots]


@router.get("/demo/bookings", response_model=list[schemas.DemoBooking])
def list_demo_bookings(
    status_filter: models.DemoBookingStatus | None = Query(None, alias="status"),
    order: str = Query("created", pattern="^(created|slot)$"),
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    return demo_service.list_demo_bookings(db, status_filter, by_slot=order == "slot")


@router.get("/demo/bookings/{demo_booking_id}", response_model=schemas.DemoBooking)
def get_demo_booking(
    demo_booking_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    try:
        return demo_service.get_demo_booking(db, demo_booking_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.patch("/demo/bookings/{demo_booking_id}", response_model=schemas.DemoBooking)
def update_demo_booking(
    demo_booking_id: int,
    payload: schemas.DemoBookingUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("admin")),
):
    try:
        return demo_service.update_demo_booking(
            db,
            demo_booking_id,
            status=payload.status,
            user_query=payload.user_query,
            converted=payload.converted,
            additional_notes=payload.additional_notes,
        )
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
