from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from ...db.session import get_db
from ...db import schemas
from ...services import demo_service
from ...services.errors import ServiceError

router = APIRouter(prefix="/demo", tags=["demo"])


@router.get("/slots", response_model=list[schemas.DemoDay])
def list_demo_slots(
    timezone_name: str | None = Query(None, alias="timezone"),
    db: Session = Depends(get_db),
):
    try:
        days = demo_service.available_slots(db, timezone_name)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return [schemas.DemoDay.model_validate(day) for day in days]


@router.post("/bookings", response_model=schemas.DemoBooking, status_code=status.HTTP_201_CREATED)
def book_demo(payload: schemas.DemoBookingCreate, db: Session = Depends(get_db)):
    try:
        return demo_service.book_demo(
            db,
            name=payload.name,
            mobile=payload.mobile,
            email=payload.email,
            reason=payload.reason,
            slot_date=payload.date,
            start=payload.time,
        )
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
