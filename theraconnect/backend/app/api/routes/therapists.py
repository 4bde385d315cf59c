from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...services import (
    analytics_service,
    availability_service,
    leave_service,
    parent_service,
    therapist_service,
)
from ...services.errors import ServiceError

router = APIRouter(prefix="/therapists", tags=["therapists"])


@router.get("", response_model=list[schemas.Therapist])
def list_therapists(
    specialization: str | None = None,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.get_current_user),
):
    return parent_service.list_active_therapists(db, specialization)


@router.get("/me", response_model=schemas.Therapist)
def get_profile(therapist: models.Therapist = Depends(deps.get_current_therapist)):
    return therapist


@router.patch("/me", response_model=schemas.Therapist)
def update_profile(
    payload: schemas.TherapistUpdate,
    db: Session = Depends(get_db),
    therapist: models.Therapist = Depends(deps.get_current_therapist),
):
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(therapist, key, value)
    db.commit()
    db.refresh(therapist)
    return therapist


@router.put("/me/active-times", response_model=schemas.Therapist)
def set_active_times(
    payload: schemas.ActiveTimesUpdate,
    db: Session = Depends(get_db),
    therapist: models.Therapist = Depends(deps.get_current_therapist),
):
    try:
        availability_service.activate_times(db, therapist, payload.times)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return therapist


@router.get("/me/analytics", response_model=schemas.TherapistAnalytics)
def get_analytics(
    db: Session = Depends(get_db),
    therapist: models.Therapist = Depends(deps.get_current_therapist),
):
    return analytics_service.therapist_summary(db, therapist)


@router.post("/me/leaves", response_model=schemas.Leave, status_code=status.HTTP_201_CREATED)
def request_leave(
    payload: schemas.LeaveCreate,
    db: Session = Depends(get_db),
    therapist: models.Therapist = Depends(deps.get_current_therapist),
):
    try:
        return leave_service.request_leave(
            db, therapist, payload.leave_date, payload.type, payload.reason
        )
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/me/leaves", response_model=list[schemas.Leave])
def list_leaves(
    db: Session = Depends(get_db),
    therapist: models.Therapist = Depends(deps.get_current_therapist),
):
    return leave_service.list_therapist_leaves(db, therapist)


@router.get("/me/leave-balance", response_model=schemas.LeaveBalance)
def get_leave_balance(
    db: Session = Depends(get_db),
    therapist: models.Therapist = Depends(deps.get_current_therapist),
):
    return leave_service.leave_balance(db, therapist)


@router.get("/{therapist_id}", response_model=schemas.Therapist)
def get_therapist(
    therapist_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.get_current_user),
):
    try:
        return therapist_service.get_active_therapist(db, therapist_id)
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
