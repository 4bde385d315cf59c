from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlalchemy.orm import Session
from ...core import dates, security
from ...core.auth import authenticate_user
from ...db.session import get_db
from ...db import models, schemas
from ...services import account_service
from ...services.errors import ServiceError
from .. import deps


router = APIRouter(prefix="/auth", tags=["auth"])


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


def _profile_id(user: models.User) -> int | None:
    if user.role == models.UserRole.parent and user.parent_profile:
        return user.parent_profile.id
    if user.role == models.UserRole.therapist and user.therapist_profile:
        return user.therapist_profile.id
    return None


def _user_payload(user: models.User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role.value,
        "profile_id": _profile_id(user),
    }


@router.post("/login", response_model=TokenResponse)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")
    token = security.create_access_token({"sub": str(user.id), "role": user.role.value})
    user.last_login_at = dates.utc_now()
    db.commit()
    return TokenResponse(access_token=token, user=_user_payload(user))


@router.post("/register/parent", response_model=schemas.Parent, status_code=status.HTTP_201_CREATED)
def register_parent(payload: schemas.ParentRegister, db: Session = Depends(get_db)):
    try:
        return account_service.register_parent(db, **payload.model_dump())
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post(
    "/register/therapist", response_model=schemas.Therapist, status_code=status.HTTP_201_CREATED
)
def register_therapist(payload: schemas.TherapistRegister, db: Session = Depends(get_db)):
    try:
        return account_service.register_therapist(db, **payload.model_dump())
    except ServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/me")
def me(current: models.User = Depends(deps.get_current_user)):
    return _user_payload(current)
