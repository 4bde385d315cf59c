from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session
from ..config import get_settings
from ..db.session import get_db
from ..db import models
from ..core.security import ALGORITHM


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> models.User:
    settings = get_settings()
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise credentials_exception from exc
    user_id = payload.get("sub")
    if user_id is None:
        raise credentials_exception
    user = db.get(models.User, int(user_id))
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def require_roles(*roles: str):
    def dependency(user: Annotated[models.User, Depends(get_current_user)]) -> models.User:
        if user.role.value not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return dependency


def get_current_parent(
    user: Annotated[models.User, Depends(require_roles("parent"))],
) -> models.Parent:
    if user.parent_profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent profile not found")
    return user.parent_profile


def get_current_therapist(
    user: Annotated[models.User, Depends(require_roles("therapist"))],
) -> models.Therapist:
    if user.therapist_profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Therapist profile not found"
        )
    return user.therapist_profile
