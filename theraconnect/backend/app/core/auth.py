from sqlalchemy.orm import Session
from ..db import models
from . import security


def authenticate_user(db: Session, email: str, password: str) -> models.User | None:
    user = db.query(models.User).filter_by(email=email.strip().lower()).first()
    if not user or not user.is_active:
        return None
    if not security.verify_password(password, user.password_hash):
        return None
    return user
