"""Join credentials for the hosted video SDK.

The SDK authenticates participants with an HS256 JWT signed by the app
secret; the backend never talks to the video service itself.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from jose import jwt

from ..config import get_settings
from ..core import dates
from ..core.security import ALGORITHM
from ..db import models
from .errors import InvalidStateError, NotFoundError, ServiceUnavailableError

HOST_ROLE = 1
PARTICIPANT_ROLE = 0


@dataclass(slots=True)
class JoinCredentials:
    sdk_key: str
    session_name: str
    signature: str
    user_name: str
    role: int
    expires_at: datetime


def session_name(booking: models.Booking) -> str:
    return f"theraconnect-{booking.id}"


def build_join_credentials(booking: models.Booking, user: models.User) -> JoinCredentials:
    settings = get_settings()
    if not settings.video_sdk_key or not settings.video_sdk_secret:
        raise ServiceUnavailableError("Video service is not configured")

    if user.role == models.UserRole.therapist and booking.therapist.user_id == user.id:
        role, user_name = HOST_ROLE, booking.therapist.name
    elif user.role == models.UserRole.parent and booking.parent.user_id == user.id:
        role, user_name = PARTICIPANT_ROLE, booking.parent.name
    else:
        raise NotFoundError("Booking not found")
    if booking.status != models.BookingStatus.scheduled:
        raise InvalidStateError("Only scheduled sessions can be joined")

    issued_at = dates.utc_now()
    expires_at = issued_at + timedelta(minutes=settings.video_token_expire_min)
    name = session_name(booking)
    signature = jwt.encode(
        {
            "app_key": settings.video_sdk_key,
            "tpc": name,
            "role_type": role,
            "user_identity": str(user.id),
            "version": 1,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        },
        settings.video_sdk_secret,
        algorithm=ALGORITHM,
    )
    return JoinCredentials(
        sdk_key=settings.video_sdk_key,
        session_name=name,
        signature=signature,
        user_name=user_name,
        role=role,
        expires_at=expires_at,
    )


__all__ = ["JoinCredentials", "session_name", "build_join_credentials"]
