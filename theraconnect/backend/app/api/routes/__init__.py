from . import (
    auth,
    parents,
    therapists,
    bookings,
    admin,
    demo,
    notifications,
    misc,
)

__all__ = [
    "auth",
    "parents",
    "therapists",
    "bookings",
    "admin",
    "demo",
    "notifications",
    "misc",
]
