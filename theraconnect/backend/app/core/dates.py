"""Calendar helpers shared by the booking services.

All wall-clock dates and times are interpreted in the configured service
time zone; instants are stored in UTC.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from ..config import get_settings
from .constants import SLOT_DURATION, WORKING_WEEKDAYS


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def service_timezone() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


def local_today() -> date:
    return utc_now().astimezone(service_timezone()).date()


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from stores without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_weekday(day: date) -> bool:
    return day.weekday() in WORKING_WEEKDAYS


def parse_slot_time(value: str | time) -> time:
    """Parse ``HH:MM`` into a ``time``; raise ``ValueError`` on anything else."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    try:
        parsed = datetime.strptime(value.strip(), "%H:%M")
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM") from exc
    return parsed.time()


def format_slot_time(value: time) -> str:
    return value.strftime("%H:%M")


def slot_bounds(day: date, start: time) -> tuple[datetime, datetime]:
    """Return the UTC start and end instants of the slot on ``day`` at ``start``."""
    local_start = datetime.combine(day, start, tzinfo=service_timezone())
    starts_at = local_start.astimezone(timezone.utc)
    return starts_at, starts_at + SLOT_DURATION


def recurring_end_date(start: date) -> date:
    """Last day of the one-month window that begins on ``start``.

    ``relativedelta`` clamps to the last valid day of the target month, so
    2024-01-31 becomes 2024-02-29 before the day is subtracted.
    """
    return start + relativedelta(months=1) - timedelta(days=1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of ``month``."""
    first = date(year, month, 1)
    return first, first + relativedelta(months=1) - timedelta(days=1)


def iter_weekdays(start: date, end: date) -> Iterator[date]:
    """Yield the working days from ``start`` up to, but excluding, ``end``."""
    current = start
    while current < end:
        if is_weekday(current):
            yield current
        current += timedelta(days=1)


__all__ = [
    "utc_now",
    "service_timezone",
    "local_today",
    "as_utc",
    "is_weekday",
    "parse_slot_time",
    "format_slot_time",
    "slot_bounds",
    "recurring_end_date",
    "month_bounds",
    "iter_weekdays",
]
