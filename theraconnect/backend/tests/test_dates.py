from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest
from app.core import dates


def test_recurring_end_date_is_one_month_minus_a_day():
    assert dates.recurring_end_date(date(2024, 11, 7)) == date(2024, 12, 6)


@pytest.mark.parametrize(
    ("start", "expected"),
    [
        (date(2024, 1, 31), date(2024, 2, 28)),
        (date(2023, 1, 31), date(2023, 2, 27)),
        (date(2024, 12, 16), date(2025, 1, 15)),
    ],
)
def test_recurring_end_date_clamps_short_months(start, expected):
    assert dates.recurring_end_date(start) == expected


def test_iter_weekdays_excludes_weekends_and_end_date():
    days = list(dates.iter_weekdays(date(2024, 11, 7), date(2024, 12, 6)))

    assert len(days) == 21
    assert days[0] == date(2024, 11, 7)
    assert days[-1] == date(2024, 12, 5)
    assert all(day.weekday() < 5 for day in days)


def test_parse_slot_time():
    assert dates.parse_slot_time("09:00") == time(9, 0)
    assert dates.parse_slot_time(" 14:30 ") == time(14, 30)
    with pytest.raises(ValueError):
        dates.parse_slot_time("9am")
    with pytest.raises(ValueError):
        dates.parse_slot_time("25:00")


def test_slot_bounds_use_service_timezone(monkeypatch):
    monkeypatch.setattr(dates, "service_timezone", lambda: ZoneInfo("Asia/Kolkata"))

    starts_at, ends_at = dates.slot_bounds(date(2024, 11, 7), time(9, 0))

    assert starts_at == datetime(2024, 11, 7, 3, 30, tzinfo=timezone.utc)
    assert ends_at == datetime(2024, 11, 7, 4, 30, tzinfo=timezone.utc)


def test_local_today_follows_service_timezone(monkeypatch):
    monkeypatch.setattr(dates, "utc_now", lambda: datetime(2024, 11, 1, 20, 0, tzinfo=timezone.utc))
    monkeypatch.setattr(dates, "service_timezone", lambda: ZoneInfo("Asia/Kolkata"))

    assert dates.local_today() == date(2024, 11, 2)


def test_as_utc_attaches_timezone_to_naive_values():
    naive = datetime(2024, 11, 7, 9, 0)
    assert dates.as_utc(naive) == datetime(2024, 11, 7, 9, 0, tzinfo=timezone.utc)
