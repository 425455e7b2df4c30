from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional

from .rounding import round_half_up


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse HH:MM string into time."""
    return datetime.strptime(value.strip(), "%H:%M").time()


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def window_start(end: date, days: int) -> date:
    """First day of a trailing window of ``days`` calendar days ending on ``end`` (inclusive)."""
    return end - timedelta(days=days - 1)


def hours_between(start: datetime, end: datetime) -> float:
    """Elapsed hours rounded to 2 decimals."""
    return round_half_up((end - start).total_seconds() / 3600, 2)


def age_on(dob: Optional[date], on: date) -> Optional[int]:
    if dob is None:
        return None
    age = on.year - dob.year
    if (on.month, on.day) < (dob.month, dob.day):
        age -= 1
    return age


def is_birthday(dob: Optional[date], on: date) -> bool:
    if dob is None:
        return False
    return dob.month == on.month and dob.day == on.day


def iso(value) -> Optional[str]:
    """ISO string for date/datetime values, None passthrough."""
    return value.isoformat() if value is not None else None


def parse_due_date(value) -> datetime:
    """Parse an ISO date or datetime string.

    A bare date means the end of that day.
    """

    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, time(23, 59, 59))
    text = str(value).strip()
    if len(text) == 10:
        return datetime.combine(parse_iso_date(text), time(23, 59, 59))
    if text.endswith("Z"):
        text = text[:-1]
    return datetime.fromisoformat(text).replace(tzinfo=None)
