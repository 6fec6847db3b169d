from __future__ import annotations

from datetime import date, datetime, time, timedelta


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now().replace(microsecond=0)


def end_of_day(value: date | datetime) -> datetime:
    """Exclusive upper bound for an end date.

    A bare date covers the whole day, so it maps to midnight of the next day.
    Datetimes are returned unchanged.
    """
    if isinstance(value, datetime):
        return value
    return datetime.combine(value + timedelta(days=1), time.min)
