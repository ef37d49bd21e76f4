"""Month grids and month navigation for the entry calendar."""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, tzinfo

SUNDAY = calendar.SUNDAY
FIRST_SELECTABLE_YEAR = 2024


def day_bounds(day: date, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """``[local midnight, next local midnight)`` for ``day``.

    With ``tz=None`` the bounds are in the system local zone.
    """
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    if tz is None:
        start, end = start.astimezone(), end.astimezone()
    return start, end


def month_days(year: int, month: int) -> list[date]:
    _, num_days = calendar.monthrange(year, month)
    return [date(year, month, d) for d in range(1, num_days + 1)]


def month_grid(year: int, month: int, *, first_weekday: int = SUNDAY) -> list[date | None]:
    """Calendar cells for a month, row-major, seven per week.

    Blank cells (``None``) pad the first week up to the weekday of the 1st
    and the last week out to a full row.
    """
    days = month_days(year, month)
    leading = (days[0].weekday() - first_weekday) % 7
    cells: list[date | None] = [None] * leading + days
    while len(cells) % 7:
        cells.append(None)
    return cells


def year_range(today: date, *, start_year: int = FIRST_SELECTABLE_YEAR) -> list[int]:
    return list(range(start_year, today.year + 1))


def available_months(year: int, today: date) -> list[int]:
    """Selectable months of ``year``; the current year stops at this month."""
    last = today.month if year == today.year else 12
    return list(range(1, last + 1))


def clamp_selection(
    year: int,
    month: int,
    today: date,
    *,
    start_year: int = FIRST_SELECTABLE_YEAR,
) -> tuple[int, int]:
    """Clamp (year, month) to January of ``start_year`` .. the current month."""
    if year < start_year:
        return start_year, 1
    if (year, month) > (today.year, today.month):
        return today.year, today.month
    return year, month


def next_month(year: int, month: int, today: date) -> tuple[int, int]:
    """The month after (year, month), never past the current month."""
    if month == 12:
        year, month = year + 1, 1
    else:
        month += 1
    return clamp_selection(year, month, today)


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1
