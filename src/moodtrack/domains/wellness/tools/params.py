"""Parsing of tool date arguments."""

from __future__ import annotations

from datetime import date, datetime, tzinfo

from moodtrack.domains.wellness.domain_logic.calendar_grid import day_bounds


def localize(ts: datetime, tz: tzinfo | None) -> datetime:
    """Attach ``tz`` (or the system zone) to a naive datetime."""
    if ts.tzinfo is not None:
        return ts
    return ts.replace(tzinfo=tz) if tz is not None else ts.astimezone()


def parse_day(value: str) -> date:
    """``YYYY-MM-DD`` to a date. Raises ValueError."""
    return date.fromisoformat(value.strip())


def parse_timestamp(value: str, tz: tzinfo | None) -> datetime:
    """ISO 8601 date or datetime; a bare date means local midnight."""
    value = value.strip()
    if len(value) == 10:
        start, _ = day_bounds(parse_day(value), tz)
        return start
    return localize(datetime.fromisoformat(value), tz)


def parse_end(value: str, tz: tzinfo | None) -> datetime:
    """Exclusive range end; a bare date includes that whole day."""
    value = value.strip()
    if len(value) == 10:
        _, end = day_bounds(parse_day(value), tz)
        return end
    return localize(datetime.fromisoformat(value), tz)


def parse_range(start: str, end: str, tz: tzinfo | None) -> tuple[datetime, datetime]:
    """Tool range arguments to ``[start, end)``."""
    return parse_timestamp(start, tz), parse_end(end, tz)
