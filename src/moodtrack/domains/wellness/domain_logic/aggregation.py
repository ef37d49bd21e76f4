"""Date-window filters and mood aggregation for charting.

Bound policy:
- ``filter_by_days`` keeps ``now - days <= t <= now`` (both bounds inclusive).
- ``filter_by_range`` keeps ``start <= t < end`` (half-open).

Day buckets are local calendar days in the given zone (local midnight, not
UTC midnight). Everything here is pure: no I/O, no wall clock unless ``now``
is left to default.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Iterable, Sequence, TypeVar

from moodtrack.domains.wellness.domain_logic.entry_models import (
    DailyMoodCount,
    MoodEntry,
    MoodTimeDistribution,
    MoodType,
    mood_color,
)

T = TypeVar("T")

# (label, first hour, last hour exclusive); anything else is "night"
TIME_OF_DAY_BUCKETS = [
    ("morning", 5, 12),
    ("afternoon", 12, 17),
    ("evening", 17, 21),
]
NIGHT = "night"
TIME_OF_DAY_ORDER = [label for label, _, _ in TIME_OF_DAY_BUCKETS] + [NIGHT]


def entry_time(entry) -> datetime:
    """Timestamp of a mood (``date``) or activity (``timestamp``) entry."""
    ts = getattr(entry, "date", None)
    if not isinstance(ts, datetime):
        ts = entry.timestamp
    return ts


def local_day(ts: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of ``ts`` in ``tz`` (system local zone when ``None``)."""
    return ts.astimezone(tz).date()


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def filter_by_days(
    entries: Iterable[T],
    days: int,
    *,
    now: datetime | None = None,
    key: Callable[[T], datetime] = entry_time,
) -> list[T]:
    """Entries in the trailing window ``[now - days, now]``."""
    end = now or datetime.now().astimezone()
    start = end - timedelta(days=days)
    return [e for e in entries if start <= key(e) <= end]


def filter_by_range(
    entries: Iterable[T],
    start: datetime,
    end: datetime,
    *,
    key: Callable[[T], datetime] = entry_time,
) -> list[T]:
    """Entries in ``[start, end)``. An inverted range yields ``[]``."""
    if start > end:
        return []
    return [e for e in entries if start <= key(e) < end]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def daily_mood_counts(
    entries: Iterable[MoodEntry],
    *,
    tz: tzinfo | None = None,
) -> list[DailyMoodCount]:
    """Count entries per (local day, mood colour), sorted by day.

    Colours within a day appear in first-seen order.
    """
    by_day: dict[date, Counter[str]] = {}
    for entry in entries:
        day = local_day(entry.date, tz)
        by_day.setdefault(day, Counter())[mood_color(entry.mood)] += 1

    counts = [
        DailyMoodCount(day=day, mood_color=color, count=count)
        for day, colors in by_day.items()
        for color, count in colors.items()
    ]
    counts.sort(key=lambda c: c.day)
    return counts


def mood_counts_for_last_days(
    entries: Iterable[MoodEntry],
    days: int,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[DailyMoodCount]:
    return daily_mood_counts(filter_by_days(entries, days, now=now), tz=tz)


def mood_counts_for_range(
    entries: Iterable[MoodEntry],
    start: datetime,
    end: datetime,
    *,
    tz: tzinfo | None = None,
) -> list[DailyMoodCount]:
    return daily_mood_counts(filter_by_range(entries, start, end), tz=tz)


def time_of_day(ts: datetime, tz: tzinfo | None = None) -> str:
    hour = ts.astimezone(tz).hour
    for label, first, last in TIME_OF_DAY_BUCKETS:
        if first <= hour < last:
            return label
    return NIGHT


def mood_time_distribution(
    entries: Iterable[MoodEntry],
    *,
    tz: tzinfo | None = None,
) -> list[MoodTimeDistribution]:
    """Count entries per (time of day, mood colour), in bucket order."""
    buckets: dict[str, Counter[str]] = {label: Counter() for label in TIME_OF_DAY_ORDER}
    for entry in entries:
        buckets[time_of_day(entry.date, tz)][mood_color(entry.mood)] += 1
    return [
        MoodTimeDistribution(time_of_day=label, mood_color=color, count=count)
        for label in TIME_OF_DAY_ORDER
        for color, count in buckets[label].items()
    ]


def color_totals(counts: Sequence[DailyMoodCount]) -> dict[str, int]:
    totals: Counter[str] = Counter()
    for c in counts:
        totals[c.mood_color] += c.count
    return dict(totals)


def mood_type_totals(entries: Iterable[MoodEntry]) -> dict[str, int]:
    """Counts per mood type value; entries without a mood count as ``"unknown"``."""
    totals: Counter[str] = Counter()
    for entry in entries:
        totals[entry.mood.value if isinstance(entry.mood, MoodType) else "unknown"] += 1
    return dict(totals)
