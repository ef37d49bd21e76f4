"""Which calendar days hold any data (sensor samples or mood entries)."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, tzinfo
from typing import TYPE_CHECKING, Protocol

from moodtrack.domains.wellness.connectors import MetricKind, SensorProvider
from moodtrack.domains.wellness.domain_logic.calendar_grid import day_bounds, month_days
from moodtrack.domains.wellness.domain_logic.fanout import gather_or_absent

if TYPE_CHECKING:
    from moodtrack.domains.wellness.domain_logic.entry_models import MoodEntry

logger = logging.getLogger(__name__)


class MoodSource(Protocol):
    async def moods_for_day(self, day: date) -> list[MoodEntry]:
        ...


class DayAvailabilityChecker:
    """Answers "does this day have data?" for the calendar.

    Heart rate, noise and mood lookups run concurrently. A lookup that fails
    counts as empty, so one unavailable source never hides data from the
    others.

    Usage::

        checker = DayAvailabilityChecker(sensors, mood_log)
        if await checker.has_data(date(2025, 1, 2)):
            ...
    """

    def __init__(
        self,
        sensor_provider: SensorProvider,
        mood_source: MoodSource,
        *,
        tz: tzinfo | None = None,
    ) -> None:
        self._sensors = sensor_provider
        self._moods = mood_source
        self._tz = tz

    async def has_data(self, day: date) -> bool:
        start, end = day_bounds(day, self._tz)
        results = await gather_or_absent(
            {
                "heart_rate": self._sensors.time_series(MetricKind.HEART_RATE, start, end),
                "noise": self._sensors.time_series(MetricKind.NOISE_EXPOSURE, start, end),
                "moods": self._moods.moods_for_day(day),
            },
            absent=[],
        )
        return any(results.values())

    async def month_availability(self, year: int, month: int) -> dict[date, bool]:
        days = month_days(year, month)
        flags = await asyncio.gather(*(self.has_data(day) for day in days))
        logger.debug("Availability for %04d-%02d: %d of %d days", year, month, sum(flags), len(days))
        return dict(zip(days, flags))
