"""Date-range reports across heart rate, noise, moods and activities."""

from __future__ import annotations

import logging
import statistics
from collections import Counter
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Any, Iterable

from moodtrack.domains.wellness.connectors import DataPoint, MetricKind, SensorProvider
from moodtrack.domains.wellness.domain_logic.activity_log import ActivityLog
from moodtrack.domains.wellness.domain_logic.aggregation import (
    color_totals,
    daily_mood_counts,
    mood_type_totals,
)
from moodtrack.domains.wellness.domain_logic.fanout import gather_or_absent
from moodtrack.domains.wellness.domain_logic.mood_log import MoodLog

logger = logging.getLogger(__name__)

DEFAULT_REPORT_DAYS = 7
NO_DATA = {"status": "no_data"}


class ReportType(str, Enum):
    HEART_RATE = "heart_rate"
    NOISE = "noise"
    MOOD = "mood"
    ACTIVITY = "activity"


class ReportError(ValueError):
    """Raised for an inverted date range or an empty report selection."""


def default_range(now: datetime, days: int = DEFAULT_REPORT_DAYS) -> tuple[datetime, datetime]:
    return now - timedelta(days=days), now


def summarize_series(points: list[DataPoint] | None) -> dict[str, Any]:
    if not points:
        return dict(NO_DATA)
    values = [p.value for p in points]
    return {
        "average": round(statistics.mean(values), 1),
        "min": min(values),
        "max": max(values),
        "samples": len(values),
    }


class ReportBuilder:
    """Builds the per-type sections of a report over ``[start, end)``.

    Sections are fetched concurrently. A section whose source fails reports
    ``{"status": "no_data"}`` instead of failing the whole report.

    Usage::

        builder = ReportBuilder(mood_log, activity_log, sensors)
        report = await builder.build(start, end, [ReportType.MOOD])
    """

    def __init__(
        self,
        mood_log: MoodLog,
        activity_log: ActivityLog,
        sensor_provider: SensorProvider,
        *,
        tz: tzinfo | None = None,
    ) -> None:
        self._moods = mood_log
        self._activities = activity_log
        self._sensors = sensor_provider
        self._tz = tz

    async def build(
        self,
        start: datetime,
        end: datetime,
        report_types: Iterable[ReportType | str],
    ) -> dict[str, Any]:
        """Assemble the selected sections.

        Raises:
            ReportError: If ``start > end`` or no report type is selected.
        """
        if start > end:
            raise ReportError("Start date must not be after end date")
        try:
            selected = list(dict.fromkeys(ReportType(t) for t in report_types))
        except ValueError as exc:
            raise ReportError(str(exc)) from exc
        if not selected:
            raise ReportError("Select at least one report type")

        lookups = {t.value: self._section(t, start, end) for t in selected}
        results = await gather_or_absent(lookups, absent=NO_DATA)

        logger.info(
            "Built report %s..%s with sections %s",
            start.isoformat(), end.isoformat(), [t.value for t in selected],
        )
        return {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "sections": {name: results[name] for name in lookups},
        }

    async def _section(self, report_type: ReportType, start: datetime, end: datetime) -> dict:
        if report_type is ReportType.HEART_RATE:
            return summarize_series(
                await self._sensors.time_series(MetricKind.HEART_RATE, start, end)
            )
        if report_type is ReportType.NOISE:
            return summarize_series(
                await self._sensors.time_series(MetricKind.NOISE_EXPOSURE, start, end)
            )
        if report_type is ReportType.MOOD:
            return self._mood_section(start, end)
        return self._activity_section(start, end)

    def _mood_section(self, start: datetime, end: datetime) -> dict:
        moods = self._moods.fetch_moods(start, end)
        if not moods:
            return dict(NO_DATA)
        daily = daily_mood_counts(moods, tz=self._tz)
        return {
            "entries": len(moods),
            "daily_counts": [
                {"day": c.day.isoformat(), "mood_color": c.mood_color, "count": c.count}
                for c in daily
            ],
            "color_totals": color_totals(daily),
            "mood_totals": mood_type_totals(moods),
        }

    def _activity_section(self, start: datetime, end: datetime) -> dict:
        activities = self._activities.fetch_activities(start, end)
        if not activities:
            return dict(NO_DATA)
        return {
            "entries": len(activities),
            "activity_counts": dict(Counter(a.activity_name for a in activities)),
        }
