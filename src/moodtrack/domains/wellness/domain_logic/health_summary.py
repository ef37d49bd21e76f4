"""Today's heart-rate and noise overview for the home dashboard."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Callable

from moodtrack.domains.wellness.connectors import DataPoint, MetricKind, SensorProvider
from moodtrack.domains.wellness.domain_logic.calendar_grid import day_bounds
from moodtrack.domains.wellness.domain_logic.fanout import gather_or_absent

logger = logging.getLogger(__name__)


@dataclass
class MetricToday:
    """Average and samples of one metric since local midnight.

    ``None`` means the source was unavailable, not that nothing was measured.
    """

    average: float | None = None
    series: list[DataPoint] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "average": round(self.average, 1) if self.average is not None else None,
            "series": (
                [{"time": p.time.isoformat(), "value": p.value} for p in self.series]
                if self.series is not None else None
            ),
        }


@dataclass
class HealthToday:
    start: datetime
    end: datetime
    authorization: str
    heart_rate: MetricToday = field(default_factory=MetricToday)
    noise: MetricToday = field(default_factory=MetricToday)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "sensor_authorization": self.authorization,
            "heart_rate": self.heart_rate.to_dict(),
            "noise": self.noise.to_dict(),
        }


class HealthSummary:
    """Fetches today's averages and time series for both metrics at once.

    Usage::

        summary = HealthSummary(sensors, tz=tz)
        today = await summary.today()
    """

    def __init__(
        self,
        sensor_provider: SensorProvider,
        *,
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._sensors = sensor_provider
        self._tz = tz
        self._clock = clock or (lambda: datetime.now(tz).astimezone(tz))

    async def today(self) -> HealthToday:
        """Samples in ``[local midnight, now)``."""
        now = self._clock()
        start, _ = day_bounds(now.astimezone(self._tz).date(), self._tz)

        results = await gather_or_absent({
            "heart_rate_average": self._sensors.average_sample(MetricKind.HEART_RATE, start, now),
            "heart_rate_series": self._sensors.time_series(MetricKind.HEART_RATE, start, now),
            "noise_average": self._sensors.average_sample(MetricKind.NOISE_EXPOSURE, start, now),
            "noise_series": self._sensors.time_series(MetricKind.NOISE_EXPOSURE, start, now),
        })
        logger.debug("Fetched today's health overview since %s", start.isoformat())
        return HealthToday(
            start=start,
            end=now,
            authorization=self._sensors.authorization_status.value,
            heart_rate=MetricToday(results["heart_rate_average"], results["heart_rate_series"]),
            noise=MetricToday(results["noise_average"], results["noise_series"]),
        )
