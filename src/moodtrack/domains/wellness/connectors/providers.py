"""Concrete sensor and location providers plus shared sample selection."""

from __future__ import annotations

import logging
import statistics
from datetime import datetime
from typing import Iterable

from moodtrack.domains.wellness.connectors import (
    AuthorizationStatus,
    DataPoint,
    MetricKind,
    Sample,
)

logger = logging.getLogger(__name__)


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None else ts.astimezone()


# ---------------------------------------------------------------------------
# Sample selection (HealthKit query semantics)
# ---------------------------------------------------------------------------

def select_latest(samples: Iterable[Sample], ending_before: datetime) -> Sample | None:
    """Sample with the greatest end that is at or before ``ending_before``."""
    cutoff = _aware(ending_before)
    latest: Sample | None = None
    for sample in samples:
        if sample.end <= cutoff and (latest is None or sample.end > latest.end):
            latest = sample
    return latest


def select_range(samples: Iterable[Sample], start: datetime, end: datetime) -> list[Sample]:
    """Samples whose start lies in ``[start, end)``, oldest first."""
    lo, hi = _aware(start), _aware(end)
    return sorted((s for s in samples if lo <= s.start < hi), key=lambda s: s.start)


def average_of(samples: list[Sample]) -> float | None:
    if not samples:
        return None
    return statistics.mean(s.value for s in samples)


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

class StaticSensorProvider:
    """SensorProvider over an in-memory sample set.

    Used for mock mode (seeded from ``mock_data``), for ``sensor_mode=off``
    (empty and denied), and in tests.
    """

    def __init__(
        self,
        samples: dict[MetricKind, list[Sample]] | None = None,
        *,
        status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
    ) -> None:
        self._samples = {kind: list(values) for kind, values in (samples or {}).items()}
        self._status = status

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return self._status

    async def request_authorization(self) -> AuthorizationStatus:
        return self._status

    def add_sample(self, kind: MetricKind, sample: Sample) -> None:
        self._samples.setdefault(kind, []).append(sample)

    def _readable(self, kind: MetricKind) -> list[Sample]:
        if self._status is not AuthorizationStatus.AUTHORIZED:
            logger.debug("Sensor read for %s skipped: %s", kind.value, self._status.value)
            return []
        return self._samples.get(kind, [])

    async def latest_sample(self, kind: MetricKind, ending_before: datetime) -> Sample | None:
        return select_latest(self._readable(kind), ending_before)

    async def average_sample(self, kind: MetricKind, start: datetime, end: datetime) -> float | None:
        return average_of(select_range(self._readable(kind), start, end))

    async def time_series(self, kind: MetricKind, start: datetime, end: datetime) -> list[DataPoint]:
        return [
            DataPoint(time=s.start, value=s.value)
            for s in select_range(self._readable(kind), start, end)
        ]


class StaticLocationProvider:
    """LocationProvider returning a configured fixed point (or nothing)."""

    def __init__(self, latitude: float | None = None, longitude: float | None = None) -> None:
        if (latitude is None) != (longitude is None):
            raise ValueError("latitude and longitude must be set together")
        self._coords = (latitude, longitude) if latitude is not None else None

    async def current_location(self) -> tuple[float, float] | None:
        return self._coords
