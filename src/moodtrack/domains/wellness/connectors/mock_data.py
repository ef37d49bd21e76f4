"""Synthetic sensor samples for development.

Values describe an ordinary day: heart rate resting around 62 bpm at night
and peaking near 85 bpm in the afternoon, ambient noise between roughly 38
and 70 dBA. Output is deterministic for a given time window.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from moodtrack.domains.wellness.connectors import MetricKind, Sample

_BASELINES = {
    # kind: (night floor, daytime swing)
    MetricKind.HEART_RATE: (62.0, 23.0),
    MetricKind.NOISE_EXPOSURE: (38.0, 32.0),
}


def _daily_curve(ts: datetime) -> float:
    """0 at 03:00 local, 1 at 15:00 local."""
    hours = ts.hour + ts.minute / 60
    return (1 - math.cos((hours - 3) / 24 * 2 * math.pi)) / 2


def generate_mock_samples(
    kind: MetricKind,
    start: datetime,
    end: datetime,
    *,
    step: timedelta = timedelta(hours=1),
    duration: timedelta = timedelta(minutes=1),
) -> list[Sample]:
    """Generate one sample every ``step`` in ``[start, end)``."""
    floor, swing = _BASELINES[kind]
    samples = []
    ts = start
    while ts < end:
        # Small deterministic wobble so consecutive samples differ.
        wobble = math.sin(ts.timestamp() / 977.0) * 2.0
        value = round(floor + swing * _daily_curve(ts) + wobble, 1)
        samples.append(Sample(start=ts, end=ts + duration, value=value))
        ts += step
    return samples


def get_mock_samples(now: datetime, days: int = 90) -> dict[MetricKind, list[Sample]]:
    """Samples for every metric over the ``days`` before ``now``."""
    start = (now - timedelta(days=days)).replace(minute=0, second=0, microsecond=0)
    return {kind: generate_mock_samples(kind, start, now) for kind in _BASELINES}
