"""Apple Health sensor provider: reads samples from an exported Health XML.

Users export via iOS Health app → Share → Export Health Data → produces
export.xml. This provider parses heart-rate and environmental-audio records
from that file to implement SensorProvider.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from moodtrack.domains.wellness.connectors import (
    AuthorizationStatus,
    DataPoint,
    MetricKind,
    Sample,
)
from moodtrack.domains.wellness.connectors.apple_health_parser import (
    AppleHealthParseError,
    parse_apple_health_export,
)
from moodtrack.domains.wellness.connectors.providers import (
    average_of,
    select_latest,
    select_range,
)

logger = logging.getLogger(__name__)


class AppleHealthSensorProvider:
    """SensorProvider backed by an Apple Health XML export.

    Authorization maps onto the export file: no path configured is
    ``not_determined``, a missing or unreadable file is ``denied``.

    Usage::

        provider = AppleHealthSensorProvider("/path/to/export.xml")
        await provider.request_authorization()
        sample = await provider.latest_sample(MetricKind.HEART_RATE, now)
    """

    def __init__(self, export_path: str) -> None:
        self._export_path = export_path
        self._samples: dict[MetricKind, list[Sample]] | None = None
        self._status = self._check_access()

    def _check_access(self) -> AuthorizationStatus:
        if not self._export_path:
            return AuthorizationStatus.NOT_DETERMINED
        if Path(self._export_path).expanduser().is_file():
            return AuthorizationStatus.AUTHORIZED
        return AuthorizationStatus.DENIED

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return self._status

    async def request_authorization(self) -> AuthorizationStatus:
        """Re-check the export file and drop cached samples."""
        self._status = self._check_access()
        self._samples = None
        if self._status is not AuthorizationStatus.AUTHORIZED:
            logger.warning(
                "Apple Health export unavailable (%s): %s",
                self._status.value,
                self._export_path or "<not configured>",
            )
        return self._status

    async def latest_sample(self, kind: MetricKind, ending_before: datetime) -> Sample | None:
        return select_latest(self._load(kind), ending_before)

    async def average_sample(self, kind: MetricKind, start: datetime, end: datetime) -> float | None:
        return average_of(select_range(self._load(kind), start, end))

    async def time_series(self, kind: MetricKind, start: datetime, end: datetime) -> list[DataPoint]:
        return [DataPoint(time=s.start, value=s.value) for s in select_range(self._load(kind), start, end)]

    def _load(self, kind: MetricKind) -> list[Sample]:
        """Parse the export once and serve later reads from memory."""
        if self._status is not AuthorizationStatus.AUTHORIZED:
            return []
        if self._samples is None:
            try:
                self._samples = parse_apple_health_export(Path(self._export_path).expanduser())
            except AppleHealthParseError:
                logger.exception("Failed to parse Apple Health export")
                self._status = AuthorizationStatus.DENIED
                return []
        return self._samples.get(kind, [])
