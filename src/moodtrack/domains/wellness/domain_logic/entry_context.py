"""Health and location context attached to new entries."""

from __future__ import annotations

import logging
from datetime import datetime

from moodtrack.domains.wellness.connectors import (
    GeocodingProvider,
    LocationProvider,
    MetricKind,
    SensorProvider,
)
from moodtrack.domains.wellness.connectors.geocoding import resolve_address
from moodtrack.domains.wellness.domain_logic.entry_models import (
    HealthSnapshot,
    LocationSnapshot,
)
from moodtrack.domains.wellness.domain_logic.fanout import gather_or_absent

logger = logging.getLogger(__name__)


class EntryContextCollector:
    """Gathers the snapshots attached to a mood or activity entry.

    Every source is optional: a denied sensor, an unknown location or a
    failing geocoder leaves the matching fields empty and the entry is still
    saved.
    """

    def __init__(
        self,
        sensor_provider: SensorProvider | None = None,
        location_provider: LocationProvider | None = None,
        geocoder: GeocodingProvider | None = None,
    ) -> None:
        self._sensors = sensor_provider
        self._location = location_provider
        self._geocoder = geocoder

    async def health_snapshot(self, now: datetime) -> HealthSnapshot | None:
        """Latest heart-rate and noise samples ending at or before ``now``."""
        if self._sensors is None:
            return None
        results = await gather_or_absent({
            "heart_rate": self._sensors.latest_sample(MetricKind.HEART_RATE, now),
            "noise": self._sensors.latest_sample(MetricKind.NOISE_EXPOSURE, now),
        })
        heart_rate, noise = results["heart_rate"], results["noise"]

        snapshot = HealthSnapshot()
        if heart_rate is not None:
            snapshot.heart_rate_value = heart_rate.value
            snapshot.heart_rate_start = heart_rate.start
            snapshot.heart_rate_end = heart_rate.end
        if noise is not None:
            snapshot.noise_level_value = noise.value
            snapshot.noise_level_start = noise.start
            snapshot.noise_level_end = noise.end
        return None if snapshot.is_empty() else snapshot

    async def location_snapshot(self) -> LocationSnapshot | None:
        if self._location is None:
            return None
        try:
            coords = await self._location.current_location()
        except Exception as exc:
            logger.warning("Location unavailable: %s", exc)
            return None
        if coords is None:
            return None
        latitude, longitude = coords
        address = await resolve_address(self._geocoder, latitude, longitude)
        return LocationSnapshot(latitude=latitude, longitude=longitude, address=address)

    async def collect(self, now: datetime) -> tuple[HealthSnapshot | None, LocationSnapshot | None]:
        results = await gather_or_absent({
            "health": self.health_snapshot(now),
            "location": self.location_snapshot(),
        })
        return results["health"], results["location"]
