"""Tests for the health and location context attached to entries."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

from moodtrack.domains.wellness.connectors import AuthorizationStatus
from moodtrack.domains.wellness.connectors.geocoding import GeocodingError, StructuredAddress
from moodtrack.domains.wellness.connectors.providers import (
    StaticLocationProvider,
    StaticSensorProvider,
)
from moodtrack.domains.wellness.domain_logic.entry_context import EntryContextCollector

EST = timezone(timedelta(hours=-5))
NOW = datetime(2025, 1, 2, 15, 30, tzinfo=EST)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeGeocoder:
    def __init__(self, address: StructuredAddress | None = None) -> None:
        self._address = address

    async def reverse_geocode(self, latitude: float, longitude: float) -> StructuredAddress:
        if self._address is None:
            raise GeocodingError("no result")
        return self._address


class BrokenLocation:
    async def current_location(self):
        raise RuntimeError("gps off")


class TestHealthSnapshot:
    def test_latest_samples_at_or_before_now(self, sensor_provider):
        snapshot = _run(EntryContextCollector(sensor_provider).health_snapshot(NOW))
        assert snapshot.heart_rate_value == 72.0
        assert snapshot.heart_rate_end <= NOW
        assert snapshot.noise_level_value == 55.0

    def test_denied_sensors_give_no_snapshot(self):
        sensors = StaticSensorProvider(status=AuthorizationStatus.DENIED)
        assert _run(EntryContextCollector(sensors).health_snapshot(NOW)) is None

    def test_no_sensor_provider(self):
        assert _run(EntryContextCollector().health_snapshot(NOW)) is None


class TestLocationSnapshot:
    def test_coordinates_and_address(self, location_provider):
        collector = EntryContextCollector(
            location_provider=location_provider,
            geocoder=FakeGeocoder(StructuredAddress(locality="New York", country="United States")),
        )
        snapshot = _run(collector.location_snapshot())
        assert (snapshot.latitude, snapshot.longitude) == (40.7484, -73.9857)
        assert snapshot.address == "New York, United States"

    def test_geocoder_failure_keeps_coordinates(self, location_provider):
        collector = EntryContextCollector(location_provider=location_provider, geocoder=FakeGeocoder())
        snapshot = _run(collector.location_snapshot())
        assert snapshot.latitude == 40.7484
        assert snapshot.address is None

    def test_unknown_location(self):
        collector = EntryContextCollector(location_provider=StaticLocationProvider())
        assert _run(collector.location_snapshot()) is None

    def test_location_failure_is_absence(self):
        collector = EntryContextCollector(location_provider=BrokenLocation())
        assert _run(collector.location_snapshot()) is None


def test_collect_returns_both(sensor_provider, location_provider):
    collector = EntryContextCollector(sensor_provider, location_provider, FakeGeocoder())
    health, location = _run(collector.collect(NOW))
    assert health.heart_rate_value == 72.0
    assert location.longitude == -73.9857
