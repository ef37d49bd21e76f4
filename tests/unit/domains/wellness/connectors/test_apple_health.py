"""Tests for the Apple Health export parser and sensor provider."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from moodtrack.domains.wellness.connectors import AuthorizationStatus, MetricKind, SensorProvider
from moodtrack.domains.wellness.connectors.apple_health import AppleHealthSensorProvider
from moodtrack.domains.wellness.connectors.apple_health_parser import (
    AppleHealthParseError,
    parse_apple_health_export,
)

EST = timezone(timedelta(hours=-5))

_EXPORT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<HealthData locale="en_US">
  <Record type="HKQuantityTypeIdentifierHeartRate" unit="count/min" value="78"
          startDate="2025-01-02 10:00:00 -0500" endDate="2025-01-02 10:01:00 -0500"/>
  <Record type="HKQuantityTypeIdentifierHeartRate" unit="count/min" value="64"
          startDate="2025-01-02 08:00:00 -0500" endDate="2025-01-02 08:01:00 -0500"/>
  <Record type="HKQuantityTypeIdentifierEnvironmentalAudioExposure" unit="dBASPL" value="61.5"
          startDate="2025-01-02 09:00:00 -0500" endDate="2025-01-02 09:30:00 -0500"/>
  <Record type="HKQuantityTypeIdentifierStepCount" unit="count" value="1200"
          startDate="2025-01-02 09:00:00 -0500" endDate="2025-01-02 10:00:00 -0500"/>
  <Record type="HKQuantityTypeIdentifierHeartRate" unit="count/min" value="not-a-number"
          startDate="2025-01-02 11:00:00 -0500" endDate="2025-01-02 11:01:00 -0500"/>
</HealthData>
"""

_MIXED_OFFSET_XML = """<?xml version="1.0" encoding="UTF-8"?>
<HealthData locale="en_US">
  <Record type="HKQuantityTypeIdentifierHeartRate" unit="count/min" value="64"
          startDate="2025-01-02 08:00:00 -0500" endDate="2025-01-02 08:01:00 -0500"/>
  <Record type="HKQuantityTypeIdentifierHeartRate" unit="count/min" value="70"
          startDate="2025-01-02T09:00:00" endDate="2025-01-02T09:01:00"/>
</HealthData>
"""


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "export.xml"
    path.write_text(_EXPORT_XML, encoding="utf-8")
    return path


class TestParser:
    def test_parses_heart_rate_sorted(self, export_file):
        samples = parse_apple_health_export(export_file)
        hr = samples[MetricKind.HEART_RATE]
        assert [s.value for s in hr] == [64.0, 78.0]
        assert hr[0].start == datetime(2025, 1, 2, 8, 0, tzinfo=EST)

    def test_parses_noise(self, export_file):
        noise = parse_apple_health_export(export_file)[MetricKind.NOISE_EXPOSURE]
        assert len(noise) == 1
        assert noise[0].value == 61.5
        assert noise[0].end - noise[0].start == timedelta(minutes=30)

    def test_ignores_other_types_and_bad_values(self, export_file):
        samples = parse_apple_health_export(export_file)
        assert set(samples) == {MetricKind.HEART_RATE, MetricKind.NOISE_EXPOSURE}
        assert len(samples[MetricKind.HEART_RATE]) == 2

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(AppleHealthParseError, match="not found"):
            parse_apple_health_export(tmp_path / "missing.xml")

    def test_invalid_xml_raises(self, tmp_path):
        path = tmp_path / "broken.xml"
        path.write_text("<HealthData><Record", encoding="utf-8")
        with pytest.raises(AppleHealthParseError, match="Invalid XML"):
            parse_apple_health_export(path)

    def test_offset_less_dates_get_local_zone(self, tmp_path):
        path = tmp_path / "mixed.xml"
        path.write_text(_MIXED_OFFSET_XML, encoding="utf-8")
        hr = parse_apple_health_export(path)[MetricKind.HEART_RATE]
        assert len(hr) == 2
        assert all(s.start.tzinfo is not None and s.end.tzinfo is not None for s in hr)


class TestProvider:
    def test_satisfies_protocol(self, export_file):
        assert isinstance(AppleHealthSensorProvider(str(export_file)), SensorProvider)

    def test_authorization_from_file_presence(self, export_file, tmp_path):
        assert AppleHealthSensorProvider(str(export_file)).authorization_status is AuthorizationStatus.AUTHORIZED
        assert AppleHealthSensorProvider(str(tmp_path / "nope.xml")).authorization_status is AuthorizationStatus.DENIED
        assert AppleHealthSensorProvider("").authorization_status is AuthorizationStatus.NOT_DETERMINED

    def test_latest_sample_ends_at_or_before_cutoff(self, export_file):
        provider = AppleHealthSensorProvider(str(export_file))
        sample = _run(provider.latest_sample(
            MetricKind.HEART_RATE, datetime(2025, 1, 2, 10, 0, tzinfo=EST)
        ))
        assert sample.value == 64.0

    def test_time_series_and_average(self, export_file):
        provider = AppleHealthSensorProvider(str(export_file))
        start = datetime(2025, 1, 2, 0, 0, tzinfo=EST)
        end = start + timedelta(days=1)
        points = _run(provider.time_series(MetricKind.HEART_RATE, start, end))
        assert [p.value for p in points] == [64.0, 78.0]
        assert _run(provider.average_sample(MetricKind.HEART_RATE, start, end)) == 71.0

    def test_denied_provider_returns_nothing(self, tmp_path):
        provider = AppleHealthSensorProvider(str(tmp_path / "nope.xml"))
        now = datetime(2025, 1, 2, 12, 0, tzinfo=EST)
        assert _run(provider.latest_sample(MetricKind.HEART_RATE, now)) is None
        assert _run(provider.time_series(MetricKind.HEART_RATE, now - timedelta(days=1), now)) == []

    def test_request_authorization_rechecks_file(self, tmp_path):
        path = tmp_path / "export.xml"
        provider = AppleHealthSensorProvider(str(path))
        assert provider.authorization_status is AuthorizationStatus.DENIED
        path.write_text(_EXPORT_XML, encoding="utf-8")
        assert _run(provider.request_authorization()) is AuthorizationStatus.AUTHORIZED

    def test_unparseable_export_becomes_denied(self, tmp_path):
        path = tmp_path / "export.xml"
        path.write_text("<HealthData><Record", encoding="utf-8")
        provider = AppleHealthSensorProvider(str(path))
        now = datetime(2025, 1, 2, 12, 0, tzinfo=EST)
        assert _run(provider.latest_sample(MetricKind.HEART_RATE, now)) is None
        assert provider.authorization_status is AuthorizationStatus.DENIED

    def test_mixed_offsets_keep_series_readable(self, tmp_path):
        path = tmp_path / "export.xml"
        path.write_text(_MIXED_OFFSET_XML, encoding="utf-8")
        provider = AppleHealthSensorProvider(str(path))
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        end = datetime(2025, 1, 4, tzinfo=timezone.utc)
        points = _run(provider.time_series(MetricKind.HEART_RATE, start, end))
        assert sorted(p.value for p in points) == [64.0, 70.0]
