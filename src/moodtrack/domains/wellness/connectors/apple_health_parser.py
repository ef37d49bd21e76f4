"""Apple Health XML export parser.

Parses the ``export.xml`` file produced by Apple Health (iOS → Share → Export
Health Data) into sensor samples. Uses iterparse so large exports are
processed incrementally.

HealthKit type mappings:
- HKQuantityTypeIdentifierHeartRate → MetricKind.HEART_RATE (count/min)
- HKQuantityTypeIdentifierEnvironmentalAudioExposure → MetricKind.NOISE_EXPOSURE (dBASPL)
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections import defaultdict
from datetime import datetime
from pathlib import Path

from moodtrack.domains.wellness.connectors import MetricKind, Sample

logger = logging.getLogger(__name__)

_HR = "HKQuantityTypeIdentifierHeartRate"
_NOISE = "HKQuantityTypeIdentifierEnvironmentalAudioExposure"

_TYPE_TO_KIND = {
    _HR: MetricKind.HEART_RATE,
    _NOISE: MetricKind.NOISE_EXPOSURE,
}


class AppleHealthParseError(Exception):
    """Raised when parsing Apple Health export XML fails."""


def _parse_date(date_str: str) -> datetime:
    """Parse Apple Health date format: '2025-12-01 08:30:00 -0500'."""
    try:
        return datetime.strptime(date_str, "%Y-%m-%d %H:%M:%S %z")
    except ValueError:
        parsed = datetime.fromisoformat(date_str)
    # Offset-less timestamps are device-local.
    return parsed if parsed.tzinfo is not None else parsed.astimezone()


def parse_apple_health_export(export_path: str | Path) -> dict[MetricKind, list[Sample]]:
    """Parse an Apple Health export.xml into samples per metric.

    Records with unparseable dates or values are skipped.

    Returns:
        Mapping of metric kind to samples sorted by start time.

    Raises:
        AppleHealthParseError: If the file is missing or is not valid XML.
    """
    path = Path(export_path)
    if not path.exists():
        raise AppleHealthParseError(f"Export file not found: {path}")

    samples: dict[MetricKind, list[Sample]] = defaultdict(list)
    skipped = 0

    try:
        for _event, elem in ET.iterparse(str(path), events=("end",)):
            if elem.tag != "Record":
                continue

            kind = _TYPE_TO_KIND.get(elem.get("type", ""))
            if kind is not None:
                start_str = elem.get("startDate", "")
                end_str = elem.get("endDate", "") or start_str
                value_str = elem.get("value", "")
                if start_str and value_str:
                    try:
                        samples[kind].append(Sample(
                            start=_parse_date(start_str),
                            end=_parse_date(end_str),
                            value=float(value_str),
                        ))
                    except (ValueError, TypeError):
                        skipped += 1
            elem.clear()
    except ET.ParseError as exc:
        raise AppleHealthParseError(f"Invalid XML: {exc}") from exc

    for kind_samples in samples.values():
        kind_samples.sort(key=lambda s: s.start)

    logger.info(
        "Parsed Apple Health export: %d heart-rate, %d noise samples (%d skipped)",
        len(samples.get(MetricKind.HEART_RATE, [])),
        len(samples.get(MetricKind.NOISE_EXPOSURE, [])),
        skipped,
    )
    return dict(samples)
