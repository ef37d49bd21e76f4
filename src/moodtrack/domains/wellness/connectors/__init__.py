"""Sensor, location and geocoding connectors: abstraction layer for entry context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from moodtrack.domains.wellness.connectors.geocoding import StructuredAddress


class MetricKind(str, Enum):
    HEART_RATE = "heart_rate"          # count/min
    NOISE_EXPOSURE = "noise_exposure"  # dBASPL


class AuthorizationStatus(str, Enum):
    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    AUTHORIZED = "authorized"


@dataclass(frozen=True)
class Sample:
    """One sensor sample spanning ``[start, end]``."""

    start: datetime
    end: datetime
    value: float


@dataclass(frozen=True)
class DataPoint:
    time: datetime
    value: float


@runtime_checkable
class SensorProvider(Protocol):
    """Device health-metric store.

    One instance is shared by every consumer so that authorization state is
    held in a single place. Absent data is ``None`` / ``[]``, never zero.
    """

    @property
    def authorization_status(self) -> AuthorizationStatus:
        """Current authorization state of the sample source."""
        ...

    async def request_authorization(self) -> AuthorizationStatus:
        """Ask for (or re-check) read access and return the new state."""
        ...

    async def latest_sample(self, kind: MetricKind, ending_before: datetime) -> Sample | None:
        """Most recent sample whose end is at or before ``ending_before``."""
        ...

    async def average_sample(self, kind: MetricKind, start: datetime, end: datetime) -> float | None:
        """Mean value of samples starting in ``[start, end)``."""
        ...

    async def time_series(self, kind: MetricKind, start: datetime, end: datetime) -> list[DataPoint]:
        """Samples starting in ``[start, end)``, oldest first."""
        ...


@runtime_checkable
class LocationProvider(Protocol):
    async def current_location(self) -> tuple[float, float] | None:
        """Latest known ``(latitude, longitude)``, or ``None``."""
        ...


@runtime_checkable
class GeocodingProvider(Protocol):
    async def reverse_geocode(self, latitude: float, longitude: float) -> StructuredAddress:
        """Resolve coordinates to address components. Raises on failure."""
        ...
