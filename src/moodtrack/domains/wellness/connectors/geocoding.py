"""Reverse geocoding for entry location snapshots.

Addresses are advisory enrichment: any failure resolves to "no address"
rather than failing the entry that asked for it.
"""

from __future__ import annotations

import logging
from dataclasses import astuple, dataclass
from typing import Any

import httpx

from moodtrack.domains.wellness.connectors import GeocodingProvider

logger = logging.getLogger(__name__)

ADDRESS_DELIMITER = ", "

# Nominatim spells "locality" several ways depending on settlement size.
_LOCALITY_KEYS = ("city", "town", "village", "hamlet", "suburb")


class GeocodingError(Exception):
    """Raised when the geocoding service cannot resolve a coordinate."""


@dataclass
class StructuredAddress:
    """Address components in display order."""

    sub_thoroughfare: str | None = None   # house / street number
    thoroughfare: str | None = None       # street
    locality: str | None = None
    administrative_area: str | None = None
    postal_code: str | None = None
    country: str | None = None


def format_address(address: StructuredAddress) -> str | None:
    """Join present components in fixed order; ``None`` if none are present."""
    parts = [part.strip() for part in astuple(address) if part and part.strip()]
    return ADDRESS_DELIMITER.join(parts) if parts else None


async def resolve_address(
    geocoder: GeocodingProvider | None,
    latitude: float,
    longitude: float,
) -> str | None:
    """Best-effort human-readable address for a coordinate."""
    if geocoder is None:
        return None
    try:
        address = await geocoder.reverse_geocode(latitude, longitude)
    except Exception as exc:
        logger.warning("Reverse geocode failed for (%.4f, %.4f): %s", latitude, longitude, exc)
        return None
    return format_address(address)


class NominatimGeocoder:
    """GeocodingProvider for an OpenStreetMap Nominatim ``/reverse`` endpoint.

    Usage::

        geocoder = NominatimGeocoder("https://nominatim.openstreetmap.org")
        address = await geocoder.reverse_geocode(40.7484, -73.9857)
    """

    def __init__(
        self,
        base_url: str,
        *,
        user_agent: str = "moodtrack/0.1",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"User-Agent": user_agent}
        self._timeout = timeout
        self._transport = transport

    async def reverse_geocode(self, latitude: float, longitude: float) -> StructuredAddress:
        params = {"format": "jsonv2", "lat": latitude, "lon": longitude, "addressdetails": 1}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.get("/reverse", params=params)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise GeocodingError(
                f"Geocoder returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise GeocodingError(f"Geocoder request failed: {exc}") from exc
        except ValueError as exc:
            raise GeocodingError("Geocoder returned invalid JSON") from exc

        return _parse_nominatim(payload)


def _parse_nominatim(payload: Any) -> StructuredAddress:
    if not isinstance(payload, dict):
        raise GeocodingError("Unexpected geocoder payload")
    if "error" in payload:
        raise GeocodingError(str(payload["error"]))

    address = payload.get("address")
    if not isinstance(address, dict):
        raise GeocodingError("Geocoder payload has no address")

    locality = next((address[key] for key in _LOCALITY_KEYS if address.get(key)), None)
    return StructuredAddress(
        sub_thoroughfare=address.get("house_number"),
        thoroughfare=address.get("road"),
        locality=locality,
        administrative_area=address.get("state"),
        postal_code=address.get("postcode"),
        country=address.get("country"),
    )
