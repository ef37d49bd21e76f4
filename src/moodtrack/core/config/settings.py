"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """moodtrack server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default: the server holds mood journals and has no auth layer.
    moodtrack_host: str = "127.0.0.1"
    moodtrack_port: int = 8001
    moodtrack_log_level: str = "info"
    moodtrack_allow_insecure_bind: bool = False

    # Storage (entry store + preferences)
    db_path: str = "~/.moodtrack/moodtrack.db"
    encryption_key: str = ""

    # IANA zone used for day buckets; empty means the system local zone.
    timezone: str = ""

    # Sensors
    sensor_mode: Literal["apple_health", "mock", "off"] = "off"
    apple_health_export_path: str = ""

    # Location (no device GPS on a server; a fixed point stands in for it)
    default_latitude: float | None = None
    default_longitude: float | None = None

    # Reverse geocoding
    geocoder_url: str = "https://nominatim.openstreetmap.org"
    geocoder_user_agent: str = "moodtrack/0.1"
    geocoder_timeout_s: float = 10.0

    # Aggregation defaults
    mood_window_days: int = 30
    report_default_days: int = 7


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
