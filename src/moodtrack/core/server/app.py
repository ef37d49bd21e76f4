"""moodtrack MCP server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from fastmcp import FastMCP

from moodtrack.core.audit.logger import AuditLogger
from moodtrack.core.config.settings import Settings, get_settings
from moodtrack.core.storage.database import MoodDatabase
from moodtrack.core.storage.encryption import DocumentCipher, EncryptionError
from moodtrack.core.storage.preferences import PreferenceStore
from moodtrack.core.storage.record_store import RecordStore, SQLiteRecordStore
from moodtrack.core.storage.users import UserDirectory
from moodtrack.domains.wellness.connectors import (
    AuthorizationStatus,
    GeocodingProvider,
    LocationProvider,
    SensorProvider,
)
from moodtrack.domains.wellness.connectors.apple_health import AppleHealthSensorProvider
from moodtrack.domains.wellness.connectors.geocoding import NominatimGeocoder
from moodtrack.domains.wellness.connectors.mock_data import get_mock_samples
from moodtrack.domains.wellness.connectors.providers import (
    StaticLocationProvider,
    StaticSensorProvider,
)
from moodtrack.domains.wellness.domain_logic.activity_log import ActivityLog
from moodtrack.domains.wellness.domain_logic.availability import DayAvailabilityChecker
from moodtrack.domains.wellness.domain_logic.entry_context import EntryContextCollector
from moodtrack.domains.wellness.domain_logic.health_summary import HealthSummary
from moodtrack.domains.wellness.domain_logic.mood_log import MoodLog
from moodtrack.domains.wellness.domain_logic.reports import ReportBuilder
from moodtrack.domains.wellness.domain_logic.session import SessionManager
from moodtrack.domains.wellness.tools.activity_tools import register_activity_tools
from moodtrack.domains.wellness.tools.audit_tools import register_audit_tools
from moodtrack.domains.wellness.tools.calendar_tools import register_calendar_tools
from moodtrack.domains.wellness.tools.health_tools import register_health_tools
from moodtrack.domains.wellness.tools.mood_tools import register_mood_tools
from moodtrack.domains.wellness.tools.session_tools import register_session_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "moodtrack"
SERVER_VERSION = "0.1.0"


def _build_sensor_provider(settings: Settings) -> SensorProvider:
    if settings.sensor_mode == "apple_health":
        logger.info("Using Apple Health export: %s", settings.apple_health_export_path or "<unset>")
        return AppleHealthSensorProvider(settings.apple_health_export_path)
    if settings.sensor_mode == "mock":
        logger.info("Using mock sensor data")
        return StaticSensorProvider(get_mock_samples(datetime.now().astimezone()))
    logger.info("Sensor data disabled")
    return StaticSensorProvider({}, status=AuthorizationStatus.DENIED)


def _build_location_provider(settings: Settings) -> LocationProvider:
    try:
        return StaticLocationProvider(settings.default_latitude, settings.default_longitude)
    except ValueError as exc:
        logger.error("Ignoring location settings: %s", exc)
        return StaticLocationProvider()


def _open_database(settings: Settings) -> tuple[MoodDatabase, DocumentCipher]:
    """Open the configured store, or an in-memory one when no key is set."""
    if settings.encryption_key:
        try:
            cipher = DocumentCipher(settings.encryption_key)
            database = MoodDatabase(settings.db_path)
            database.initialize()
            logger.info(
                "Entry store initialized: %s (schema v%d)",
                settings.db_path,
                database.get_schema_version(),
            )
            return database, cipher
        except EncryptionError as exc:
            logger.error("Failed to initialize storage: %s", exc)

    logger.warning(
        "No usable ENCRYPTION_KEY configured; entries are kept in memory only. "
        "Set ENCRYPTION_KEY to persist them."
    )
    database = MoodDatabase(":memory:")
    database.initialize()
    return database, DocumentCipher(DocumentCipher.generate_key())


def create_app(
    *,
    database_override: MoodDatabase | None = None,
    record_store_override: RecordStore | None = None,
    sensor_provider_override: SensorProvider | None = None,
    location_provider_override: LocationProvider | None = None,
    geocoder_override: GeocodingProvider | None = None,
) -> FastMCP:
    """Create and configure the moodtrack MCP server.

    This is the main application factory. It:
    1. Opens the encrypted entry store, user directory and preferences
    2. Selects the sensor, location and geocoding providers
    3. Wires the session, mood, activity, availability and report services
    4. Registers all tools
    """
    settings = get_settings()
    tz = ZoneInfo(settings.timezone) if settings.timezone else None

    server = FastMCP(
        "moodtrack",
        instructions=(
            "Personal wellness log. Record mood check-ins and coping activities, "
            "browse a calendar of days with data, chart moods by day and colour, "
            "and build reports over heart rate, noise, mood and activity data."
        ),
    )

    # --- Storage ---
    if database_override is not None:
        database = database_override
        cipher = None
    else:
        database, cipher = _open_database(settings)

    if record_store_override is not None:
        store = record_store_override
    else:
        store = SQLiteRecordStore(database, cipher or DocumentCipher(DocumentCipher.generate_key()))

    audit_logger = AuditLogger(database)
    session = SessionManager(UserDirectory(database), PreferenceStore(database))

    # --- Providers (one shared instance per kind) ---
    sensors = sensor_provider_override or _build_sensor_provider(settings)
    location = location_provider_override or _build_location_provider(settings)
    geocoder = geocoder_override or NominatimGeocoder(
        settings.geocoder_url,
        user_agent=settings.geocoder_user_agent,
        timeout=settings.geocoder_timeout_s,
    )

    # --- Services ---
    context = EntryContextCollector(sensors, location, geocoder)
    mood_log = MoodLog(store, session, context, tz=tz)
    activity_log = ActivityLog(store, session, context, tz=tz)
    availability = DayAvailabilityChecker(sensors, mood_log, tz=tz)
    report_builder = ReportBuilder(mood_log, activity_log, sensors, tz=tz)
    health_summary = HealthSummary(sensors, tz=tz)

    @server.tool
    async def health_check() -> dict:
        """Check server health and return basic status information."""
        user_id = session.current_user_id()
        status = {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "sensor_mode": settings.sensor_mode,
            "sensor_authorization": sensors.authorization_status.value,
            "timezone": settings.timezone or "local",
            "signed_in": user_id is not None,
        }
        if isinstance(store, SQLiteRecordStore) and user_id:
            status["entries_stored"] = store.count_entries(user_id)
        return status

    register_session_tools(server, session, audit_logger)
    register_mood_tools(
        server,
        mood_log,
        session,
        tz=tz,
        default_window_days=settings.mood_window_days,
        audit_logger=audit_logger,
    )
    register_activity_tools(server, activity_log, session, tz=tz, audit_logger=audit_logger)
    register_calendar_tools(
        server,
        availability,
        report_builder,
        mood_log,
        session,
        tz=tz,
        report_default_days=settings.report_default_days,
        audit_logger=audit_logger,
    )
    register_health_tools(server, health_summary, session, audit_logger=audit_logger)
    register_audit_tools(server, audit_logger, session)
    logger.info("moodtrack tools registered")

    return server


# Module-level instance for FastMCP discovery ("server": "...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
