"""Shared test fixtures for moodtrack tests."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("DB_PATH", ":memory:")
    monkeypatch.setenv("SENSOR_MODE", "off")
    monkeypatch.setenv("TIMEZONE", "")
    monkeypatch.delenv("DEFAULT_LATITUDE", raising=False)
    monkeypatch.delenv("DEFAULT_LONGITUDE", raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from moodtrack.core.storage.database import MoodDatabase  # noqa: E402
from moodtrack.core.storage.encryption import DocumentCipher  # noqa: E402
from moodtrack.core.storage.preferences import PreferenceStore  # noqa: E402
from moodtrack.core.storage.record_store import SQLiteRecordStore  # noqa: E402
from moodtrack.core.storage.users import UserDirectory  # noqa: E402
from moodtrack.domains.wellness.connectors import MetricKind, Sample  # noqa: E402
from moodtrack.domains.wellness.connectors.providers import (  # noqa: E402
    StaticLocationProvider,
    StaticSensorProvider,
)
from moodtrack.domains.wellness.domain_logic.session import SessionManager  # noqa: E402

# Fixed zone and instant so day buckets do not depend on the host clock.
TEST_TZ = timezone(timedelta(hours=-5))
TEST_NOW = datetime(2025, 1, 2, 15, 30, tzinfo=TEST_TZ)


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mood_db():
    """Create an in-memory MoodDatabase for testing."""
    db = MoodDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def cipher() -> DocumentCipher:
    return DocumentCipher(DocumentCipher.generate_key())


@pytest.fixture
def record_store(mood_db, cipher) -> SQLiteRecordStore:
    return SQLiteRecordStore(mood_db, cipher)


@pytest.fixture
def prefs(mood_db) -> PreferenceStore:
    return PreferenceStore(mood_db)


@pytest.fixture
def users(mood_db) -> UserDirectory:
    return UserDirectory(mood_db)


@pytest.fixture
def session(users, prefs) -> SessionManager:
    return SessionManager(users, prefs)


@pytest.fixture
def signed_in(session) -> SessionManager:
    """A session already signed in as a registered test user."""
    session.register("ada@example.com", "Ada Lovelace")
    return session


@pytest.fixture
def audit_logger(mood_db):
    from moodtrack.core.audit.logger import AuditLogger

    return AuditLogger(mood_db)


# ---------------------------------------------------------------------------
# Static providers
# ---------------------------------------------------------------------------

def make_sample(start: datetime, value: float, minutes: int = 1) -> Sample:
    return Sample(start=start, end=start + timedelta(minutes=minutes), value=value)


@pytest.fixture
def sensor_provider() -> StaticSensorProvider:
    """Heart rate and noise samples around TEST_NOW."""
    return StaticSensorProvider({
        MetricKind.HEART_RATE: [
            make_sample(TEST_NOW - timedelta(hours=2), 64.0),
            make_sample(TEST_NOW - timedelta(minutes=30), 72.0),
            make_sample(TEST_NOW + timedelta(hours=1), 90.0),
        ],
        MetricKind.NOISE_EXPOSURE: [
            make_sample(TEST_NOW - timedelta(hours=1), 55.0),
        ],
    })


@pytest.fixture
def location_provider() -> StaticLocationProvider:
    return StaticLocationProvider(40.7484, -73.9857)
