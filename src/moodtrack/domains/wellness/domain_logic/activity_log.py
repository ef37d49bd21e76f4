"""Coping activities and music-service selections."""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Callable

from moodtrack.core.storage.record_store import (
    COPING_ACTIVITIES,
    MUSIC_SELECTIONS,
    RecordStore,
    RecordStoreError,
)
from moodtrack.domains.wellness.domain_logic.entry_context import EntryContextCollector
from moodtrack.domains.wellness.domain_logic.entry_models import ActivityEntry, EntryDecodeError
from moodtrack.domains.wellness.domain_logic.mood_log import SaveResult
from moodtrack.domains.wellness.domain_logic.session import SessionManager

logger = logging.getLogger(__name__)

SUGGESTED_ACTIVITIES = [
    "Calm App",
    "Listen to Music",
    "Take a walk",
    "Meditate",
    "Play games",
    "Read",
]
LISTEN_TO_MUSIC = "Listen to Music"
MUSIC_SERVICES = ["Apple Music", "Spotify"]
MAX_ACTIVITY_NAME_LENGTH = 50


def validate_activity_name(name: str) -> str:
    """Trimmed activity name.

    Raises:
        ValueError: If the name is blank or longer than 50 characters.
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Activity name is required")
    if len(cleaned) > MAX_ACTIVITY_NAME_LENGTH:
        raise ValueError(
            f"Activity name must be at most {MAX_ACTIVITY_NAME_LENGTH} characters"
        )
    return cleaned


class ActivityLog:
    """Coping activities of the signed-in user.

    Usage::

        activities = ActivityLog(store, session, context=collector)
        await activities.add_activity(ActivityEntry("Take a walk", now))
    """

    def __init__(
        self,
        store: RecordStore,
        session: SessionManager,
        context: EntryContextCollector | None = None,
        *,
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._session = session
        self._context = context
        self._clock = clock or (lambda: datetime.now(tz).astimezone(tz))

    def now(self) -> datetime:
        return self._clock()

    async def add_activity(self, entry: ActivityEntry) -> SaveResult:
        """Attach context and save under the entry's own ``activity_id``."""
        user_id = self._session.current_user_id()
        if not user_id:
            logger.warning("Cannot save activity: no user is signed in")
            return SaveResult("not_authenticated", message="Sign in to save activities")

        if self._context is not None:
            health, location = await self._context.collect(entry.timestamp)
            if entry.health_data is None:
                entry.health_data = health
            if entry.location_data is None:
                entry.location_data = location

        try:
            entry_id = self._store.create_entry(
                user_id,
                COPING_ACTIVITIES,
                entry.to_document(),
                timestamp=entry.timestamp,
                entry_id=entry.activity_id,
            )
        except RecordStoreError as exc:
            logger.exception("Failed to save coping activity")
            return SaveResult("failed", message=str(exc))

        logger.info("Saved coping activity %s", entry_id)
        return SaveResult("saved", entry_id=entry_id, message="Activity saved")

    async def log_music_selection(self, service: str) -> SaveResult:
        """Record which music service was opened for "Listen to Music"."""
        user_id = self._session.current_user_id()
        if not user_id:
            logger.warning("Cannot log music selection: no user is signed in")
            return SaveResult("not_authenticated", message="Sign in to log music")

        now = self._clock()
        try:
            entry_id = self._store.create_entry(
                user_id,
                MUSIC_SELECTIONS,
                {"music_service_selected": service, "timestamp": now.isoformat()},
                timestamp=now,
            )
        except RecordStoreError as exc:
            logger.exception("Failed to log music selection")
            return SaveResult("failed", message=str(exc))

        logger.info("Logged music selection %s", service)
        return SaveResult("saved", entry_id=entry_id, message=f"Logged {service}")

    def fetch_activities(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[ActivityEntry]:
        """Decodable activities in ``[start, end)``, oldest first."""
        user_id = self._session.current_user_id()
        if not user_id:
            logger.warning("Cannot fetch activities: no user is signed in")
            return []

        entries = []
        for record in self._store.query_entries(
            user_id, COPING_ACTIVITIES, since=start, until=end
        ):
            try:
                entries.append(ActivityEntry.from_document(record.id, record.data))
            except EntryDecodeError as exc:
                logger.warning("Skipping malformed activity record %s: %s", record.id, exc)
        return entries
