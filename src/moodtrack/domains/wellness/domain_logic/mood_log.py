"""Mood check-ins: save, browse, listen and chart."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Iterable, Literal

from moodtrack.core.storage.models import StoredRecord
from moodtrack.core.storage.record_store import MOODS, RecordStore, RecordStoreError
from moodtrack.core.storage.subscription import Subscription
from moodtrack.domains.wellness.domain_logic.aggregation import (
    mood_counts_for_last_days,
    mood_counts_for_range,
)
from moodtrack.domains.wellness.domain_logic.calendar_grid import day_bounds
from moodtrack.domains.wellness.domain_logic.entry_context import EntryContextCollector
from moodtrack.domains.wellness.domain_logic.entry_models import (
    DailyMoodCount,
    EntryDecodeError,
    MoodEntry,
)
from moodtrack.domains.wellness.domain_logic.session import SessionManager

logger = logging.getLogger(__name__)

SaveStatus = Literal["saved", "not_authenticated", "failed"]


@dataclass
class SaveResult:
    status: SaveStatus
    entry_id: str | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "saved"

    @property
    def audit_status(self) -> str:
        """Status in the audit trail vocabulary."""
        return {"saved": "success", "failed": "failure"}.get(self.status, self.status)

    def to_dict(self) -> dict:
        return {"status": self.status, "entry_id": self.entry_id, "message": self.message}


def decode_moods(records: Iterable[StoredRecord]) -> list[MoodEntry]:
    """Decode stored documents, dropping (and logging) malformed ones."""
    entries = []
    for record in records:
        try:
            entries.append(MoodEntry.from_document(record.id, record.data))
        except EntryDecodeError as exc:
            logger.warning("Skipping malformed mood record %s: %s", record.id, exc)
    return entries


class MoodLog:
    """Mood entries of the signed-in user.

    Every operation is scoped to the current session. Without a signed-in
    user, saves report ``not_authenticated`` and queries return nothing.

    Usage::

        moods = MoodLog(store, session, context=collector)
        result = await moods.add_mood(MoodEntry(MoodType.HAPPY, 7, now))
        today = moods.latest_mood_today()
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
        self._tz = tz
        self._clock = clock or (lambda: datetime.now(tz).astimezone(tz))

    @property
    def tz(self) -> tzinfo | None:
        return self._tz

    def now(self) -> datetime:
        return self._clock()

    def _user_id(self, action: str) -> str | None:
        user_id = self._session.current_user_id()
        if not user_id:
            logger.warning("Cannot %s: no user is signed in", action)
        return user_id

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add_mood(self, entry: MoodEntry) -> SaveResult:
        """Attach health and location context to ``entry`` and save it.

        Context already present on the entry is kept as is.
        """
        user_id = self._user_id("save mood")
        if not user_id:
            return SaveResult("not_authenticated", message="Sign in to save moods")

        if self._context is not None:
            health, location = await self._context.collect(entry.date)
            if entry.health_data is None:
                entry.health_data = health
            if entry.location_data is None:
                entry.location_data = location

        try:
            entry_id = self._store.create_entry(
                user_id, MOODS, entry.to_document(), timestamp=entry.date
            )
        except RecordStoreError as exc:
            logger.exception("Failed to save mood entry")
            return SaveResult("failed", message=str(exc))

        entry.id = entry_id
        logger.info("Saved %s mood %s", entry.color_name, entry_id)
        return SaveResult("saved", entry_id=entry_id, message="Mood saved")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_moods(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[MoodEntry]:
        """Decodable moods in ``[start, end)``, oldest first."""
        user_id = self._user_id("fetch moods")
        if not user_id:
            return []
        return decode_moods(self._store.query_entries(user_id, MOODS, since=start, until=end))

    async def moods_for_day(self, day: date) -> list[MoodEntry]:
        start, end = day_bounds(day, self._tz)
        return self.fetch_moods(start, end)

    def latest_mood_today(self) -> MoodEntry:
        """Newest mood since local midnight, or the empty placeholder."""
        now = self.now()
        user_id = self._user_id("fetch latest mood")
        if not user_id:
            return MoodEntry.empty(now)
        midnight, _ = day_bounds(now.astimezone(self._tz).date(), self._tz)
        records = self._store.query_entries(user_id, MOODS, since=midnight, newest_first=True)
        entries = decode_moods(records)
        return entries[0] if entries else MoodEntry.empty(now)

    def listen_latest_today(self) -> Subscription | None:
        """Subscribe to today's latest mood.

        Yields a :class:`MoodEntry` (or ``None``) now and after every save.
        Returns ``None`` when nobody is signed in.
        """
        user_id = self._user_id("listen for moods")
        if not user_id:
            return None
        midnight, _ = day_bounds(self.now().astimezone(self._tz).date(), self._tz)
        return self._store.listen_latest(user_id, MOODS, since=midnight).map(_record_to_mood)

    # ------------------------------------------------------------------
    # Charts
    # ------------------------------------------------------------------

    def daily_counts_last_days(self, days: int) -> list[DailyMoodCount]:
        now = self.now()
        recent = self.fetch_moods(start=now - timedelta(days=days))
        return mood_counts_for_last_days(recent, days, now=now, tz=self._tz)

    def daily_counts_range(self, start: datetime, end: datetime) -> list[DailyMoodCount]:
        return mood_counts_for_range(self.fetch_moods(start, end), start, end, tz=self._tz)


def _record_to_mood(record: StoredRecord | None) -> MoodEntry | None:
    if record is None:
        return None
    try:
        return MoodEntry.from_document(record.id, record.data)
    except EntryDecodeError as exc:
        logger.warning("Skipping malformed mood record %s: %s", record.id, exc)
        return None
