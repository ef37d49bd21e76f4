"""Persisted key-value preferences (session identity cache)."""

from __future__ import annotations

import logging
from typing import Iterable

from moodtrack.core.storage.database import MoodDatabase

logger = logging.getLogger(__name__)


class PreferenceStore:
    """Small string key-value store in the ``preferences`` table.

    Usage::

        prefs = PreferenceStore(db)
        prefs.set("user_id", uid)
        prefs.get("user_id")
        prefs.remove("user_id")
    """

    def __init__(self, database: MoodDatabase) -> None:
        self._db = database

    def get(self, key: str) -> str | None:
        row = self._db.connection.execute(
            "SELECT value FROM preferences WHERE key = ?", (key,)
        ).fetchone()
        return row[0] if row is not None else None

    def set(self, key: str, value: str) -> None:
        conn = self._db.connection
        conn.execute(
            """INSERT INTO preferences (key, value, updated_at) VALUES (?, ?, datetime('now'))
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   updated_at = excluded.updated_at""",
            (key, value),
        )
        conn.commit()

    def remove(self, key: str) -> None:
        conn = self._db.connection
        conn.execute("DELETE FROM preferences WHERE key = ?", (key,))
        conn.commit()

    def clear(self, keys: Iterable[str]) -> None:
        """Remove several keys in one transaction."""
        keys = list(keys)
        if not keys:
            return
        placeholders = ",".join("?" for _ in keys)
        conn = self._db.connection
        conn.execute(f"DELETE FROM preferences WHERE key IN ({placeholders})", keys)
        conn.commit()
        logger.debug("Cleared preferences: %s", keys)
