"""Registered user profiles."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone

from moodtrack.core.storage.database import MoodDatabase
from moodtrack.core.storage.models import UserProfile

logger = logging.getLogger(__name__)


class UserExistsError(Exception):
    """Raised when registering an email that already has a profile."""


class UserDirectory:
    """CRUD for the ``users`` table."""

    def __init__(self, database: MoodDatabase) -> None:
        self._db = database

    def create(self, email: str, fullname: str) -> UserProfile:
        """Create a profile with a fresh string user id.

        Raises:
            UserExistsError: If the email is already registered.
        """
        profile = UserProfile(
            user_id=str(uuid.uuid4()),
            email=email.strip().lower(),
            fullname=fullname.strip(),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        conn = self._db.connection
        try:
            conn.execute(
                "INSERT INTO users (user_id, email, fullname, created_at) VALUES (?, ?, ?, ?)",
                (profile.user_id, profile.email, profile.fullname, profile.created_at),
            )
            conn.commit()
        except sqlite3.IntegrityError as exc:
            raise UserExistsError(f"An account already exists for {profile.email}") from exc
        logger.info("Registered user %s", profile.user_id)
        return profile

    def get(self, user_id: str) -> UserProfile | None:
        row = self._db.connection.execute(
            "SELECT * FROM users WHERE user_id = ?", (user_id,)
        ).fetchone()
        return self._row_to_profile(row) if row is not None else None

    def find_by_email(self, email: str) -> UserProfile | None:
        row = self._db.connection.execute(
            "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
        ).fetchone()
        return self._row_to_profile(row) if row is not None else None

    @staticmethod
    def _row_to_profile(row) -> UserProfile:
        return UserProfile(
            user_id=row["user_id"],
            email=row["email"],
            fullname=row["fullname"],
            created_at=row["created_at"],
        )
