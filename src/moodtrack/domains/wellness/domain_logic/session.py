"""Signed-in user session, cached in the preference store.

Credentials are verified by the hosting identity provider before a request
reaches this server; the session only tracks which registered profile is
active.
"""

from __future__ import annotations

import logging

from moodtrack.core.storage.models import UserProfile
from moodtrack.core.storage.preferences import PreferenceStore
from moodtrack.core.storage.users import UserDirectory, UserExistsError

logger = logging.getLogger(__name__)

USER_ID_KEY = "user_id"
EMAIL_KEY = "user_email"
FULLNAME_KEY = "user_fullname"
SESSION_KEYS = (USER_ID_KEY, EMAIL_KEY, FULLNAME_KEY)


class AuthenticationError(Exception):
    """Raised on invalid email input or sign-in to an unknown account."""


def validate_email(email: str) -> str:
    cleaned = (email or "").strip()
    if not cleaned or "@" not in cleaned:
        raise AuthenticationError("A valid email address is required")
    return cleaned


def initials(fullname: str | None) -> str:
    """Up to two initials from the first and last name, e.g. ``"AL"``."""
    parts = (fullname or "").split()
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()


class SessionManager:
    """Register, sign in and sign out; exposes the current user id.

    Usage::

        session = SessionManager(UserDirectory(db), PreferenceStore(db))
        session.register("ada@example.com", "Ada Lovelace")
        uid = session.current_user_id()
    """

    def __init__(self, users: UserDirectory, preferences: PreferenceStore) -> None:
        self._users = users
        self._prefs = preferences

    def register(self, email: str, fullname: str) -> UserProfile:
        """Create a profile and sign in as it.

        Raises:
            AuthenticationError: If the email is invalid.
            UserExistsError: If the email is already registered.
        """
        email = validate_email(email)
        if not (fullname or "").strip():
            raise AuthenticationError("Full name is required")
        profile = self._users.create(email, fullname)
        self._remember(profile)
        return profile

    def sign_in(self, email: str) -> UserProfile:
        email = validate_email(email)
        profile = self._users.find_by_email(email)
        if profile is None:
            raise AuthenticationError(f"No account for {email.lower()}")
        self._remember(profile)
        logger.info("Signed in user %s", profile.user_id)
        return profile

    def sign_out(self) -> None:
        user_id = self.current_user_id()
        self._prefs.clear(SESSION_KEYS)
        if user_id:
            logger.info("Signed out user %s", user_id)

    def current_user_id(self) -> str | None:
        return self._prefs.get(USER_ID_KEY)

    def current_user(self) -> UserProfile | None:
        user_id = self.current_user_id()
        return self._users.get(user_id) if user_id else None

    def _remember(self, profile: UserProfile) -> None:
        self._prefs.set(USER_ID_KEY, profile.user_id)
        self._prefs.set(EMAIL_KEY, profile.email)
        self._prefs.set(FULLNAME_KEY, profile.fullname)


__all__ = [
    "AuthenticationError",
    "SessionManager",
    "UserExistsError",
    "initials",
    "validate_email",
]
