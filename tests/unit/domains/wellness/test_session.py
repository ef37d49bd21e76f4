"""Tests for SessionManager."""

from __future__ import annotations

import pytest

from moodtrack.domains.wellness.domain_logic.session import (
    AuthenticationError,
    SessionManager,
    UserExistsError,
    initials,
)


class TestRegister:
    def test_register_signs_in(self, session):
        profile = session.register("ada@example.com", "Ada Lovelace")
        assert session.current_user_id() == profile.user_id
        assert session.current_user() == profile

    @pytest.mark.parametrize("email", ["", "   ", "not-an-email"])
    def test_invalid_email_rejected(self, session, email):
        with pytest.raises(AuthenticationError):
            session.register(email, "Ada Lovelace")
        assert session.current_user_id() is None

    def test_blank_name_rejected(self, session):
        with pytest.raises(AuthenticationError):
            session.register("ada@example.com", "  ")

    def test_duplicate_email_rejected(self, session):
        session.register("ada@example.com", "Ada Lovelace")
        with pytest.raises(UserExistsError):
            session.register("ada@example.com", "Ada Again")


class TestSignInOut:
    def test_sign_in_existing_account(self, session):
        profile = session.register("ada@example.com", "Ada Lovelace")
        session.sign_out()
        assert session.current_user_id() is None
        assert session.sign_in("ADA@example.com").user_id == profile.user_id
        assert session.current_user_id() == profile.user_id

    def test_sign_in_unknown_account(self, session):
        with pytest.raises(AuthenticationError, match="No account"):
            session.sign_in("nobody@example.com")

    def test_sign_out_clears_cached_identity(self, session, prefs):
        session.register("ada@example.com", "Ada Lovelace")
        session.sign_out()
        assert prefs.get("user_id") is None
        assert prefs.get("user_email") is None
        assert prefs.get("user_fullname") is None
        assert session.current_user() is None

    def test_sign_out_when_signed_out_is_safe(self, session):
        session.sign_out()
        assert session.current_user_id() is None

    def test_identity_survives_new_manager(self, session, users, prefs):
        profile = session.register("ada@example.com", "Ada Lovelace")
        assert SessionManager(users, prefs).current_user_id() == profile.user_id


class TestInitials:
    @pytest.mark.parametrize("name, expected", [
        ("Ada Lovelace", "AL"),
        ("ada king lovelace", "AL"),
        ("Cher", "C"),
        ("", ""),
        (None, ""),
    ])
    def test_initials(self, name, expected):
        assert initials(name) == expected
