"""Tests for PreferenceStore and UserDirectory."""

from __future__ import annotations

import pytest

from moodtrack.core.storage.users import UserExistsError


class TestPreferenceStore:
    def test_get_missing_returns_none(self, prefs):
        assert prefs.get("user_id") is None

    def test_set_then_get(self, prefs):
        prefs.set("user_id", "abc")
        assert prefs.get("user_id") == "abc"

    def test_set_overwrites(self, prefs):
        prefs.set("user_id", "abc")
        prefs.set("user_id", "def")
        assert prefs.get("user_id") == "def"

    def test_remove(self, prefs):
        prefs.set("user_id", "abc")
        prefs.remove("user_id")
        assert prefs.get("user_id") is None

    def test_clear_only_named_keys(self, prefs):
        prefs.set("a", "1")
        prefs.set("b", "2")
        prefs.set("c", "3")
        prefs.clear(["a", "b"])
        assert prefs.get("a") is None
        assert prefs.get("b") is None
        assert prefs.get("c") == "3"

    def test_clear_nothing_is_noop(self, prefs):
        prefs.set("a", "1")
        prefs.clear([])
        assert prefs.get("a") == "1"

    def test_persists_across_instances(self, mood_db):
        from moodtrack.core.storage.preferences import PreferenceStore

        PreferenceStore(mood_db).set("user_id", "abc")
        assert PreferenceStore(mood_db).get("user_id") == "abc"


class TestUserDirectory:
    def test_create_assigns_string_id(self, users):
        profile = users.create("Ada@Example.com ", " Ada Lovelace ")
        assert isinstance(profile.user_id, str)
        assert profile.email == "ada@example.com"
        assert profile.fullname == "Ada Lovelace"

    def test_lookup_by_id_and_email(self, users):
        profile = users.create("ada@example.com", "Ada Lovelace")
        assert users.get(profile.user_id) == profile
        assert users.find_by_email("ADA@example.com") == profile

    def test_unknown_lookups_return_none(self, users):
        assert users.get("missing") is None
        assert users.find_by_email("nobody@example.com") is None

    def test_duplicate_email_raises(self, users):
        users.create("ada@example.com", "Ada Lovelace")
        with pytest.raises(UserExistsError):
            users.create("ADA@example.com", "Someone Else")
