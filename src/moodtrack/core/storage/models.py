"""Data models for the persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StoredRecord:
    """A decrypted document as returned by the record store.

    ``data`` is the raw document; decoding it into a domain entry is the
    caller's job, so a malformed document never fails the whole query.
    """

    id: str
    user_id: str
    collection: str
    timestamp: str  # ISO 8601 with the writer's local offset
    data: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""


@dataclass
class UserProfile:
    """A registered user."""

    user_id: str
    email: str
    fullname: str
    created_at: str = ""
