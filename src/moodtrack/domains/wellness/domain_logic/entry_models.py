"""Mood and coping-activity entry models and their document encoding."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class EntryDecodeError(ValueError):
    """Raised when a stored document does not have the shape of an entry."""


# ---------------------------------------------------------------------------
# Mood vocabulary
# ---------------------------------------------------------------------------

UNKNOWN_COLOR = "unknown"


class MoodType(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    STRESSED = "stressed"
    ANXIOUS = "anxious"
    ANGRY = "angry"
    NEUTRAL = "neutral"
    OTHER = "other"
    EMPTY = "empty"

    @property
    def color_name(self) -> str:
        return _MOOD_COLORS[self]

    @property
    def emoji(self) -> str:
        return _MOOD_EMOJI[self]

    @property
    def display_name(self) -> str:
        if self is MoodType.OTHER:
            return "Other"
        if self is MoodType.EMPTY:
            return "No Mood"
        return self.value.capitalize()


_MOOD_COLORS = {
    MoodType.HAPPY: "green",
    MoodType.SAD: "blue",
    MoodType.STRESSED: "red",
    MoodType.ANXIOUS: "red",
    MoodType.ANGRY: "red",
    MoodType.NEUTRAL: "gray",
    MoodType.OTHER: "gray",
    MoodType.EMPTY: "gray",
}

_MOOD_EMOJI = {
    MoodType.HAPPY: "😊",
    MoodType.SAD: "🙁",
    MoodType.STRESSED: "😰",
    MoodType.ANXIOUS: "😩",
    MoodType.ANGRY: "😡",
    MoodType.NEUTRAL: "😐",
    MoodType.OTHER: "✨",
    MoodType.EMPTY: "",
}

MIN_INTENSITY = 1
MAX_INTENSITY = 10


def mood_color(mood: MoodType | None) -> str:
    """Colour label of a mood; ``"unknown"`` when no mood was recorded."""
    return mood.color_name if mood is not None else UNKNOWN_COLOR


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------

def _encode_ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _decode_ts(value: Any, field_name: str, *, required: bool = False) -> datetime | None:
    if value is None:
        if required:
            raise EntryDecodeError(f"Missing {field_name}")
        return None
    if not isinstance(value, str):
        raise EntryDecodeError(f"{field_name} must be an ISO 8601 string")
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise EntryDecodeError(f"Invalid {field_name}: {value!r}") from exc


def _decode_float(value: Any, field_name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise EntryDecodeError(f"{field_name} must be a number")
    return float(value)


def _decode_str(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise EntryDecodeError(f"{field_name} must be a string")
    return value


def _expect_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise EntryDecodeError(f"{what} must be an object")
    return data


# ---------------------------------------------------------------------------
# Snapshots attached to entries
# ---------------------------------------------------------------------------

@dataclass
class HealthSnapshot:
    """Heart-rate and noise samples attached to an entry.

    A missing field means no sample was available, not a zero reading.
    """

    heart_rate_value: float | None = None
    heart_rate_start: datetime | None = None
    heart_rate_end: datetime | None = None
    noise_level_value: float | None = None
    noise_level_start: datetime | None = None
    noise_level_end: datetime | None = None

    def is_empty(self) -> bool:
        return self.heart_rate_value is None and self.noise_level_value is None

    def to_document(self) -> dict[str, Any]:
        return {
            "heart_rate_value": self.heart_rate_value,
            "heart_rate_start": _encode_ts(self.heart_rate_start),
            "heart_rate_end": _encode_ts(self.heart_rate_end),
            "noise_level_value": self.noise_level_value,
            "noise_level_start": _encode_ts(self.noise_level_start),
            "noise_level_end": _encode_ts(self.noise_level_end),
        }

    @classmethod
    def from_document(cls, data: Any) -> HealthSnapshot | None:
        if data is None:
            return None
        data = _expect_mapping(data, "health_data")
        return cls(
            heart_rate_value=_decode_float(data.get("heart_rate_value"), "heart_rate_value"),
            heart_rate_start=_decode_ts(data.get("heart_rate_start"), "heart_rate_start"),
            heart_rate_end=_decode_ts(data.get("heart_rate_end"), "heart_rate_end"),
            noise_level_value=_decode_float(data.get("noise_level_value"), "noise_level_value"),
            noise_level_start=_decode_ts(data.get("noise_level_start"), "noise_level_start"),
            noise_level_end=_decode_ts(data.get("noise_level_end"), "noise_level_end"),
        )


@dataclass
class LocationSnapshot:
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
        }

    @classmethod
    def from_document(cls, data: Any) -> LocationSnapshot | None:
        if data is None:
            return None
        data = _expect_mapping(data, "location_data")
        return cls(
            latitude=_decode_float(data.get("latitude"), "latitude"),
            longitude=_decode_float(data.get("longitude"), "longitude"),
            address=_decode_str(data.get("address"), "address"),
        )


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

@dataclass
class MoodEntry:
    """A single mood check-in.

    ``intensity`` must lie in [1, 10] whenever a real mood is set; the
    ``empty`` placeholder and entries without a mood may carry 0.
    ``custom_mood_text`` only survives for :attr:`MoodType.OTHER`.
    """

    mood: MoodType | None
    intensity: int
    date: datetime
    journal_text: str | None = None
    custom_mood_text: str | None = None
    health_data: HealthSnapshot | None = None
    location_data: LocationSnapshot | None = None
    id: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.mood, str) and not isinstance(self.mood, MoodType):
            self.mood = MoodType(self.mood)
        if isinstance(self.intensity, bool) or not isinstance(self.intensity, int):
            raise ValueError("intensity must be an integer")
        if self.mood is not None and self.mood is not MoodType.EMPTY:
            if not MIN_INTENSITY <= self.intensity <= MAX_INTENSITY:
                raise ValueError(
                    f"intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}, "
                    f"got {self.intensity}"
                )
        if self.mood is not MoodType.OTHER:
            self.custom_mood_text = None

    @classmethod
    def empty(cls, now: datetime) -> MoodEntry:
        """Placeholder used when no mood has been logged today."""
        return cls(mood=MoodType.EMPTY, intensity=0, date=now)

    @property
    def color_name(self) -> str:
        return mood_color(self.mood)

    @property
    def label(self) -> str:
        """Display label; the custom text for ``other`` moods when present."""
        if self.mood is None:
            return "Unknown"
        if self.mood is MoodType.OTHER and self.custom_mood_text:
            return self.custom_mood_text
        return self.mood.display_name

    def to_document(self) -> dict[str, Any]:
        return {
            "mood": self.mood.value if self.mood is not None else None,
            "intensity": self.intensity,
            "journal_text": self.journal_text,
            "custom_mood_text": self.custom_mood_text,
            "date": self.date.isoformat(),
            "health_data": self.health_data.to_document() if self.health_data else None,
            "location_data": self.location_data.to_document() if self.location_data else None,
        }

    @classmethod
    def from_document(cls, entry_id: str | None, data: Any) -> MoodEntry:
        """Decode a stored document.

        Raises:
            EntryDecodeError: If the document is malformed.
        """
        data = _expect_mapping(data, "mood document")

        raw_mood = data.get("mood")
        if raw_mood is None:
            mood = None
        else:
            try:
                mood = MoodType(raw_mood)
            except ValueError as exc:
                raise EntryDecodeError(f"Unknown mood {raw_mood!r}") from exc

        try:
            return cls(
                id=entry_id,
                mood=mood,
                intensity=data.get("intensity"),
                date=_decode_ts(data.get("date"), "date", required=True),
                journal_text=_decode_str(data.get("journal_text"), "journal_text"),
                custom_mood_text=_decode_str(data.get("custom_mood_text"), "custom_mood_text"),
                health_data=HealthSnapshot.from_document(data.get("health_data")),
                location_data=LocationSnapshot.from_document(data.get("location_data")),
            )
        except EntryDecodeError:
            raise
        except ValueError as exc:
            raise EntryDecodeError(str(exc)) from exc


@dataclass
class ActivityEntry:
    """A completed coping activity.

    ``activity_id`` is a UUID string from the moment of creation, so it can
    be written to the store as is.
    """

    activity_name: str
    timestamp: datetime
    activity_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    health_data: HealthSnapshot | None = None
    location_data: LocationSnapshot | None = None
    music_service: str | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "activity_id": self.activity_id,
            "activity_name": self.activity_name,
            "timestamp": self.timestamp.isoformat(),
            "health_data": self.health_data.to_document() if self.health_data else None,
            "location_data": self.location_data.to_document() if self.location_data else None,
            "music_service": self.music_service,
        }

    @classmethod
    def from_document(cls, entry_id: str | None, data: Any) -> ActivityEntry:
        data = _expect_mapping(data, "activity document")
        name = _decode_str(data.get("activity_name"), "activity_name")
        if not name:
            raise EntryDecodeError("Missing activity_name")
        activity_id = _decode_str(data.get("activity_id"), "activity_id") or entry_id
        if not activity_id:
            raise EntryDecodeError("Missing activity_id")
        return cls(
            activity_id=activity_id,
            activity_name=name,
            timestamp=_decode_ts(data.get("timestamp"), "timestamp", required=True),
            health_data=HealthSnapshot.from_document(data.get("health_data")),
            location_data=LocationSnapshot.from_document(data.get("location_data")),
            music_service=_decode_str(data.get("music_service"), "music_service"),
        )


# ---------------------------------------------------------------------------
# Derived aggregates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DailyMoodCount:
    day: date
    mood_color: str
    count: int


@dataclass(frozen=True)
class MoodTimeDistribution:
    time_of_day: str
    mood_color: str
    count: int
