"""Tests for date-window filters and mood aggregation."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from moodtrack.domains.wellness.domain_logic.aggregation import (
    color_totals,
    daily_mood_counts,
    filter_by_days,
    filter_by_range,
    mood_counts_for_last_days,
    mood_counts_for_range,
    mood_time_distribution,
    mood_type_totals,
    time_of_day,
)
from moodtrack.domains.wellness.domain_logic.entry_models import (
    ActivityEntry,
    DailyMoodCount,
    MoodEntry,
    MoodType,
)

EST = timezone(timedelta(hours=-5))
NOW = datetime(2025, 1, 10, 12, 0, tzinfo=EST)


def _mood(mood: MoodType | None, when: datetime, intensity: int = 5) -> MoodEntry:
    return MoodEntry(mood=mood, intensity=intensity, date=when)


class TestFilterByDays:
    def test_both_bounds_inclusive(self):
        entries = [
            _mood(MoodType.HAPPY, NOW - timedelta(days=7)),
            _mood(MoodType.SAD, NOW),
            _mood(MoodType.ANGRY, NOW - timedelta(days=7, seconds=1)),
            _mood(MoodType.NEUTRAL, NOW + timedelta(seconds=1)),
        ]
        kept = filter_by_days(entries, 7, now=NOW)
        assert [e.mood for e in kept] == [MoodType.HAPPY, MoodType.SAD]

    def test_keeps_input_order_and_does_not_mutate(self):
        entries = [_mood(MoodType.SAD, NOW - timedelta(hours=1)), _mood(MoodType.HAPPY, NOW - timedelta(days=2))]
        snapshot = list(entries)
        assert filter_by_days(entries, 3, now=NOW) == snapshot
        assert entries == snapshot

    def test_idempotent(self):
        entries = [_mood(MoodType.HAPPY, NOW - timedelta(days=d)) for d in range(10)]
        once = filter_by_days(entries, 4, now=NOW)
        assert filter_by_days(once, 4, now=NOW) == once

    def test_empty_input(self):
        assert filter_by_days([], 7, now=NOW) == []

    def test_works_on_activities(self):
        activities = [ActivityEntry("Read", NOW - timedelta(days=1)), ActivityEntry("Meditate", NOW - timedelta(days=9))]
        assert [a.activity_name for a in filter_by_days(activities, 7, now=NOW)] == ["Read"]


class TestFilterByRange:
    def test_start_inclusive_end_exclusive(self):
        start, end = NOW - timedelta(days=1), NOW
        entries = [_mood(MoodType.HAPPY, start), _mood(MoodType.SAD, end)]
        assert [e.mood for e in filter_by_range(entries, start, end)] == [MoodType.HAPPY]

    def test_inverted_range_is_empty(self):
        entries = [_mood(MoodType.HAPPY, NOW)]
        assert filter_by_range(entries, NOW + timedelta(days=1), NOW - timedelta(days=1)) == []

    def test_idempotent(self):
        entries = [_mood(MoodType.HAPPY, NOW - timedelta(hours=h)) for h in range(48)]
        start, end = NOW - timedelta(hours=30), NOW - timedelta(hours=5)
        once = filter_by_range(entries, start, end)
        assert filter_by_range(once, start, end) == once

    def test_custom_key(self):
        pairs = [("a", NOW), ("b", NOW - timedelta(days=3))]
        kept = filter_by_range(pairs, NOW - timedelta(days=1), NOW + timedelta(days=1), key=lambda p: p[1])
        assert kept == [("a", NOW)]


class TestDailyMoodCounts:
    def test_two_day_scenario(self):
        entries = [
            _mood(MoodType.HAPPY, datetime(2025, 1, 1, 9, 0, tzinfo=EST)),
            _mood(MoodType.HAPPY, datetime(2025, 1, 1, 18, 0, tzinfo=EST)),
            _mood(MoodType.SAD, datetime(2025, 1, 1, 21, 0, tzinfo=EST)),
            _mood(MoodType.ANGRY, datetime(2025, 1, 2, 8, 0, tzinfo=EST)),
        ]
        counts = daily_mood_counts(entries, tz=EST)
        assert counts == [
            DailyMoodCount(date(2025, 1, 1), "green", 2),
            DailyMoodCount(date(2025, 1, 1), "blue", 1),
            DailyMoodCount(date(2025, 1, 2), "red", 1),
        ]

    def test_buckets_by_local_midnight_not_utc(self):
        # 20:00 local on Jan 1 is 01:00 UTC on Jan 2.
        entry = _mood(MoodType.HAPPY, datetime(2025, 1, 2, 1, 0, tzinfo=timezone.utc))
        assert daily_mood_counts([entry], tz=EST)[0].day == date(2025, 1, 1)
        assert daily_mood_counts([entry], tz=timezone.utc)[0].day == date(2025, 1, 2)

    def test_entries_straddling_utc_midnight_share_local_day(self):
        # 23:59:30 and 00:00:30 UTC are both Jan 1 evening in UTC-5.
        entries = [
            _mood(MoodType.HAPPY, datetime(2025, 1, 1, 23, 59, 30, tzinfo=timezone.utc)),
            _mood(MoodType.HAPPY, datetime(2025, 1, 2, 0, 0, 30, tzinfo=timezone.utc)),
        ]
        assert daily_mood_counts(entries, tz=EST) == [DailyMoodCount(date(2025, 1, 1), "green", 2)]

    def test_red_moods_share_a_bucket(self):
        day = datetime(2025, 1, 3, 10, 0, tzinfo=EST)
        entries = [_mood(m, day) for m in (MoodType.STRESSED, MoodType.ANXIOUS, MoodType.ANGRY)]
        assert daily_mood_counts(entries, tz=EST) == [DailyMoodCount(date(2025, 1, 3), "red", 3)]

    def test_missing_mood_counts_as_unknown(self):
        entries = [_mood(None, NOW, intensity=0)]
        assert daily_mood_counts(entries, tz=EST)[0].mood_color == "unknown"

    def test_sorted_by_day(self):
        entries = [_mood(MoodType.HAPPY, NOW - timedelta(days=d)) for d in (0, 3, 1, 2)]
        days = [c.day for c in daily_mood_counts(entries, tz=EST)]
        assert days == sorted(days)

    def test_counts_sum_to_input_size(self):
        moods = list(MoodType)
        entries = [_mood(moods[i % len(moods)], NOW - timedelta(hours=7 * i)) for i in range(40)]
        entries = [e for e in entries if e.mood is not MoodType.EMPTY] + [MoodEntry.empty(NOW)]
        counts = daily_mood_counts(entries, tz=EST)
        assert sum(c.count for c in counts) == len(entries)
        assert all(c.count > 0 for c in counts)

    def test_deterministic(self):
        entries = [_mood(MoodType.SAD, NOW - timedelta(hours=h)) for h in range(30)]
        assert daily_mood_counts(entries, tz=EST) == daily_mood_counts(entries, tz=EST)

    def test_empty_input(self):
        assert daily_mood_counts([], tz=EST) == []


class TestComposedCounts:
    def test_last_days(self):
        entries = [_mood(MoodType.HAPPY, NOW - timedelta(days=d)) for d in range(10)]
        counts = mood_counts_for_last_days(entries, 2, now=NOW, tz=EST)
        assert sum(c.count for c in counts) == 3
        assert [c.day for c in counts] == [date(2025, 1, 8), date(2025, 1, 9), date(2025, 1, 10)]

    def test_range(self):
        entries = [_mood(MoodType.SAD, NOW - timedelta(days=d)) for d in range(10)]
        counts = mood_counts_for_range(entries, NOW - timedelta(days=3), NOW, tz=EST)
        assert sum(c.count for c in counts) == 3

    def test_color_totals(self):
        counts = [
            DailyMoodCount(date(2025, 1, 1), "green", 2),
            DailyMoodCount(date(2025, 1, 2), "green", 1),
            DailyMoodCount(date(2025, 1, 2), "red", 4),
        ]
        assert color_totals(counts) == {"green": 3, "red": 4}

    def test_mood_type_totals(self):
        entries = [_mood(MoodType.ANGRY, NOW), _mood(MoodType.ANGRY, NOW), _mood(None, NOW, 0)]
        assert mood_type_totals(entries) == {"angry": 2, "unknown": 1}


class TestTimeOfDay:
    @pytest.mark.parametrize("hour, bucket", [
        (4, "night"), (5, "morning"), (11, "morning"), (12, "afternoon"),
        (16, "afternoon"), (17, "evening"), (20, "evening"), (21, "night"), (0, "night"),
    ])
    def test_bucket_boundaries(self, hour, bucket):
        assert time_of_day(datetime(2025, 1, 1, hour, 30, tzinfo=EST), EST) == bucket

    def test_distribution_in_bucket_order(self):
        entries = [
            _mood(MoodType.SAD, datetime(2025, 1, 1, 22, 0, tzinfo=EST)),
            _mood(MoodType.HAPPY, datetime(2025, 1, 1, 8, 0, tzinfo=EST)),
            _mood(MoodType.HAPPY, datetime(2025, 1, 2, 9, 0, tzinfo=EST)),
            _mood(MoodType.ANGRY, datetime(2025, 1, 2, 13, 0, tzinfo=EST)),
        ]
        dist = mood_time_distribution(entries, tz=EST)
        assert [(d.time_of_day, d.mood_color, d.count) for d in dist] == [
            ("morning", "green", 2),
            ("afternoon", "red", 1),
            ("night", "blue", 1),
        ]
