"""MCP tools for mood check-ins and mood charts.

Entries are saved to the encrypted entry store with whatever health and
location context is available at save time.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import tzinfo
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from moodtrack.domains.wellness.domain_logic.aggregation import (
    filter_by_days,
    mood_time_distribution as compute_time_distribution,
)
from moodtrack.domains.wellness.domain_logic.calendar_grid import day_bounds
from moodtrack.domains.wellness.domain_logic.entry_models import MoodEntry, MoodType
from moodtrack.domains.wellness.tools.params import (
    parse_day,
    parse_end,
    parse_range,
    parse_timestamp,
)

if TYPE_CHECKING:
    from moodtrack.core.audit.logger import AuditLogger
    from moodtrack.domains.wellness.domain_logic.mood_log import MoodLog
    from moodtrack.domains.wellness.domain_logic.session import SessionManager

logger = logging.getLogger(__name__)


def mood_payload(entry: MoodEntry) -> dict:
    payload = entry.to_document()
    payload.update({
        "id": entry.id,
        "label": entry.label,
        "color": entry.color_name,
        "emoji": entry.mood.emoji if entry.mood is not None else "",
    })
    return payload


def register_mood_tools(
    mcp: FastMCP,
    mood_log: MoodLog,
    session: SessionManager,
    *,
    tz: tzinfo | None = None,
    default_window_days: int = 30,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register mood logging and charting tools on the MCP server."""

    def _audit(tool_name: str, tool_input: dict | None, start_time: float, **kwargs) -> None:
        if audit_logger is not None:
            audit_logger.log_tool_call(
                tool_name,
                tool_input,
                user_id=session.current_user_id(),
                duration_ms=(time.monotonic() - start_time) * 1000,
                **kwargs,
            )

    @mcp.tool
    async def log_mood(
        ctx: Context,
        mood: str,
        intensity: int,
        journal_text: str = "",
        custom_mood_text: str = "",
        timestamp: str = "",
    ) -> str:
        """Record a mood check-in.

        Heart rate, noise exposure and location are attached automatically
        when available.

        Args:
            mood: One of happy, sad, stressed, anxious, angry, neutral, other.
            intensity: How strong the mood is, 1 (mild) to 10 (intense).
            journal_text: Optional free-text journal note.
            custom_mood_text: Name for the mood when mood is 'other'.
            timestamp: When the mood was felt (ISO 8601). Defaults to now.
        """
        start_time = time.monotonic()
        try:
            when = parse_timestamp(timestamp, tz) if timestamp else mood_log.now()
            mood_type = MoodType(mood.strip().lower())
            if mood_type is MoodType.EMPTY:
                raise ValueError("'empty' is not a mood that can be logged")
            entry = MoodEntry(
                mood=mood_type,
                intensity=intensity,
                date=when,
                journal_text=journal_text or None,
                custom_mood_text=custom_mood_text or None,
            )
        except ValueError as exc:
            _audit("log_mood", None, start_time, status="failure", error_type="ValueError")
            return json.dumps({"status": "error", "message": str(exc)})

        result = await mood_log.add_mood(entry)
        _audit(
            "log_mood",
            {"mood": entry.mood.value, "intensity": intensity},
            start_time,
            record_id=result.entry_id,
            status=result.audit_status,
        )
        payload = result.to_dict()
        if result.ok:
            payload["entry"] = mood_payload(entry)
        return json.dumps(payload)

    @mcp.tool
    async def latest_mood(ctx: Context) -> str:
        """Show today's most recent mood, or an empty placeholder."""
        start_time = time.monotonic()
        if session.current_user_id() is None:
            return json.dumps({"status": "not_authenticated"})
        entry = mood_log.latest_mood_today()
        _audit("latest_mood", None, start_time)
        return json.dumps({"status": "ok", "entry": mood_payload(entry)})

    @mcp.tool
    async def list_moods(
        ctx: Context,
        day: str = "",
        start: str = "",
        end: str = "",
    ) -> str:
        """List mood entries for one day or a date range.

        Args:
            day: A single local day (YYYY-MM-DD). Takes precedence over start/end.
            start: Range start (ISO 8601). Defaults to the beginning of history.
            end: Range end, exclusive (ISO 8601). A bare date includes that day.
        """
        start_time = time.monotonic()
        if session.current_user_id() is None:
            return json.dumps({"status": "not_authenticated", "entries": []})
        try:
            if day:
                lo, hi = day_bounds(parse_day(day), tz)
            else:
                lo = parse_timestamp(start, tz) if start else None
                hi = parse_end(end, tz) if end else None
        except ValueError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        entries = mood_log.fetch_moods(lo, hi)
        _audit("list_moods", {"day": day, "start": start, "end": end}, start_time)
        return json.dumps({
            "status": "ok",
            "count": len(entries),
            "entries": [mood_payload(e) for e in entries],
        })

    @mcp.tool
    async def mood_counts(
        ctx: Context,
        days: int | None = None,
        start: str = "",
        end: str = "",
    ) -> str:
        """Count moods per day and colour for charting.

        Colours: green (happy), blue (sad), red (stressed, anxious, angry),
        gray (neutral, other).

        Args:
            days: Trailing window in days, up to now. Defaults to the configured window.
            start: Range start (ISO 8601); used together with end instead of days.
            end: Range end, exclusive (ISO 8601). A bare date includes that day.
        """
        start_time = time.monotonic()
        if session.current_user_id() is None:
            return json.dumps({"status": "not_authenticated", "counts": []})
        if start and end:
            try:
                lo, hi = parse_range(start, end, tz)
            except ValueError as exc:
                return json.dumps({"status": "error", "message": str(exc)})
            counts = mood_log.daily_counts_range(lo, hi)
            window = {"start": lo.isoformat(), "end": hi.isoformat()}
        else:
            window_days = days if days is not None else default_window_days
            counts = mood_log.daily_counts_last_days(window_days)
            window = {"days": window_days}

        _audit("mood_counts", {"days": days, "start": start, "end": end}, start_time)
        return json.dumps({
            "status": "ok",
            "window": window,
            "counts": [
                {"day": c.day.isoformat(), "mood_color": c.mood_color, "count": c.count}
                for c in counts
            ],
        })

    @mcp.tool
    async def mood_time_distribution(ctx: Context, days: int | None = None) -> str:
        """Count moods by time of day (morning, afternoon, evening, night) and colour.

        Args:
            days: Trailing window in days. Defaults to the configured window.
        """
        start_time = time.monotonic()
        if session.current_user_id() is None:
            return json.dumps({"status": "not_authenticated", "distribution": []})
        window_days = days if days is not None else default_window_days
        entries = filter_by_days(mood_log.fetch_moods(), window_days, now=mood_log.now())
        distribution = compute_time_distribution(entries, tz=tz)
        _audit("mood_time_distribution", {"days": window_days}, start_time)
        return json.dumps({
            "status": "ok",
            "days": window_days,
            "distribution": [
                {"time_of_day": d.time_of_day, "mood_color": d.mood_color, "count": d.count}
                for d in distribution
            ],
        })
