"""MCP tools for coping activities."""

from __future__ import annotations

import json
import logging
import time
from datetime import tzinfo
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from moodtrack.domains.wellness.domain_logic.activity_log import (
    LISTEN_TO_MUSIC,
    MUSIC_SERVICES,
    SUGGESTED_ACTIVITIES,
    validate_activity_name,
)
from moodtrack.domains.wellness.domain_logic.entry_models import ActivityEntry
from moodtrack.domains.wellness.tools.params import parse_end, parse_timestamp

if TYPE_CHECKING:
    from moodtrack.core.audit.logger import AuditLogger
    from moodtrack.domains.wellness.domain_logic.activity_log import ActivityLog
    from moodtrack.domains.wellness.domain_logic.session import SessionManager

logger = logging.getLogger(__name__)


def activity_payload(entry: ActivityEntry) -> dict:
    return entry.to_document()


def register_activity_tools(
    mcp: FastMCP,
    activity_log: ActivityLog,
    session: SessionManager,
    *,
    tz: tzinfo | None = None,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register coping activity tools on the MCP server."""

    @mcp.tool
    async def suggested_activities(ctx: Context) -> str:
        """List the suggested coping activities and supported music services."""
        return json.dumps({
            "activities": SUGGESTED_ACTIVITIES,
            "music_services": MUSIC_SERVICES,
        })

    @mcp.tool
    async def log_coping_activity(
        ctx: Context,
        activity_name: str,
        music_service: str = "",
    ) -> str:
        """Record a completed coping activity.

        Heart rate, noise exposure and location are attached automatically
        when available.

        Args:
            activity_name: A suggested activity or a custom name (max 50 characters).
            music_service: Music service used, for 'Listen to Music'.
        """
        start_time = time.monotonic()
        try:
            name = validate_activity_name(activity_name)
        except ValueError as exc:
            if audit_logger is not None:
                audit_logger.log_tool_call(
                    "log_coping_activity",
                    user_id=session.current_user_id(),
                    status="failure",
                    error_type="ValueError",
                )
            return json.dumps({"status": "error", "message": str(exc)})

        entry = ActivityEntry(
            activity_name=name,
            timestamp=activity_log.now(),
            music_service=music_service or None,
        )
        result = await activity_log.add_activity(entry)
        selection = None
        if result.ok and name == LISTEN_TO_MUSIC and music_service:
            selection = await activity_log.log_music_selection(music_service)

        if audit_logger is not None:
            audit_logger.log_tool_call(
                "log_coping_activity",
                {"activity_name": name, "music_service": music_service},
                user_id=session.current_user_id(),
                record_id=result.entry_id,
                duration_ms=(time.monotonic() - start_time) * 1000,
                status=result.audit_status,
            )
        payload = result.to_dict()
        if result.ok:
            payload["activity"] = activity_payload(entry)
        if selection is not None:
            payload["music_selection"] = selection.to_dict()
        return json.dumps(payload)

    @mcp.tool
    async def log_music_selection(ctx: Context, service: str) -> str:
        """Record which music service was chosen.

        Args:
            service: Music service name, e.g. 'Apple Music' or 'Spotify'.
        """
        start_time = time.monotonic()
        result = await activity_log.log_music_selection(service)
        if audit_logger is not None:
            audit_logger.log_tool_call(
                "log_music_selection",
                {"service": service},
                user_id=session.current_user_id(),
                record_id=result.entry_id,
                duration_ms=(time.monotonic() - start_time) * 1000,
                status=result.audit_status,
            )
        return json.dumps(result.to_dict())

    @mcp.tool
    async def list_activities(ctx: Context, start: str = "", end: str = "") -> str:
        """List completed coping activities.

        Args:
            start: Range start (ISO 8601). Defaults to the beginning of history.
            end: Range end, exclusive (ISO 8601). A bare date includes that day.
        """
        start_time = time.monotonic()
        if session.current_user_id() is None:
            return json.dumps({"status": "not_authenticated", "activities": []})
        try:
            lo = parse_timestamp(start, tz) if start else None
            hi = parse_end(end, tz) if end else None
        except ValueError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        activities = activity_log.fetch_activities(lo, hi)
        if audit_logger is not None:
            audit_logger.log_tool_call(
                "list_activities",
                {"start": start, "end": end},
                user_id=session.current_user_id(),
                duration_ms=(time.monotonic() - start_time) * 1000,
            )
        return json.dumps({
            "status": "ok",
            "count": len(activities),
            "activities": [activity_payload(a) for a in activities],
        })
