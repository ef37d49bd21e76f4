"""MCP tool for reviewing the signed-in user's audit trail.

The trail records which tools ran, when, and whether they succeeded. Tool
input is stored only as a hash, so no mood, journal note or address is shown.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from moodtrack.core.audit.logger import AuditLogger
    from moodtrack.domains.wellness.domain_logic.session import SessionManager

logger = logging.getLogger(__name__)


def register_audit_tools(
    mcp: FastMCP,
    audit_logger: AuditLogger,
    session: SessionManager,
) -> None:
    """Register audit trail tools on the MCP server."""

    @mcp.tool
    async def audit_summary(ctx: Context, days: int = 30, limit: int = 20) -> str:
        """Review recent tool activity on your account.

        Args:
            days: Number of days to look back (default: 30).
            limit: Maximum number of recent events to list (default: 20).
        """
        user_id = session.current_user_id()
        if user_id is None:
            return json.dumps({"status": "not_authenticated"})

        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        recent = audit_logger.get_events(user_id=user_id, since=since, limit=limit)
        return json.dumps({
            "status": "ok",
            "period_days": days,
            "total_events": audit_logger.count_events(user_id=user_id, since=since),
            "failed_events": audit_logger.count_events(
                user_id=user_id, since=since, status="failure"
            ),
            "recent_events": [
                {
                    "timestamp": event.get("timestamp"),
                    "tool_name": event.get("tool_name"),
                    "status": event.get("status"),
                    "duration_ms": event.get("duration_ms"),
                }
                for event in recent
            ],
        }, indent=2)
