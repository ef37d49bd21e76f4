"""MCP tool for today's heart-rate and noise overview."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from moodtrack.core.audit.logger import AuditLogger
    from moodtrack.domains.wellness.domain_logic.health_summary import HealthSummary
    from moodtrack.domains.wellness.domain_logic.session import SessionManager

logger = logging.getLogger(__name__)


def register_health_tools(
    mcp: FastMCP,
    health_summary: HealthSummary,
    session: SessionManager,
    *,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register sensor overview tools on the MCP server."""

    @mcp.tool
    async def health_today(ctx: Context) -> str:
        """Show today's average heart rate and noise exposure with their samples.

        Values are null when the sensor source is unavailable.
        """
        start_time = time.monotonic()
        today = await health_summary.today()
        if audit_logger is not None:
            audit_logger.log_tool_call(
                "health_today",
                user_id=session.current_user_id(),
                duration_ms=(time.monotonic() - start_time) * 1000,
            )
        return json.dumps({"status": "ok", **today.to_dict()})
