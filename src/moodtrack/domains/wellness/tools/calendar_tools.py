"""MCP tools for the entry calendar and date-range reports."""

from __future__ import annotations

import json
import logging
import time
from datetime import tzinfo
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from moodtrack.domains.wellness.domain_logic.calendar_grid import (
    FIRST_SELECTABLE_YEAR,
    available_months,
    clamp_selection,
    month_grid,
    next_month,
    previous_month,
    year_range,
)
from moodtrack.domains.wellness.domain_logic.reports import ReportError, ReportType, default_range
from moodtrack.domains.wellness.tools.params import parse_day, parse_end, parse_timestamp

if TYPE_CHECKING:
    from moodtrack.core.audit.logger import AuditLogger
    from moodtrack.domains.wellness.domain_logic.availability import DayAvailabilityChecker
    from moodtrack.domains.wellness.domain_logic.mood_log import MoodLog
    from moodtrack.domains.wellness.domain_logic.reports import ReportBuilder
    from moodtrack.domains.wellness.domain_logic.session import SessionManager

logger = logging.getLogger(__name__)


def register_calendar_tools(
    mcp: FastMCP,
    availability: DayAvailabilityChecker,
    report_builder: ReportBuilder,
    mood_log: MoodLog,
    session: SessionManager,
    *,
    tz: tzinfo | None = None,
    report_default_days: int = 7,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register calendar and report tools on the MCP server."""

    def _audit(tool_name: str, tool_input: dict, start_time: float, **kwargs) -> None:
        if audit_logger is not None:
            audit_logger.log_tool_call(
                tool_name,
                tool_input,
                user_id=session.current_user_id(),
                duration_ms=(time.monotonic() - start_time) * 1000,
                **kwargs,
            )

    @mcp.tool
    async def day_has_data(ctx: Context, day: str) -> str:
        """Check whether a day has any heart rate, noise or mood data.

        Args:
            day: Local calendar day (YYYY-MM-DD).
        """
        start_time = time.monotonic()
        try:
            parsed = parse_day(day)
        except ValueError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        has_data = await availability.has_data(parsed)
        _audit("day_has_data", {"day": day}, start_time)
        return json.dumps({"status": "ok", "day": parsed.isoformat(), "has_data": has_data})

    @mcp.tool
    async def month_calendar(ctx: Context, year: int = 0, month: int = 0) -> str:
        """Show a month calendar with the days that hold data highlighted.

        Months before 2024 fall back to January 2024 and future months fall
        back to the current month.

        Args:
            year: Calendar year. Defaults to the current year.
            month: Month 1-12. Defaults to the current month.
        """
        start_time = time.monotonic()
        today = mood_log.now().date()
        if not (1 <= (month or today.month) <= 12):
            return json.dumps({"status": "error", "message": "month must be between 1 and 12"})
        year, month = clamp_selection(year or today.year, month or today.month, today)

        flags = await availability.month_availability(year, month)
        cells = [
            None if day is None else {"date": day.isoformat(), "has_data": flags.get(day, False)}
            for day in month_grid(year, month)
        ]
        weeks = [cells[i:i + 7] for i in range(0, len(cells), 7)]

        prev_year, prev_month = previous_month(year, month)
        following = next_month(year, month, today)
        _audit("month_calendar", {"year": year, "month": month}, start_time)
        return json.dumps({
            "status": "ok",
            "year": year,
            "month": month,
            "weeks": weeks,
            "days_with_data": sum(flags.values()),
            "previous": (
                {"year": prev_year, "month": prev_month}
                if prev_year >= FIRST_SELECTABLE_YEAR else None
            ),
            "next": (
                {"year": following[0], "month": following[1]}
                if following != (year, month) else None
            ),
            "selectable_years": year_range(today),
            "selectable_months": available_months(year, today),
        })

    @mcp.tool
    async def generate_report(
        ctx: Context,
        start: str = "",
        end: str = "",
        report_types: list[str] | None = None,
    ) -> str:
        """Summarize heart rate, noise, mood and activity data over a date range.

        Args:
            start: Range start (ISO 8601). Defaults to 7 days ago.
            end: Range end, exclusive (ISO 8601). A bare date includes that day. Defaults to now.
            report_types: Any of heart_rate, noise, mood, activity. Defaults to all.
        """
        start_time = time.monotonic()
        if session.current_user_id() is None:
            return json.dumps({"status": "not_authenticated"})

        types = report_types if report_types is not None else [t.value for t in ReportType]
        try:
            default_lo, default_hi = default_range(mood_log.now(), report_default_days)
            lo = parse_timestamp(start, tz) if start else default_lo
            hi = parse_end(end, tz) if end else default_hi
            report = await report_builder.build(lo, hi, types)
        except (ReportError, ValueError) as exc:
            _audit(
                "generate_report",
                {"start": start, "end": end, "report_types": types},
                start_time,
                status="failure",
                error_type=type(exc).__name__,
            )
            return json.dumps({"status": "error", "message": str(exc)})

        _audit("generate_report", {"start": start, "end": end, "report_types": types}, start_time)
        return json.dumps({"status": "ok", **report})
