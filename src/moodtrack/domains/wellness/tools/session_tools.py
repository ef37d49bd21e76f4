"""MCP tools for registration and the signed-in session."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from moodtrack.core.storage.users import UserExistsError
from moodtrack.domains.wellness.domain_logic.session import AuthenticationError, initials

if TYPE_CHECKING:
    from moodtrack.core.audit.logger import AuditLogger
    from moodtrack.core.storage.models import UserProfile
    from moodtrack.domains.wellness.domain_logic.session import SessionManager

logger = logging.getLogger(__name__)


def _profile_payload(profile: UserProfile) -> dict:
    return {
        "user_id": profile.user_id,
        "email": profile.email,
        "fullname": profile.fullname,
        "initials": initials(profile.fullname),
    }


def register_session_tools(
    mcp: FastMCP,
    session: SessionManager,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register account and session tools on the MCP server."""

    @mcp.tool
    async def register_user(ctx: Context, email: str, fullname: str) -> str:
        """Create an account and sign in as it.

        Args:
            email: Account email address.
            fullname: Display name, used for profile initials.
        """
        start_time = time.monotonic()
        try:
            profile = session.register(email, fullname)
        except (AuthenticationError, UserExistsError) as exc:
            if audit_logger is not None:
                audit_logger.log_tool_call(
                    "register_user",
                    duration_ms=(time.monotonic() - start_time) * 1000,
                    status="failure",
                    error_type=type(exc).__name__,
                )
            return json.dumps({"status": "error", "message": str(exc)})

        if audit_logger is not None:
            audit_logger.log_tool_call(
                "register_user",
                user_id=profile.user_id,
                duration_ms=(time.monotonic() - start_time) * 1000,
            )
        return json.dumps({"status": "signed_in", **_profile_payload(profile)})

    @mcp.tool
    async def sign_in(ctx: Context, email: str) -> str:
        """Sign in to an existing account.

        Args:
            email: Email address the account was registered with.
        """
        start_time = time.monotonic()
        try:
            profile = session.sign_in(email)
        except AuthenticationError as exc:
            if audit_logger is not None:
                audit_logger.log_tool_call(
                    "sign_in",
                    duration_ms=(time.monotonic() - start_time) * 1000,
                    status="failure",
                    error_type=type(exc).__name__,
                )
            return json.dumps({"status": "error", "message": str(exc)})

        if audit_logger is not None:
            audit_logger.log_tool_call(
                "sign_in",
                user_id=profile.user_id,
                duration_ms=(time.monotonic() - start_time) * 1000,
            )
        return json.dumps({"status": "signed_in", **_profile_payload(profile)})

    @mcp.tool
    async def sign_out(ctx: Context) -> str:
        """Sign out and forget the cached session identity."""
        user_id = session.current_user_id()
        session.sign_out()
        if audit_logger is not None:
            audit_logger.log_tool_call("sign_out", user_id=user_id)
        return json.dumps({"status": "signed_out"})

    @mcp.tool
    async def current_user(ctx: Context) -> str:
        """Show the signed-in user's profile."""
        profile = session.current_user()
        if profile is None:
            return json.dumps({"status": "not_authenticated"})
        return json.dumps({"status": "signed_in", **_profile_payload(profile)})
