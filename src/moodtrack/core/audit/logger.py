"""Audit logger: access trail for tool invocations.

Every MCP tool call is recorded in the ``audit_log`` table without entry
contents: tool input is reduced to a SHA-256 of its canonical JSON, so a
journal note or an address never lands in the audit trail.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from moodtrack.core.storage.database import MoodDatabase

logger = logging.getLogger(__name__)


def _hash_input(data: Any) -> str:
    """SHA-256 of canonical JSON, or empty string if not serializable."""
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(canonical.encode()).hexdigest()
    except (TypeError, ValueError):
        return ""


@dataclass
class AuditEvent:
    """A single audit log entry."""

    action: str                      # 'tool_invocation'
    tool_name: str = ""
    tool_input_hash: str = ""
    user_id: str | None = None
    record_id: str | None = None
    duration_ms: float | None = None
    status: str = "success"          # 'success' | 'failure' | 'not_authenticated'
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """Records audit events to the ``audit_log`` SQLite table.

    Usage::

        audit = AuditLogger(db)
        audit.log_tool_call("log_mood", {"mood": "happy"}, user_id=uid)
    """

    def __init__(self, database: MoodDatabase) -> None:
        self._db = database

    def log_event(self, event: AuditEvent) -> str:
        """Insert an audit event and return its id ("" if the write failed)."""
        event_id = str(uuid.uuid4())
        metadata_json = (
            json.dumps(event.metadata, separators=(",", ":"), default=str)
            if event.metadata
            else None
        )

        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO audit_log
                   (id, timestamp, action, tool_name, tool_input_hash, user_id,
                    record_id, duration_ms, status, error_type, metadata_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    event_id,
                    datetime.now(timezone.utc).isoformat(),
                    event.action,
                    event.tool_name or None,
                    event.tool_input_hash or None,
                    event.user_id,
                    event.record_id,
                    event.duration_ms,
                    event.status,
                    event.error_type,
                    metadata_json,
                ),
            )
            conn.commit()
        except Exception:
            logger.exception("Failed to write audit event, event lost")
            return ""

        return event_id

    def log_tool_call(
        self,
        tool_name: str,
        tool_input: Any = None,
        *,
        user_id: str | None = None,
        record_id: str | None = None,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Convenience wrapper for logging a tool invocation."""
        return self.log_event(AuditEvent(
            action="tool_invocation",
            tool_name=tool_name,
            tool_input_hash=_hash_input(tool_input) if tool_input else "",
            user_id=user_id,
            record_id=record_id,
            duration_ms=duration_ms,
            status=status,
            error_type=error_type,
            metadata=metadata or {},
        ))

    @staticmethod
    def _where(**filters: Any) -> tuple[str, list[Any]]:
        conditions: list[str] = []
        params: list[Any] = []
        for column, value in filters.items():
            if not value:
                continue
            if column == "since":
                conditions.append("timestamp >= ?")
            else:
                conditions.append(f"{column} = ?")
            params.append(value)
        return ((" WHERE " + " AND ".join(conditions)) if conditions else ""), params

    def get_events(
        self,
        *,
        action: str | None = None,
        tool_name: str | None = None,
        user_id: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Query audit events, newest first.

        Args:
            since: ISO 8601 UTC timestamp; only events at or after it.
        """
        where, params = self._where(
            action=action, tool_name=tool_name, user_id=user_id, since=since
        )
        query = f"SELECT * FROM audit_log{where} ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def count_events(
        self,
        *,
        user_id: str | None = None,
        since: str | None = None,
        status: str | None = None,
    ) -> int:
        where, params = self._where(user_id=user_id, since=since, status=status)
        row = self._db.connection.execute(f"SELECT COUNT(*) FROM audit_log{where}", params).fetchone()
        return row[0]
