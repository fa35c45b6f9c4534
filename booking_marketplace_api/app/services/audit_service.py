"""
Audit trail of marketplace writes.

Services call ``AuditService.log`` after a booking, payment, review,
candidatura, setting or account change has been committed.  Records
are read back by administrators through ``list_logs``.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any, List, Optional

from booking_marketplace_api.app.core.db import dumps_json, get_connection, loads_json, to_utc_iso, utcnow_iso
from booking_marketplace_api.app.schemas.audit import AuditLogRead

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500


class AuditService:
    """Write and query ``audit_logs`` rows."""

    @classmethod
    async def log(
        cls,
        user_id: Optional[int],
        action: str,
        object_type: str,
        object_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Record that ``user_id`` performed ``action`` on an object.

        ``user_id`` is ``None`` for anonymous actions (the public
        application form).  ``details`` is stored as JSON.

        The audited change is already committed when this runs, so a
        failed insert is only logged as a warning.
        """
        conn = get_connection()
        try:
            conn.execute(
                """
                INSERT INTO audit_logs (user_id, action, object_type, object_id, timestamp, details)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (user_id, action, object_type, object_id, utcnow_iso(), dumps_json(details) if details else None),
            )
            conn.commit()
        except sqlite3.Error:
            logger.warning(
                "Could not write audit record %s %s/%s", action, object_type, object_id, exc_info=True
            )
        finally:
            conn.close()

    @classmethod
    async def list_logs(
        cls,
        user_id: Optional[int] = None,
        object_type: Optional[str] = None,
        action: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditLogRead]:
        """Newest records first, optionally filtered; ``since``/``until`` are inclusive."""
        filters = {
            "user_id = ?": user_id,
            "object_type = ?": object_type,
            "action = ?": action,
            "timestamp >= ?": to_utc_iso(since) if since else None,
            "timestamp <= ?": to_utc_iso(until) if until else None,
        }
        clauses = [clause for clause, value in filters.items() if value is not None]
        params: List[Any] = [value for value in filters.values() if value is not None]
        query = "SELECT * FROM audit_logs"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([min(limit, MAX_PAGE_SIZE), offset])

        conn = get_connection()
        try:
            rows = conn.execute(query, tuple(params)).fetchall()
        finally:
            conn.close()
        return [
            AuditLogRead(
                id=row["id"],
                user_id=row["user_id"],
                action=row["action"],
                object_type=row["object_type"],
                object_id=row["object_id"],
                timestamp=row["timestamp"],
                details=loads_json(row["details"]),
            )
            for row in rows
        ]
