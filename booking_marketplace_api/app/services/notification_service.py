"""
In-app notifications.

Notifications are written by other services (bookings, reviews) and
read by their recipient.  Expired notifications stay in the table but
are left out of every listing and count.
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from booking_marketplace_api.app.core.db import (
    dumps_json,
    get_connection,
    loads_json,
    to_utc_iso,
    utcnow_iso,
)
from booking_marketplace_api.app.core.errors import NotFoundError
from booking_marketplace_api.app.schemas.notification import NotificationRead

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
_NOT_EXPIRED = "(expires_at IS NULL OR expires_at > ?)"


class NotificationService:
    """Service for creating and reading notifications."""

    @staticmethod
    def _row_to_read(row: sqlite3.Row) -> NotificationRead:
        return NotificationRead(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            message=row["message"],
            type=row["type"],
            data=loads_json(row["data"], {}),
            is_read=bool(row["is_read"]),
            read_at=row["read_at"],
            action_url=row["action_url"],
            expires_at=row["expires_at"],
            created_at=row["created_at"],
        )

    @classmethod
    async def create_notification(
        cls,
        user_id: int,
        title: str,
        message: str,
        type: str = "info",
        data: Optional[Dict[str, Any]] = None,
        action_url: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> NotificationRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO notifications (user_id, title, message, type, data, action_url, expires_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    title,
                    message,
                    type,
                    dumps_json(data or {}),
                    action_url,
                    to_utc_iso(expires_at) if expires_at else None,
                    utcnow_iso(),
                ),
            )
            notification_id = cursor.lastrowid
            conn.commit()
            row = conn.execute("SELECT * FROM notifications WHERE id = ?", (notification_id,)).fetchone()
        finally:
            conn.close()
        logger.debug("Notification %s (%s) sent to user %s", notification_id, type, user_id)
        return cls._row_to_read(row)

    @classmethod
    async def get_user_notifications(cls, user_id: int, limit: int = DEFAULT_LIMIT) -> List[NotificationRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                f"""
                SELECT * FROM notifications
                WHERE user_id = ? AND {_NOT_EXPIRED}
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (user_id, utcnow_iso(), limit),
            ).fetchall()
            return [cls._row_to_read(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_unread_count(cls, user_id: int) -> int:
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT COUNT(*) AS cnt FROM notifications WHERE user_id = ? AND is_read = 0 AND {_NOT_EXPIRED}",
                (user_id, utcnow_iso()),
            ).fetchone()
            return row["cnt"]
        finally:
            conn.close()

    @classmethod
    async def mark_as_read(cls, notification_id: int, user_id: int) -> NotificationRead:
        """Mark one of the user's notifications as read.

        Notifications belonging to someone else are reported as missing.
        """
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM notifications WHERE id = ? AND user_id = ?", (notification_id, user_id)
            ).fetchone()
            if not row:
                raise NotFoundError(f"Notification {notification_id} not found")
            if not row["is_read"]:
                conn.execute(
                    "UPDATE notifications SET is_read = 1, read_at = ? WHERE id = ?",
                    (utcnow_iso(), notification_id),
                )
                conn.commit()
                row = conn.execute("SELECT * FROM notifications WHERE id = ?", (notification_id,)).fetchone()
            return cls._row_to_read(row)
        finally:
            conn.close()

    @classmethod
    async def mark_all_as_read(cls, user_id: int) -> int:
        """Mark every unread notification of the user as read; return how many changed."""
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE notifications SET is_read = 1, read_at = ? WHERE user_id = ? AND is_read = 0",
                (utcnow_iso(), user_id),
            )
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    @classmethod
    async def delete_notification(cls, notification_id: int, user_id: int) -> None:
        conn = get_connection()
        try:
            cursor = conn.execute(
                "DELETE FROM notifications WHERE id = ? AND user_id = ?", (notification_id, user_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise NotFoundError(f"Notification {notification_id} not found")
        finally:
            conn.close()
