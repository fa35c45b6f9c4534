"""
Direct messages between users.

Messages can optionally reference a booking.  The sender may delete a
message; deletion is soft and hides it from every listing.
"""

import html
import logging
import sqlite3
from typing import List, Optional

from booking_marketplace_api.app.core.db import get_connection, utcnow_iso
from booking_marketplace_api.app.core.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from booking_marketplace_api.app.schemas.message import MessageRead

logger = logging.getLogger(__name__)

_SELECT_MESSAGE = """
    SELECT msg.*, s.full_name AS sender_name, r.full_name AS receiver_name
    FROM messages msg
    LEFT JOIN users s ON s.id = msg.sender_id
    LEFT JOIN users r ON r.id = msg.receiver_id
"""


def _row_to_message(row: sqlite3.Row) -> MessageRead:
    return MessageRead(
        id=row["id"],
        sender_id=row["sender_id"],
        receiver_id=row["receiver_id"],
        booking_id=row["booking_id"],
        content=html.escape(row["content"]),
        message_type=row["message_type"],
        attachment_url=row["attachment_url"],
        is_read=bool(row["is_read"]),
        read_at=row["read_at"],
        created_at=row["created_at"],
        sender_name=row["sender_name"],
        receiver_name=row["receiver_name"],
    )


class MessageService:
    """Service for sending and reading direct messages."""

    @classmethod
    async def send_message(
        cls, sender_id: int, receiver_id: int, content: str, booking_id: Optional[int] = None
    ) -> MessageRead:
        if sender_id == receiver_id:
            raise ValidationFailedError("Cannot send a message to yourself")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not cursor.execute("SELECT id FROM users WHERE id = ?", (receiver_id,)).fetchone():
                raise NotFoundError(f"User {receiver_id} not found")
            if booking_id is not None and not cursor.execute(
                "SELECT id FROM bookings WHERE id = ?", (booking_id,)
            ).fetchone():
                raise NotFoundError(f"Booking {booking_id} not found")
            cursor.execute(
                """
                INSERT INTO messages (sender_id, receiver_id, booking_id, content, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (sender_id, receiver_id, booking_id, content, utcnow_iso()),
            )
            message_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute(_SELECT_MESSAGE + " WHERE msg.id = ?", (message_id,)).fetchone()
        finally:
            conn.close()
        logger.debug("Message %s sent from %s to %s", message_id, sender_id, receiver_id)
        return _row_to_message(row)

    @classmethod
    async def get_user_messages(cls, user_id: int) -> List[MessageRead]:
        """Messages sent or received by the user, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                _SELECT_MESSAGE
                + """
                WHERE (msg.sender_id = ? OR msg.receiver_id = ?) AND msg.is_deleted = 0
                ORDER BY msg.created_at DESC, msg.id DESC
                """,
                (user_id, user_id),
            ).fetchall()
            return [_row_to_message(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_conversation(cls, user_id: int, other_user_id: int) -> List[MessageRead]:
        """Messages exchanged between two users, oldest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                _SELECT_MESSAGE
                + """
                WHERE ((msg.sender_id = ? AND msg.receiver_id = ?) OR (msg.sender_id = ? AND msg.receiver_id = ?))
                  AND msg.is_deleted = 0
                ORDER BY msg.created_at ASC, msg.id ASC
                """,
                (user_id, other_user_id, other_user_id, user_id),
            ).fetchall()
            return [_row_to_message(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def mark_message_as_read(cls, message_id: int, user_id: int) -> MessageRead:
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT receiver_id, is_read FROM messages WHERE id = ? AND is_deleted = 0", (message_id,)
            ).fetchone()
            if not row:
                raise NotFoundError(f"Message {message_id} not found")
            if row["receiver_id"] != user_id:
                raise PermissionDeniedError("Only the receiver can mark a message as read")
            if not row["is_read"]:
                conn.execute(
                    "UPDATE messages SET is_read = 1, read_at = ? WHERE id = ?", (utcnow_iso(), message_id)
                )
                conn.commit()
            updated = conn.execute(_SELECT_MESSAGE + " WHERE msg.id = ?", (message_id,)).fetchone()
            return _row_to_message(updated)
        finally:
            conn.close()

    @classmethod
    async def get_unread_count(cls, user_id: int) -> int:
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT COUNT(*) AS cnt FROM messages WHERE receiver_id = ? AND is_read = 0 AND is_deleted = 0",
                (user_id,),
            ).fetchone()
            return row["cnt"]
        finally:
            conn.close()

    @classmethod
    async def delete_message(cls, message_id: int, user_id: int) -> None:
        """Soft-delete a message; only its sender may do so."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT sender_id FROM messages WHERE id = ? AND is_deleted = 0", (message_id,)
            ).fetchone()
            if not row:
                raise NotFoundError(f"Message {message_id} not found")
            if row["sender_id"] != user_id:
                raise PermissionDeniedError("Only the sender can delete a message")
            conn.execute(
                "UPDATE messages SET is_deleted = 1, deleted_at = ? WHERE id = ?", (utcnow_iso(), message_id)
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Message %s deleted by user %s", message_id, user_id)
