"""
Business logic for reviews.

Clients review a model once per completed booking.  New reviews are
stored unapproved; administrators approve (and optionally feature)
them, which refreshes the model's rating.  Comments are escaped on
output.
"""

import html
import logging
import sqlite3
from typing import Any, Dict, List, Optional

from booking_marketplace_api.app.core.db import dumps_json, get_connection, loads_json, utcnow_iso
from booking_marketplace_api.app.core.errors import ConflictError, NotFoundError, PermissionDeniedError
from booking_marketplace_api.app.core.security import is_admin
from booking_marketplace_api.app.schemas.review import ReviewCreate, ReviewRead
from booking_marketplace_api.app.services.audit_service import AuditService
from booking_marketplace_api.app.services.model_service import ModelService

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 6
FEATURED_MIN_RATING = 4

_SELECT_REVIEW = """
    SELECT r.*, u.full_name AS client_name, m.stage_name AS model_stage_name,
           m.main_photo_url AS model_photo_url
    FROM reviews r
    LEFT JOIN users u ON u.id = r.client_id
    LEFT JOIN models m ON m.id = r.model_id
"""


def _row_to_review(row: sqlite3.Row, reveal_client: bool = False) -> ReviewRead:
    """Build a ``ReviewRead``; anonymous reviews hide the author unless ``reveal_client``."""
    hide = bool(row["is_anonymous"]) and not reveal_client
    return ReviewRead(
        id=row["id"],
        client_id=None if hide else row["client_id"],
        model_id=row["model_id"],
        booking_id=row["booking_id"],
        rating=row["rating"],
        comment=html.escape(row["comment"]) if row["comment"] is not None else None,
        pros=loads_json(row["pros"], []),
        cons=loads_json(row["cons"], []),
        is_anonymous=bool(row["is_anonymous"]),
        is_verified=bool(row["is_verified"]),
        is_featured=bool(row["is_featured"]),
        admin_approved=bool(row["admin_approved"]),
        response_from_model=html.escape(row["response_from_model"]) if row["response_from_model"] else None,
        response_date=row["response_date"],
        created_at=row["created_at"],
        client_name=None if hide else row["client_name"],
        model_stage_name=row["model_stage_name"],
        model_photo_url=row["model_photo_url"],
    )


class ReviewService:
    """Service for handling model reviews."""

    @classmethod
    def _fetch(cls, conn: sqlite3.Connection, review_id: int) -> sqlite3.Row:
        row = conn.execute(_SELECT_REVIEW + " WHERE r.id = ?", (review_id,)).fetchone()
        if not row:
            raise NotFoundError(f"Review {review_id} not found")
        return row

    @classmethod
    async def can_user_review(cls, user_id: int, booking_id: int) -> bool:
        """True when the booking is the user's, is completed and has no review from them yet."""
        conn = get_connection()
        try:
            booking = conn.execute(
                "SELECT id FROM bookings WHERE id = ? AND client_id = ? AND status = 'completed'",
                (booking_id, user_id),
            ).fetchone()
            if not booking:
                return False
            existing = conn.execute(
                "SELECT id FROM reviews WHERE client_id = ? AND booking_id = ?", (user_id, booking_id)
            ).fetchone()
            return existing is None
        finally:
            conn.close()

    @classmethod
    async def create_review(cls, client_id: int, data: ReviewCreate) -> ReviewRead:
        if not await cls.can_user_review(client_id, data.booking_id):
            raise PermissionDeniedError("Só pode avaliar reservas concluídas que ainda não avaliou.")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            booking = cursor.execute("SELECT model_id FROM bookings WHERE id = ?", (data.booking_id,)).fetchone()
            try:
                cursor.execute(
                    """
                    INSERT INTO reviews (client_id, model_id, booking_id, rating, comment, pros, cons,
                                         is_anonymous, is_verified, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1, ?)
                    """,
                    (
                        client_id,
                        booking["model_id"],
                        data.booking_id,
                        data.rating,
                        data.comment,
                        dumps_json(data.pros),
                        dumps_json(data.cons),
                        1 if data.is_anonymous else 0,
                        utcnow_iso(),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                raise ConflictError("Esta reserva já foi avaliada.") from exc
            review_id = cursor.lastrowid
            conn.commit()
            row = cls._fetch(conn, review_id)
        finally:
            conn.close()
        logger.info("Review %s created by user %s for booking %s", review_id, client_id, data.booking_id)
        await AuditService.log(client_id, "create", "review", review_id, {"booking_id": data.booking_id})
        return _row_to_review(row, reveal_client=True)

    @classmethod
    async def get_model_reviews(cls, model_id: int) -> List[ReviewRead]:
        """Approved reviews of a model, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                _SELECT_REVIEW + " WHERE r.model_id = ? AND r.admin_approved = 1 ORDER BY r.created_at DESC, r.id DESC",
                (model_id,),
            ).fetchall()
            return [_row_to_review(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_user_reviews(cls, user_id: int) -> List[ReviewRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                _SELECT_REVIEW + " WHERE r.client_id = ? ORDER BY r.created_at DESC, r.id DESC",
                (user_id,),
            ).fetchall()
            return [_row_to_review(row, reveal_client=True) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_featured_reviews(cls, limit: int = FEATURED_LIMIT) -> List[ReviewRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                _SELECT_REVIEW
                + """
                WHERE r.admin_approved = 1 AND r.is_featured = 1 AND r.rating >= ?
                ORDER BY r.created_at DESC, r.id DESC
                LIMIT ?
                """,
                (FEATURED_MIN_RATING, limit),
            ).fetchall()
            return [_row_to_review(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def list_pending_reviews(cls) -> List[ReviewRead]:
        """Reviews awaiting moderation, oldest first (administrators)."""
        conn = get_connection()
        try:
            rows = conn.execute(
                _SELECT_REVIEW + " WHERE r.admin_approved = 0 ORDER BY r.created_at, r.id"
            ).fetchall()
            return [_row_to_review(row, reveal_client=True) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def update_review(cls, review_id: int, user_id: int, updates: Dict[str, Any]) -> ReviewRead:
        """Let the author change rating, comment, pros or cons."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cls._fetch(conn, review_id)
            if row["client_id"] != user_id:
                raise PermissionDeniedError("Only the author can edit this review")
            fields = []
            values: List[Any] = []
            for key in ("rating", "comment", "pros", "cons"):
                if key in updates:
                    value = updates[key]
                    if key in ("pros", "cons"):
                        value = dumps_json(value or [])
                    fields.append(f"{key} = ?")
                    values.append(value)
            if fields:
                values.append(review_id)
                cursor.execute(f"UPDATE reviews SET {', '.join(fields)} WHERE id = ?", tuple(values))
                conn.commit()
                row = cls._fetch(conn, review_id)
        finally:
            conn.close()
        if fields:
            await AuditService.log(user_id, "update", "review", review_id, {"fields": sorted(updates)})
            if row["admin_approved"]:
                await ModelService.refresh_rating(row["model_id"])
        return _row_to_review(row, reveal_client=True)

    @classmethod
    async def delete_review(cls, review_id: int, current_user: Dict[str, Any]) -> None:
        user_id = current_user.get("user_id")
        conn = get_connection()
        try:
            row = cls._fetch(conn, review_id)
            if row["client_id"] != user_id and not is_admin(current_user):
                raise PermissionDeniedError("Only the author or an administrator can delete this review")
            conn.execute("DELETE FROM reviews WHERE id = ?", (review_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("Review %s deleted by user %s", review_id, user_id)
        await AuditService.log(user_id, "delete", "review", review_id)
        if row["admin_approved"]:
            await ModelService.refresh_rating(row["model_id"])

    @classmethod
    async def add_model_response(cls, review_id: int, model_user_id: int, response: str) -> ReviewRead:
        """Store the reviewed model's public response."""
        conn = get_connection()
        try:
            row = cls._fetch(conn, review_id)
            owner = conn.execute("SELECT user_id FROM models WHERE id = ?", (row["model_id"],)).fetchone()
            if not owner or owner["user_id"] != model_user_id:
                raise PermissionDeniedError("Only the reviewed model can respond")
            conn.execute(
                "UPDATE reviews SET response_from_model = ?, response_date = ? WHERE id = ?",
                (response.strip(), utcnow_iso(), review_id),
            )
            conn.commit()
            row = cls._fetch(conn, review_id)
        finally:
            conn.close()
        await AuditService.log(model_user_id, "respond", "review", review_id)
        return _row_to_review(row)

    @classmethod
    async def moderate_review(
        cls, review_id: int, admin_approved: bool, admin_id: int, is_featured: Optional[bool] = None
    ) -> ReviewRead:
        """Approve or hide a review and refresh the model's rating."""
        conn = get_connection()
        try:
            cls._fetch(conn, review_id)
            if is_featured is None:
                conn.execute(
                    "UPDATE reviews SET admin_approved = ? WHERE id = ?", (1 if admin_approved else 0, review_id)
                )
            else:
                conn.execute(
                    "UPDATE reviews SET admin_approved = ?, is_featured = ? WHERE id = ?",
                    (1 if admin_approved else 0, 1 if is_featured else 0, review_id),
                )
            conn.commit()
            row = cls._fetch(conn, review_id)
        finally:
            conn.close()
        logger.info("Review %s moderated by admin %s: approved=%s", review_id, admin_id, admin_approved)
        await AuditService.log(
            admin_id, "moderate", "review", review_id, {"admin_approved": admin_approved, "is_featured": is_featured}
        )
        await ModelService.refresh_rating(row["model_id"])
        return _row_to_review(row, reveal_client=True)
