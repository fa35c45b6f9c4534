"""
Business logic for the model directory.

Listings only ever show active models.  The ordering used throughout
is featured first, then best rated; searches are a plain linear scan
over the active list (see ``filter_models``).
"""

import logging
import sqlite3
from typing import Any, Dict, Iterable, List, Optional

from booking_marketplace_api.app.core.db import (
    ROLE_CLIENT,
    ROLE_MODEL,
    dumps_json,
    get_connection,
    loads_json,
    utcnow_iso,
)
from booking_marketplace_api.app.core.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from booking_marketplace_api.app.core.security import is_admin
from booking_marketplace_api.app.schemas.model import (
    ADMIN_ONLY_MODEL_FIELDS,
    MODEL_CATEGORIES,
    ModelCreate,
    ModelRead,
    ModelStats,
)
from booking_marketplace_api.app.services.audit_service import AuditService

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 6
DEFAULT_RATING = 5.0
JSON_LIST_FIELDS = ("gallery_photos", "specialties", "languages")


def row_to_model(row: sqlite3.Row) -> ModelRead:
    return ModelRead(
        id=row["id"],
        user_id=row["user_id"],
        stage_name=row["stage_name"],
        age=row["age"],
        location=row["location"],
        category=row["category"],
        bio=row["bio"],
        main_photo_url=row["main_photo_url"],
        gallery_photos=loads_json(row["gallery_photos"], []),
        specialties=loads_json(row["specialties"], []),
        languages=loads_json(row["languages"], []),
        hourly_rate=row["hourly_rate"],
        availability=row["availability"],
        availability_schedule=loads_json(row["availability_schedule"], {}),
        is_active=bool(row["is_active"]),
        is_featured=bool(row["is_featured"]),
        rating=row["rating"],
        total_reviews=row["total_reviews"],
        total_bookings=row["total_bookings"],
        whatsapp=row["whatsapp"],
        instagram=row["instagram"],
        twitter=row["twitter"],
        verification_status=row["verification_status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def filter_models(models: Iterable[ModelRead], query: Optional[str] = None, category: Optional[str] = None) -> List[ModelRead]:
    """Filter models by free text and category.

    The query matches, case-insensitively, any part of the stage name,
    the location or one of the specialties.  The category must match
    exactly.  Empty values do not filter.
    """
    filtered = list(models)
    if query:
        needle = query.lower()
        filtered = [
            model
            for model in filtered
            if needle in model.stage_name.lower()
            or needle in model.location.lower()
            or any(needle in specialty.lower() for specialty in model.specialties)
        ]
    if category:
        filtered = [model for model in filtered if model.category == category]
    return filtered


def _promote_to_model(cursor: sqlite3.Cursor, user_id: int) -> None:
    # A client account linked to a profile becomes a model account.
    cursor.execute(
        "UPDATE users SET role_id = ? WHERE id = ? AND role_id = ?",
        (ROLE_MODEL, user_id, ROLE_CLIENT),
    )


class ModelService:
    """Service for reading and maintaining model profiles."""

    @classmethod
    async def get_all_models(cls, query: Optional[str] = None, category: Optional[str] = None) -> List[ModelRead]:
        """Return active models, featured first, then by rating."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM models WHERE is_active = 1 ORDER BY is_featured DESC, rating DESC, id"
            ).fetchall()
        finally:
            conn.close()
        return filter_models([row_to_model(row) for row in rows], query, category)

    @classmethod
    async def get_featured_models(cls, limit: int = FEATURED_LIMIT) -> List[ModelRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM models WHERE is_active = 1 AND is_featured = 1 ORDER BY rating DESC, id LIMIT ?",
                (limit,),
            ).fetchall()
            return [row_to_model(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_model_by_id(cls, model_id: int, include_inactive: bool = False) -> ModelRead:
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM models WHERE id = ?", (model_id,)).fetchone()
        finally:
            conn.close()
        if not row or (not row["is_active"] and not include_inactive):
            raise NotFoundError(f"Model {model_id} not found")
        return row_to_model(row)

    @classmethod
    async def get_models_by_category(cls, category: str) -> List[ModelRead]:
        if category not in MODEL_CATEGORIES:
            raise ValidationFailedError(f"Unknown category {category!r}")
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM models WHERE is_active = 1 AND category = ? ORDER BY rating DESC, id",
                (category,),
            ).fetchall()
            return [row_to_model(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def search_models(cls, query: str) -> List[ModelRead]:
        conn = get_connection()
        try:
            rows = conn.execute("SELECT * FROM models WHERE is_active = 1 ORDER BY rating DESC, id").fetchall()
        finally:
            conn.close()
        return filter_models([row_to_model(row) for row in rows], query)

    @classmethod
    async def create_model(cls, data: ModelCreate, admin_id: Optional[int] = None) -> ModelRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if data.user_id is not None and not cursor.execute(
                "SELECT id FROM users WHERE id = ?", (data.user_id,)
            ).fetchone():
                raise NotFoundError(f"User {data.user_id} not found")
            now = utcnow_iso()
            cursor.execute(
                """
                INSERT INTO models (user_id, stage_name, age, location, category, bio, main_photo_url,
                                    gallery_photos, specialties, languages, hourly_rate, availability,
                                    availability_schedule, is_featured, whatsapp, instagram, twitter,
                                    created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.user_id,
                    data.stage_name,
                    data.age,
                    data.location,
                    data.category,
                    data.bio,
                    data.main_photo_url,
                    dumps_json(data.gallery_photos),
                    dumps_json(data.specialties),
                    dumps_json(data.languages),
                    data.hourly_rate,
                    data.availability,
                    dumps_json(data.availability_schedule),
                    1 if data.is_featured else 0,
                    data.whatsapp,
                    data.instagram,
                    data.twitter,
                    now,
                    now,
                ),
            )
            model_id = cursor.lastrowid
            if data.user_id is not None:
                _promote_to_model(cursor, data.user_id)
            conn.commit()
            row = cursor.execute("SELECT * FROM models WHERE id = ?", (model_id,)).fetchone()
        finally:
            conn.close()
        logger.info("Model %s created: %s", model_id, data.stage_name)
        await AuditService.log(admin_id, "create", "model", model_id, {"stage_name": data.stage_name})
        return row_to_model(row)

    @classmethod
    async def update_model(cls, model_id: int, updates: Dict[str, Any], current_user: Dict[str, Any]) -> ModelRead:
        """Update a model profile.

        Administrators may change every field.  The user owning the
        profile may change the descriptive fields only.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id, user_id FROM models WHERE id = ?", (model_id,)).fetchone()
            if not row:
                raise NotFoundError(f"Model {model_id} not found")
            admin = is_admin(current_user)
            if not admin and row["user_id"] != current_user.get("user_id"):
                raise PermissionDeniedError("Only the model or an administrator can edit this profile")
            if not admin and ADMIN_ONLY_MODEL_FIELDS & updates.keys():
                raise PermissionDeniedError("Only administrators can change these fields")
            linked_user = updates.get("user_id")
            if linked_user is not None and not cursor.execute(
                "SELECT id FROM users WHERE id = ?", (linked_user,)
            ).fetchone():
                raise NotFoundError(f"User {linked_user} not found")
            if updates:
                fields = []
                values: List[Any] = []
                for key, value in updates.items():
                    if key in JSON_LIST_FIELDS or key == "availability_schedule":
                        value = dumps_json(value)
                    elif isinstance(value, bool):
                        value = 1 if value else 0
                    fields.append(f"{key} = ?")
                    values.append(value)
                fields.append("updated_at = ?")
                values.extend([utcnow_iso(), model_id])
                cursor.execute(f"UPDATE models SET {', '.join(fields)} WHERE id = ?", tuple(values))
                if linked_user is not None:
                    _promote_to_model(cursor, linked_user)
                conn.commit()
            updated = cursor.execute("SELECT * FROM models WHERE id = ?", (model_id,)).fetchone()
        finally:
            conn.close()
        if updates:
            await AuditService.log(current_user.get("user_id"), "update", "model", model_id, {"fields": sorted(updates)})
        return row_to_model(updated)

    @classmethod
    async def increment_booking_count(cls, model_id: int) -> None:
        conn = get_connection()
        try:
            conn.execute("UPDATE models SET total_bookings = total_bookings + 1 WHERE id = ?", (model_id,))
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def get_model_stats(cls, model_id: int) -> ModelStats:
        """Aggregate booking and review figures for a model.

        Only approved reviews count.  Without any, the average rating is
        reported as 5.0.
        """
        conn = get_connection()
        try:
            if not conn.execute("SELECT id FROM models WHERE id = ?", (model_id,)).fetchone():
                raise NotFoundError(f"Model {model_id} not found")
            bookings = conn.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END), 0) AS completed
                FROM bookings WHERE model_id = ?
                """,
                (model_id,),
            ).fetchone()
            reviews = conn.execute(
                "SELECT COUNT(*) AS total, AVG(rating) AS average FROM reviews WHERE model_id = ? AND admin_approved = 1",
                (model_id,),
            ).fetchone()
        finally:
            conn.close()
        average = reviews["average"] if reviews["average"] is not None else DEFAULT_RATING
        return ModelStats(
            total_bookings=bookings["total"],
            completed_bookings=bookings["completed"],
            total_reviews=reviews["total"],
            average_rating=round(average, 2),
        )

    @classmethod
    async def refresh_rating(cls, model_id: int) -> None:
        """Recompute ``rating`` and ``total_reviews`` from approved reviews."""
        conn = get_connection()
        try:
            conn.execute(
                """
                UPDATE models SET
                    rating = COALESCE(
                        (SELECT ROUND(AVG(rating), 2) FROM reviews WHERE model_id = ? AND admin_approved = 1), ?),
                    total_reviews = (SELECT COUNT(*) FROM reviews WHERE model_id = ? AND admin_approved = 1),
                    updated_at = ?
                WHERE id = ?
                """,
                (model_id, DEFAULT_RATING, model_id, utcnow_iso(), model_id),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Rating refreshed for model %s", model_id)
