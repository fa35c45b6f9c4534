"""
Service catalogue and per-model offers.

``services`` holds the generic catalogue; ``model_services`` links a
model to the services it offers, optionally with its own price and
duration.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from booking_marketplace_api.app.core.db import dumps_json, get_connection, loads_json, utcnow_iso
from booking_marketplace_api.app.core.errors import ConflictError, NotFoundError, PermissionDeniedError
from booking_marketplace_api.app.core.security import is_admin
from booking_marketplace_api.app.schemas.model import (
    ModelServiceCreate,
    ModelServiceRead,
    ServiceCreate,
    ServiceRead,
)
from booking_marketplace_api.app.services.audit_service import AuditService

logger = logging.getLogger(__name__)


def row_to_service(row: sqlite3.Row) -> ServiceRead:
    return ServiceRead(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        icon=row["icon"],
        category=row["category"],
        base_price=row["base_price"],
        duration_hours=row["duration_hours"],
        requirements=loads_json(row["requirements"], []),
        includes=loads_json(row["includes"], []),
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
    )


def row_to_model_service(row: sqlite3.Row, service: Optional[ServiceRead] = None) -> ModelServiceRead:
    return ModelServiceRead(
        id=row["id"],
        model_id=row["model_id"],
        service_id=row["service_id"],
        custom_price=row["custom_price"],
        custom_duration=row["custom_duration"],
        is_available=bool(row["is_available"]),
        special_notes=row["special_notes"],
        created_at=row["created_at"],
        service=service,
    )


class CatalogService:
    """Service for the catalogue and model offers."""

    @classmethod
    async def list_services(cls, active_only: bool = True) -> List[ServiceRead]:
        conn = get_connection()
        try:
            query = "SELECT * FROM services"
            if active_only:
                query += " WHERE is_active = 1"
            rows = conn.execute(query + " ORDER BY name").fetchall()
            return [row_to_service(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_service(cls, service_id: int) -> ServiceRead:
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM services WHERE id = ?", (service_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError(f"Service {service_id} not found")
        return row_to_service(row)

    @classmethod
    async def create_service(cls, data: ServiceCreate, admin_id: Optional[int] = None) -> ServiceRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO services (name, description, icon, category, base_price, duration_hours,
                                      requirements, includes, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.name,
                    data.description,
                    data.icon,
                    data.category,
                    data.base_price,
                    data.duration_hours,
                    dumps_json(data.requirements),
                    dumps_json(data.includes),
                    utcnow_iso(),
                ),
            )
            service_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute("SELECT * FROM services WHERE id = ?", (service_id,)).fetchone()
        finally:
            conn.close()
        logger.info("Service %s created: %s", service_id, data.name)
        await AuditService.log(admin_id, "create", "service", service_id, {"name": data.name})
        return row_to_service(row)

    @classmethod
    async def get_model_services(cls, model_id: int, available_only: bool = True) -> List[ModelServiceRead]:
        """Return the model's offers with the catalogue service embedded."""
        conn = get_connection()
        try:
            query = "SELECT * FROM model_services WHERE model_id = ?"
            if available_only:
                query += " AND is_available = 1"
            rows = conn.execute(query + " ORDER BY id", (model_id,)).fetchall()
            result = []
            for row in rows:
                service_row = conn.execute("SELECT * FROM services WHERE id = ?", (row["service_id"],)).fetchone()
                result.append(row_to_model_service(row, row_to_service(service_row)))
            return result
        finally:
            conn.close()

    @classmethod
    async def add_model_service(
        cls, model_id: int, data: ModelServiceCreate, current_user: Dict[str, Any]
    ) -> ModelServiceRead:
        """Attach a catalogue service to a model.

        Allowed for administrators and for the user owning the model.
        A model offers each service at most once.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            model = cursor.execute("SELECT id, user_id FROM models WHERE id = ?", (model_id,)).fetchone()
            if not model:
                raise NotFoundError(f"Model {model_id} not found")
            if not is_admin(current_user) and model["user_id"] != current_user.get("user_id"):
                raise PermissionDeniedError("Only the model or an administrator can change these services")
            service_row = cursor.execute("SELECT * FROM services WHERE id = ?", (data.service_id,)).fetchone()
            if not service_row:
                raise NotFoundError(f"Service {data.service_id} not found")
            try:
                cursor.execute(
                    """
                    INSERT INTO model_services (model_id, service_id, custom_price, custom_duration,
                                                is_available, special_notes, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        model_id,
                        data.service_id,
                        data.custom_price,
                        data.custom_duration,
                        1 if data.is_available else 0,
                        data.special_notes,
                        utcnow_iso(),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                raise ConflictError("This service is already offered by the model") from exc
            offer_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute("SELECT * FROM model_services WHERE id = ?", (offer_id,)).fetchone()
        finally:
            conn.close()
        await AuditService.log(
            current_user.get("user_id"), "create", "model_service", offer_id,
            {"model_id": model_id, "service_id": data.service_id},
        )
        return row_to_model_service(row, row_to_service(service_row))
