"""
Business logic for bookings.

The ``BookingService`` creates bookings with server-side pricing,
lists them for clients and models, and moves them through their
status lifecycle.  Every step that matters to a participant leaves an
in-app notification:

    create -> notify client and model -> change status -> notify client

The write and the notifications are separate statements; a failure in
a later step does not undo the earlier ones.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional, Tuple

from booking_marketplace_api.app.core.config import settings
from booking_marketplace_api.app.core.db import get_connection, to_utc_iso, utcnow_iso
from booking_marketplace_api.app.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from booking_marketplace_api.app.core.security import is_admin
from booking_marketplace_api.app.schemas.booking import BookingCreate, BookingQuote, BookingRead
from booking_marketplace_api.app.services import pricing
from booking_marketplace_api.app.services.audit_service import AuditService
from booking_marketplace_api.app.services.catalog_service import row_to_service
from booking_marketplace_api.app.services.model_service import ModelService, row_to_model
from booking_marketplace_api.app.services.notification_service import NotificationService
from booking_marketplace_api.app.services.settings_service import SettingsService
from booking_marketplace_api.app.services.user_service import row_to_user

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("cancelled", "refunded")
UPCOMING_STATUSES = ("pending", "confirmed")
UPCOMING_LIMIT = 5
# Progress order; a booking never moves back along it.
STATUS_ORDER = ("pending", "confirmed", "in_progress", "completed")

STATUS_NOTIFICATIONS = {
    "confirmed": ("Reserva Confirmada", "Sua reserva foi confirmada!"),
    "completed": ("Reserva Concluída", "Sua reserva foi concluída. Que tal deixar uma avaliação?"),
    "cancelled": ("Reserva Cancelada", "Sua reserva foi cancelada."),
}


def _row_to_booking(conn: sqlite3.Connection, row: sqlite3.Row, detailed: bool = True) -> BookingRead:
    booking = BookingRead(
        id=row["id"],
        client_id=row["client_id"],
        model_id=row["model_id"],
        service_id=row["service_id"],
        booking_date=row["booking_date"],
        duration_hours=row["duration_hours"],
        total_amount=row["total_amount"],
        deposit_amount=row["deposit_amount"],
        status=row["status"],
        payment_status=row["payment_status"],
        special_requests=row["special_requests"],
        location=row["location"],
        meeting_point=row["meeting_point"],
        client_notes=row["client_notes"],
        model_notes=row["model_notes"],
        cancellation_reason=row["cancellation_reason"],
        cancelled_by=row["cancelled_by"],
        cancelled_at=row["cancelled_at"],
        confirmed_at=row["confirmed_at"],
        completed_at=row["completed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
    if detailed:
        model_row = conn.execute("SELECT * FROM models WHERE id = ?", (row["model_id"],)).fetchone()
        if model_row:
            booking.model = row_to_model(model_row)
        if row["service_id"] is not None:
            service_row = conn.execute("SELECT * FROM services WHERE id = ?", (row["service_id"],)).fetchone()
            if service_row:
                booking.service = row_to_service(service_row)
        client_row = conn.execute("SELECT * FROM users WHERE id = ?", (row["client_id"],)).fetchone()
        if client_row:
            booking.client = row_to_user(client_row)
    return booking


async def current_deposit_rate() -> float:
    """Deposit share of the total: the ``deposit_rate`` setting, else ``DEPOSIT_RATE``."""
    return float(await SettingsService.get_value("deposit_rate", settings.deposit_rate))


class BookingService:
    """Service for creating and managing bookings."""

    @staticmethod
    def _resolve_offer(
        conn: sqlite3.Connection, model_id: int, service_id: int
    ) -> Tuple[sqlite3.Row, sqlite3.Row, sqlite3.Row]:
        """Load the active model, the service and the model's offer of it."""
        model = conn.execute("SELECT * FROM models WHERE id = ? AND is_active = 1", (model_id,)).fetchone()
        if not model:
            raise NotFoundError(f"Model {model_id} not found")
        service = conn.execute("SELECT * FROM services WHERE id = ? AND is_active = 1", (service_id,)).fetchone()
        if not service:
            raise NotFoundError(f"Service {service_id} not found")
        offer = conn.execute(
            "SELECT * FROM model_services WHERE model_id = ? AND service_id = ? AND is_available = 1",
            (model_id, service_id),
        ).fetchone()
        if not offer:
            raise ValidationFailedError("Este serviço não está disponível para esta modelo.")
        return model, service, offer

    @classmethod
    async def quote_booking(cls, data: BookingCreate) -> BookingQuote:
        """Price a booking request without storing anything."""
        pricing.validate_booking_request(data.booking_date, data.duration_hours)
        conn = get_connection()
        try:
            model, service, offer = cls._resolve_offer(conn, data.model_id, data.service_id)
        finally:
            conn.close()
        unit_price = pricing.resolve_unit_price(offer, service, model)
        rate = await current_deposit_rate()
        return BookingQuote(**pricing.quote(unit_price, data.duration_hours, rate, settings.currency))

    @classmethod
    async def create_booking(cls, client_id: int, data: BookingCreate) -> BookingRead:
        """Create a pending booking for ``client_id``.

        The total and the deposit are computed from the model's offer;
        the booking starts with ``status`` and ``payment_status`` both
        ``pending``.  The model's booking counter is incremented and
        both parties are notified.
        """
        pricing.validate_booking_request(data.booking_date, data.duration_hours)
        rate = await current_deposit_rate()
        conn = get_connection()
        try:
            model, service, offer = cls._resolve_offer(conn, data.model_id, data.service_id)
            unit_price = pricing.resolve_unit_price(offer, service, model)
            total = pricing.calculate_total(unit_price, data.duration_hours)
            deposit = pricing.calculate_deposit(total, rate)
            now = utcnow_iso()
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO bookings (client_id, model_id, service_id, booking_date, duration_hours,
                                      total_amount, deposit_amount, status, payment_status,
                                      special_requests, location, meeting_point, client_notes,
                                      created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, 'pending', 'pending', ?, ?, ?, ?, ?, ?)
                """,
                (
                    client_id,
                    data.model_id,
                    data.service_id,
                    to_utc_iso(data.booking_date),
                    data.duration_hours,
                    total,
                    deposit,
                    data.special_requests,
                    data.location,
                    data.meeting_point,
                    data.client_notes,
                    now,
                    now,
                ),
            )
            booking_id = cursor.lastrowid
            conn.commit()
            model_user_id = model["user_id"]
        finally:
            conn.close()
        logger.info("Booking %s created by user %s for model %s", booking_id, client_id, data.model_id)

        await ModelService.increment_booking_count(data.model_id)
        await NotificationService.create_notification(
            client_id,
            "Reserva Criada",
            "Sua reserva foi criada com sucesso e está aguardando confirmação.",
            "booking",
            {"booking_id": booking_id},
        )
        if model_user_id:
            await NotificationService.create_notification(
                model_user_id,
                "Nova Reserva",
                "Você recebeu uma nova solicitação de reserva.",
                "booking",
                {"booking_id": booking_id},
            )
        await AuditService.log(
            client_id, "create", "booking", booking_id,
            {"model_id": data.model_id, "service_id": data.service_id, "total_amount": total},
        )
        return await cls.get_booking_by_id(booking_id)

    @classmethod
    async def get_booking_by_id(cls, booking_id: int) -> BookingRead:
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM bookings WHERE id = ?", (booking_id,)).fetchone()
            if not row:
                raise NotFoundError(f"Booking {booking_id} not found")
            return _row_to_booking(conn, row)
        finally:
            conn.close()

    @classmethod
    async def get_user_bookings(cls, user_id: int) -> List[BookingRead]:
        """Bookings made by the user as a client, latest booking date first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM bookings WHERE client_id = ? ORDER BY booking_date DESC, id DESC",
                (user_id,),
            ).fetchall()
            return [_row_to_booking(conn, row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_model_bookings(cls, model_id: int) -> List[BookingRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM bookings WHERE model_id = ? ORDER BY booking_date DESC, id DESC",
                (model_id,),
            ).fetchall()
            return [_row_to_booking(conn, row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_upcoming_bookings(cls, user_id: int) -> List[BookingRead]:
        """Next pending or confirmed bookings where the user is either party."""
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT * FROM bookings
                WHERE (client_id = ? OR model_id IN (SELECT id FROM models WHERE user_id = ?))
                  AND booking_date >= ?
                  AND status IN (?, ?)
                ORDER BY booking_date ASC, id ASC
                LIMIT ?
                """,
                (user_id, user_id, utcnow_iso(), *UPCOMING_STATUSES, UPCOMING_LIMIT),
            ).fetchall()
            return [_row_to_booking(conn, row) for row in rows]
        finally:
            conn.close()

    @classmethod
    def participant_role(cls, booking: BookingRead, current_user: Dict[str, Any]) -> Optional[str]:
        """Return ``"admin"``, ``"client"``, ``"model"`` or ``None`` for the caller."""
        if is_admin(current_user):
            return "admin"
        user_id = current_user.get("user_id")
        if booking.client_id == user_id:
            return "client"
        if booking.model is not None and booking.model.user_id == user_id:
            return "model"
        return None

    @classmethod
    async def get_booking_for_user(cls, booking_id: int, current_user: Dict[str, Any]) -> BookingRead:
        booking = await cls.get_booking_by_id(booking_id)
        if cls.participant_role(booking, current_user) is None:
            raise PermissionDeniedError("You are not a participant of this booking")
        return booking

    @classmethod
    async def update_booking_status(
        cls,
        booking_id: int,
        status: str,
        current_user: Dict[str, Any],
        model_notes: Optional[str] = None,
    ) -> BookingRead:
        """Move a booking to ``status`` and notify the client.

        The model owning the booking or an administrator may change the
        status; the client may only cancel.  Cancelled and refunded
        bookings are final, completed ones cannot be cancelled, and the
        status never moves back along ``STATUS_ORDER``.
        """
        booking = await cls.get_booking_by_id(booking_id)
        role = cls.participant_role(booking, current_user)
        if role is None:
            raise PermissionDeniedError("You are not a participant of this booking")
        if role == "client" and status != "cancelled":
            raise PermissionDeniedError("Clients can only cancel their bookings")
        if booking.status in TERMINAL_STATUSES:
            raise ConflictError(f"Booking {booking_id} is already {booking.status}")
        if status == "cancelled" and booking.status == "completed":
            raise ConflictError(f"Booking {booking_id} cannot be cancelled once completed")
        if status in STATUS_ORDER and STATUS_ORDER.index(status) < STATUS_ORDER.index(booking.status):
            raise ConflictError(f"Booking {booking_id} cannot go back from {booking.status} to {status}")

        user_id = current_user.get("user_id")
        now = utcnow_iso()
        fields = ["status = ?", "updated_at = ?"]
        values: List[Any] = [status, now]
        if status == "confirmed":
            fields.append("confirmed_at = ?")
            values.append(now)
        elif status == "completed":
            fields.append("completed_at = ?")
            values.append(now)
        elif status == "cancelled":
            fields.extend(["cancelled_by = ?", "cancelled_at = ?"])
            values.extend([user_id, now])
        if model_notes is not None:
            fields.append("model_notes = ?")
            values.append(model_notes)
        values.append(booking_id)

        conn = get_connection()
        try:
            conn.execute(f"UPDATE bookings SET {', '.join(fields)} WHERE id = ?", tuple(values))
            conn.commit()
        finally:
            conn.close()
        logger.info("Booking %s moved from %s to %s by user %s", booking_id, booking.status, status, user_id)

        if status in STATUS_NOTIFICATIONS:
            title, message = STATUS_NOTIFICATIONS[status]
            await NotificationService.create_notification(
                booking.client_id, title, message, "booking", {"booking_id": booking_id}
            )
        await AuditService.log(
            user_id, "update", "booking", booking_id, {"status": status, "previous_status": booking.status}
        )
        return await cls.get_booking_by_id(booking_id)

    @classmethod
    async def cancel_booking(
        cls, booking_id: int, current_user: Dict[str, Any], reason: Optional[str] = None
    ) -> BookingRead:
        """Cancel a booking on behalf of either party and notify both."""
        booking = await cls.get_booking_by_id(booking_id)
        if cls.participant_role(booking, current_user) is None:
            raise PermissionDeniedError("You are not a participant of this booking")
        if booking.status in TERMINAL_STATUSES or booking.status == "completed":
            raise ConflictError(f"Booking {booking_id} cannot be cancelled once {booking.status}")

        user_id = current_user.get("user_id")
        now = utcnow_iso()
        conn = get_connection()
        try:
            conn.execute(
                """
                UPDATE bookings
                SET status = 'cancelled', cancelled_by = ?, cancelled_at = ?,
                    cancellation_reason = ?, updated_at = ?
                WHERE id = ?
                """,
                (user_id, now, reason or None, now, booking_id),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Booking %s cancelled by user %s", booking_id, user_id)

        await NotificationService.create_notification(
            booking.client_id, "Reserva Cancelada", "Sua reserva foi cancelada.", "booking", {"booking_id": booking_id}
        )
        if booking.model is not None and booking.model.user_id:
            await NotificationService.create_notification(
                booking.model.user_id,
                "Reserva Cancelada",
                "Uma reserva foi cancelada.",
                "booking",
                {"booking_id": booking_id},
            )
        await AuditService.log(user_id, "cancel", "booking", booking_id, {"reason": reason} if reason else None)
        return await cls.get_booking_by_id(booking_id)

    @classmethod
    async def update_payment_status(
        cls, booking_id: int, payment_status: str, user_id: Optional[int] = None
    ) -> BookingRead:
        conn = get_connection()
        try:
            cursor = conn.execute(
                "UPDATE bookings SET payment_status = ?, updated_at = ? WHERE id = ?",
                (payment_status, utcnow_iso(), booking_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise NotFoundError(f"Booking {booking_id} not found")
        finally:
            conn.close()
        await AuditService.log(user_id, "update", "booking", booking_id, {"payment_status": payment_status})
        return await cls.get_booking_by_id(booking_id)
