"""
Business logic for payments.

Payments are recorded against a booking by its client.  There is no
gateway: an administrator moves a payment to ``completed`` (or
``failed``/``refunded``) once the money is confirmed.  After every
change the booking's own ``payment_status`` is derived again from all
of its payments, see ``derive_booking_payment_status``.
"""

import logging
import sqlite3
from typing import Any, Dict, Iterable, List

from booking_marketplace_api.app.core.config import settings
from booking_marketplace_api.app.core.db import dumps_json, get_connection, loads_json, utcnow_iso
from booking_marketplace_api.app.core.errors import ConflictError, NotFoundError, PermissionDeniedError
from booking_marketplace_api.app.core.security import is_admin
from booking_marketplace_api.app.schemas.payment import PaymentCreate, PaymentRead
from booking_marketplace_api.app.services.audit_service import AuditService
from booking_marketplace_api.app.services.booking_service import BookingService

logger = logging.getLogger(__name__)


def _row_to_payment(row: sqlite3.Row) -> PaymentRead:
    return PaymentRead(
        id=row["id"],
        booking_id=row["booking_id"],
        payer_id=row["payer_id"],
        amount=row["amount"],
        currency=row["currency"],
        payment_method=row["payment_method"],
        payment_status=row["payment_status"],
        transaction_id=row["transaction_id"],
        external_reference=row["external_reference"],
        payment_data=loads_json(row["payment_data"], {}),
        processed_at=row["processed_at"],
        created_at=row["created_at"],
    )


def derive_booking_payment_status(total_amount: float, payments: Iterable[Dict[str, Any]]) -> str:
    """Summarise a booking's payments into ``pending``/``partial``/``paid``/``refunded``."""
    completed = 0.0
    refunded = False
    for payment in payments:
        if payment["payment_status"] == "completed":
            completed += payment["amount"]
        elif payment["payment_status"] == "refunded":
            refunded = True
    if completed > 0 and completed >= total_amount:
        return "paid"
    if completed > 0:
        return "partial"
    if refunded:
        return "refunded"
    return "pending"


class PaymentService:
    """Service for recording payments against bookings."""

    @classmethod
    async def create_payment(cls, booking_id: int, data: PaymentCreate, current_user: Dict[str, Any]) -> PaymentRead:
        """Record a pending payment for a booking.

        Only the booking's client (or an administrator) pays.  Cancelled
        and refunded bookings no longer accept payments.
        """
        booking = await BookingService.get_booking_by_id(booking_id)
        payer_id = current_user.get("user_id")
        if booking.client_id != payer_id and not is_admin(current_user):
            raise PermissionDeniedError("Only the client can pay for this booking")
        if booking.status in ("cancelled", "refunded"):
            raise ConflictError(f"Booking {booking_id} is {booking.status}")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO payments (booking_id, payer_id, amount, currency, payment_method, payment_status,
                                      transaction_id, external_reference, payment_data, created_at)
                VALUES (?, ?, ?, ?, ?, 'pending', ?, ?, ?, ?)
                """,
                (
                    booking_id,
                    payer_id,
                    data.amount,
                    settings.currency,
                    data.payment_method,
                    data.transaction_id,
                    data.external_reference,
                    dumps_json(data.payment_data),
                    utcnow_iso(),
                ),
            )
            payment_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute("SELECT * FROM payments WHERE id = ?", (payment_id,)).fetchone()
        finally:
            conn.close()
        logger.info("Payment %s of %s %s recorded for booking %s", payment_id, data.amount, settings.currency, booking_id)
        await AuditService.log(
            payer_id, "create", "payment", payment_id,
            {"booking_id": booking_id, "amount": data.amount, "method": data.payment_method},
        )
        return _row_to_payment(row)

    @classmethod
    async def list_booking_payments(cls, booking_id: int, current_user: Dict[str, Any]) -> List[PaymentRead]:
        await BookingService.get_booking_for_user(booking_id, current_user)
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM payments WHERE booking_id = ? ORDER BY created_at, id", (booking_id,)
            ).fetchall()
            return [_row_to_payment(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def update_payment_status(cls, payment_id: int, payment_status: str, admin_id: int) -> PaymentRead:
        """Change a payment's status and re-derive the booking's payment status."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT * FROM payments WHERE id = ?", (payment_id,)).fetchone()
            if not row:
                raise NotFoundError(f"Payment {payment_id} not found")
            if payment_status == "completed":
                cursor.execute(
                    "UPDATE payments SET payment_status = ?, processed_at = ? WHERE id = ?",
                    (payment_status, utcnow_iso(), payment_id),
                )
            else:
                cursor.execute("UPDATE payments SET payment_status = ? WHERE id = ?", (payment_status, payment_id))
            conn.commit()
            booking_id = row["booking_id"]
            booking = cursor.execute("SELECT total_amount FROM bookings WHERE id = ?", (booking_id,)).fetchone()
            payments = cursor.execute(
                "SELECT amount, payment_status FROM payments WHERE booking_id = ?", (booking_id,)
            ).fetchall()
            updated = cursor.execute("SELECT * FROM payments WHERE id = ?", (payment_id,)).fetchone()
        finally:
            conn.close()
        booking_payment_status = derive_booking_payment_status(booking["total_amount"], payments)
        logger.info(
            "Payment %s set to %s; booking %s is now %s", payment_id, payment_status, booking_id, booking_payment_status
        )
        await AuditService.log(admin_id, "update", "payment", payment_id, {"payment_status": payment_status})
        await BookingService.update_payment_status(booking_id, booking_payment_status, admin_id)
        return _row_to_payment(updated)
