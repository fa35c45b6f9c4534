"""
Payment endpoints for API v1.

Payments are created under their booking (see ``bookings.py``).  This
router only exposes the administrative status change, the step that
stands in for a payment gateway callback.
"""

from fastapi import APIRouter, Depends, Path

from booking_marketplace_api.app.core.db import ROLE_ADMIN
from booking_marketplace_api.app.core.security import require_roles
from booking_marketplace_api.app.schemas.payment import PaymentRead, PaymentStatusUpdate
from booking_marketplace_api.app.services.payment_service import PaymentService

router = APIRouter()


@router.patch("/{payment_id}/status", response_model=PaymentRead)
async def update_payment_status(
    body: PaymentStatusUpdate,
    payment_id: int = Path(..., description="Payment ID"),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> PaymentRead:
    """Set a payment's status; the booking's payment status follows."""
    return await PaymentService.update_payment_status(payment_id, body.payment_status, current_user.get("user_id"))
