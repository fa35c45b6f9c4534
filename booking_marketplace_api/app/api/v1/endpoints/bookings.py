"""
Booking endpoints for API v1.

Clients quote and create bookings; both participants read them; the
model (or an administrator) moves them through their lifecycle.
Payments recorded against a booking live under
``/bookings/{booking_id}/payments``.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from booking_marketplace_api.app.core.db import ROLE_ADMIN
from booking_marketplace_api.app.core.security import get_current_user, require_roles
from booking_marketplace_api.app.schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingPaymentStatusUpdate,
    BookingQuote,
    BookingRead,
    BookingStatusUpdate,
)
from booking_marketplace_api.app.schemas.payment import PaymentCreate, PaymentRead
from booking_marketplace_api.app.services.booking_service import BookingService
from booking_marketplace_api.app.services.payment_service import PaymentService

router = APIRouter()


@router.post("/quote", response_model=BookingQuote)
async def quote_booking(data: BookingCreate) -> BookingQuote:
    """Price a booking request without creating it."""
    return await BookingService.quote_booking(data)


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(data: BookingCreate, current_user: dict = Depends(get_current_user)) -> BookingRead:
    """Create a booking for the current user.

    The total and the deposit are computed from the model's price for
    the chosen service; amounts sent by the client are not accepted.
    """
    return await BookingService.create_booking(current_user["user_id"], data)


@router.get("/", response_model=List[BookingRead])
async def list_my_bookings(current_user: dict = Depends(get_current_user)) -> List[BookingRead]:
    return await BookingService.get_user_bookings(current_user["user_id"])


@router.get("/upcoming", response_model=List[BookingRead])
async def list_upcoming_bookings(current_user: dict = Depends(get_current_user)) -> List[BookingRead]:
    """Next five pending or confirmed bookings, as client or as model."""
    return await BookingService.get_upcoming_bookings(current_user["user_id"])


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(booking_id: int, current_user: dict = Depends(get_current_user)) -> BookingRead:
    return await BookingService.get_booking_for_user(booking_id, current_user)


@router.patch("/{booking_id}/status", response_model=BookingRead)
async def update_booking_status(
    booking_id: int, body: BookingStatusUpdate, current_user: dict = Depends(get_current_user)
) -> BookingRead:
    return await BookingService.update_booking_status(booking_id, body.status, current_user, body.model_notes)


@router.post("/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(
    booking_id: int, body: BookingCancel, current_user: dict = Depends(get_current_user)
) -> BookingRead:
    return await BookingService.cancel_booking(booking_id, current_user, body.reason)


@router.patch("/{booking_id}/payment-status", response_model=BookingRead)
async def update_booking_payment_status(
    booking_id: int,
    body: BookingPaymentStatusUpdate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> BookingRead:
    """Override the booking's payment status (administrators only)."""
    return await BookingService.update_payment_status(booking_id, body.payment_status, current_user.get("user_id"))


@router.get("/{booking_id}/payments", response_model=List[PaymentRead])
async def list_booking_payments(booking_id: int, current_user: dict = Depends(get_current_user)) -> List[PaymentRead]:
    return await PaymentService.list_booking_payments(booking_id, current_user)


@router.post("/{booking_id}/payments", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
async def create_booking_payment(
    booking_id: int, payment: PaymentCreate, current_user: dict = Depends(get_current_user)
) -> PaymentRead:
    return await PaymentService.create_payment(booking_id, payment, current_user)
