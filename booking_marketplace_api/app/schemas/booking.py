"""
Pydantic models for bookings.

A booking reserves a model for a catalogue service at a given date and
for a number of hours.  Prices are never accepted from the client: the
total and the deposit are computed by the booking service.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .model import ModelRead, ServiceRead
from .user import UserRead

BookingStatus = Literal["pending", "confirmed", "in_progress", "completed", "cancelled", "refunded"]
BookingPaymentStatus = Literal["pending", "partial", "paid", "refunded"]


class BookingCreate(BaseModel):
    """Schema for creating a booking."""

    model_id: int
    service_id: int
    booking_date: datetime = Field(..., examples=["2026-11-20T20:00:00Z"])
    duration_hours: int = Field(1, examples=[2])
    location: Optional[str] = None
    meeting_point: Optional[str] = None
    special_requests: Optional[str] = Field(None, max_length=2000)
    client_notes: Optional[str] = Field(None, max_length=2000)

    model_config = {"protected_namespaces": ()}


class BookingQuote(BaseModel):
    unit_price: float
    duration_hours: int
    total_amount: float
    deposit_amount: float
    deposit_rate: float
    currency: str


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    model_notes: Optional[str] = None

    model_config = {"protected_namespaces": ()}


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class BookingPaymentStatusUpdate(BaseModel):
    payment_status: BookingPaymentStatus


class BookingRead(BaseModel):
    id: int
    client_id: int
    model_id: int
    service_id: Optional[int] = None
    booking_date: datetime
    duration_hours: int
    total_amount: float
    deposit_amount: float
    status: str
    payment_status: str
    special_requests: Optional[str] = None
    location: Optional[str] = None
    meeting_point: Optional[str] = None
    client_notes: Optional[str] = None
    model_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Related records, embedded when the caller asks for the detailed view.
    model: Optional[ModelRead] = None
    service: Optional[ServiceRead] = None
    client: Optional[UserRead] = None

    model_config = {
        "from_attributes": True,
        "protected_namespaces": (),
    }
