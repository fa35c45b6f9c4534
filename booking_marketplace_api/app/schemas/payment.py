"""
Pydantic models for payment data.

Payments are recorded against a booking.  Gateway integration is out
of scope; a payment is confirmed by an administrator changing its
status, which in turn re-derives the booking's payment status.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

PaymentMethod = Literal["mpesa", "bank_transfer", "cash", "card"]
PaymentStatus = Literal["pending", "processing", "completed", "failed", "refunded"]


class PaymentCreate(BaseModel):
    amount: float = Field(..., gt=0, examples=[1500.0])
    payment_method: PaymentMethod = Field(..., examples=["mpesa"])
    transaction_id: Optional[str] = None
    external_reference: Optional[str] = None
    payment_data: Dict[str, Any] = Field(default_factory=dict)


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class PaymentRead(BaseModel):
    id: int
    booking_id: int
    payer_id: int
    amount: float
    currency: str
    payment_method: str
    payment_status: str
    transaction_id: Optional[str] = None
    external_reference: Optional[str] = None
    payment_data: Dict[str, Any] = Field(default_factory=dict)
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }
