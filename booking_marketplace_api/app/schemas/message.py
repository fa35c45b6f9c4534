"""
Pydantic models for direct messages between users.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

MAX_MESSAGE_LENGTH = 2000


class MessageCreate(BaseModel):
    receiver_id: int
    content: str = Field(..., examples=["Olá! Está disponível na sexta?"])
    booking_id: Optional[int] = None

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message content must not be empty")
        if len(v) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message must be {MAX_MESSAGE_LENGTH} characters or fewer")
        return v


class MessageRead(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    booking_id: Optional[int] = None
    content: str
    message_type: str = "text"
    attachment_url: Optional[str] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    sender_name: Optional[str] = None
    receiver_name: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
