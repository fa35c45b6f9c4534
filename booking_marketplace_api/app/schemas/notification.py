"""
Pydantic models for in-app notifications.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

NotificationType = Literal["info", "success", "warning", "error", "booking", "message", "review"]


class NotificationCreate(BaseModel):
    user_id: int
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    type: NotificationType = "info"
    data: Dict[str, Any] = Field(default_factory=dict)
    action_url: Optional[str] = None
    expires_at: Optional[datetime] = None


class NotificationRead(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    read_at: Optional[datetime] = None
    action_url: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class UnreadCount(BaseModel):
    count: int
