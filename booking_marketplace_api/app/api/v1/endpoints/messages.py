"""
Direct message endpoints for API v1.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from booking_marketplace_api.app.core.security import get_current_user
from booking_marketplace_api.app.schemas.message import MessageCreate, MessageRead
from booking_marketplace_api.app.schemas.notification import UnreadCount
from booking_marketplace_api.app.services.message_service import MessageService

router = APIRouter()


@router.post("/", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
async def send_message(data: MessageCreate, current_user: dict = Depends(get_current_user)) -> MessageRead:
    return await MessageService.send_message(current_user["user_id"], data.receiver_id, data.content, data.booking_id)


@router.get("/", response_model=List[MessageRead])
async def list_messages(current_user: dict = Depends(get_current_user)) -> List[MessageRead]:
    """Messages sent or received by the caller, newest first."""
    return await MessageService.get_user_messages(current_user["user_id"])


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(current_user: dict = Depends(get_current_user)) -> UnreadCount:
    return UnreadCount(count=await MessageService.get_unread_count(current_user["user_id"]))


@router.get("/conversation/{other_user_id}", response_model=List[MessageRead])
async def get_conversation(other_user_id: int, current_user: dict = Depends(get_current_user)) -> List[MessageRead]:
    return await MessageService.get_conversation(current_user["user_id"], other_user_id)


@router.post("/{message_id}/read", response_model=MessageRead)
async def mark_read(message_id: int, current_user: dict = Depends(get_current_user)) -> MessageRead:
    return await MessageService.mark_message_as_read(message_id, current_user["user_id"])


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(message_id: int, current_user: dict = Depends(get_current_user)) -> None:
    await MessageService.delete_message(message_id, current_user["user_id"])
