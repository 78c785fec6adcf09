"""Message router - FastAPI endpoints for booking conversations"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...serializers import serialize_message, serialize_user_summary
from ...shared.responses import (
    created_response,
    normalize_pagination,
    pagination_meta,
    success_response,
)
from .schemas import MessageCreate
from .service import MessageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messages"])


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    """Dependency injection for MessageService"""
    return MessageService(db)


@router.post("")
async def send_message(
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    message = service.send(current_user, data)
    return created_response("Message sent successfully", serialize_message(message))


@router.get("/booking/{booking_id}")
async def booking_messages(
    booking_id: int,
    page: int = Query(1),
    limit: int = Query(50),
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    page, limit = normalize_pagination(page, limit, default_limit=50)
    messages, total = service.booking_messages(booking_id, current_user, page, limit)
    return success_response(
        "Messages retrieved successfully",
        [
            {**serialize_message(m), "receiver": serialize_user_summary(m.receiver)}
            for m in messages
        ],
        pagination_meta(page, limit, total),
    )


@router.get("/unread-count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    return success_response(
        "Unread count retrieved", {"unreadCount": service.unread_count(current_user)}
    )


@router.put("/{message_id}/read")
async def mark_read(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    service.mark_read(message_id, current_user)
    return success_response("Message marked as read", {"messageId": message_id, "isRead": True})


@router.delete("/{message_id}")
async def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessageService = Depends(get_message_service),
):
    service.delete(message_id, current_user)
    return success_response("Message deleted successfully")
