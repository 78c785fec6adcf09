"""Message service - Conversations between customers and admins about a booking"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Booking, Message, User
from .repository import MessageRepository
from .schemas import MessageCreate

logger = logging.getLogger(__name__)


class MessageService:
    """Service layer for booking messages"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MessageRepository()

    def _accessible_booking(self, booking_id: int, user: User) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if user.role != "admin" and booking.user_id != user.id:
            raise HTTPException(status_code=403, detail="You do not have access to this booking")
        return booking

    def send(self, sender: User, data: MessageCreate) -> Message:
        self._accessible_booking(data.bookingId, sender)
        if not self.repo.get_user(self.db, data.receiverId):
            raise HTTPException(status_code=404, detail="Receiver not found")

        message = self.repo.create(
            self.db,
            booking_id=data.bookingId,
            sender_id=sender.id,
            receiver_id=data.receiverId,
            message=data.message,
            attachments=data.attachments,
        )
        logger.info(f"💬 Message {message.id} on booking {data.bookingId} from user {sender.id}")
        return message

    def booking_messages(self, booking_id: int, user: User, page: int, limit: int):
        """Oldest first; everything addressed to the reader is marked read"""
        self._accessible_booking(booking_id, user)
        messages, total = self.repo.for_booking(self.db, booking_id, (page - 1) * limit, limit)
        self.repo.mark_booking_read(self.db, booking_id, user.id)
        return messages, total

    def mark_read(self, message_id: int, user: User) -> Message:
        message = self.repo.get_received(self.db, message_id, user.id)
        if not message:
            raise HTTPException(
                status_code=404, detail="Message not found or you are not the recipient"
            )
        message.is_read = True
        self.db.commit()
        return message

    def delete(self, message_id: int, user: User) -> None:
        sender_filter = None if user.role == "admin" else user.id
        message = self.repo.get_by_id(self.db, message_id, sender_filter)
        if not message:
            raise HTTPException(
                status_code=404,
                detail="Message not found or you do not have permission to delete it",
            )
        self.repo.delete(self.db, message)
        logger.info(f"🗑️ Message {message_id} deleted by user {user.id}")

    def unread_count(self, user: User) -> int:
        return self.repo.unread_count(self.db, user.id)
