"""Message repository - Database operations for booking conversations"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, Message, User


class MessageRepository:
    """Repository for message database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def create(db: Session, **data) -> Message:
        message = Message(**data)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def for_booking(db: Session, booking_id: int, offset: int, limit: int) -> tuple[list[Message], int]:
        query = db.query(Message).filter(Message.booking_id == booking_id)
        total = query.count()
        rows = (
            query.order_by(Message.created_at.asc(), Message.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def mark_booking_read(db: Session, booking_id: int, receiver_id: int) -> int:
        updated = (
            db.query(Message)
            .filter(
                Message.booking_id == booking_id,
                Message.receiver_id == receiver_id,
                Message.is_read.is_(False),
            )
            .update({Message.is_read: True}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def get_received(db: Session, message_id: int, receiver_id: int) -> Optional[Message]:
        return (
            db.query(Message)
            .filter(Message.id == message_id, Message.receiver_id == receiver_id)
            .first()
        )

    @staticmethod
    def get_by_id(db: Session, message_id: int, sender_id: Optional[int] = None) -> Optional[Message]:
        query = db.query(Message).filter(Message.id == message_id)
        if sender_id is not None:
            query = query.filter(Message.sender_id == sender_id)
        return query.first()

    @staticmethod
    def unread_count(db: Session, receiver_id: int) -> int:
        return (
            db.query(Message)
            .filter(Message.receiver_id == receiver_id, Message.is_read.is_(False))
            .count()
        )

    @staticmethod
    def delete(db: Session, message: Message) -> None:
        db.delete(message)
        db.commit()
