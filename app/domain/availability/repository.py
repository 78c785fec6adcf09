"""Availability repository - Database operations for per-day destination capacity"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Availability, Destination

BLOCK_DEFAULT_SLOTS = 999


class AvailabilityRepository:
    """Repository for availability database operations"""

    @staticmethod
    def get_destination(db: Session, destination_id: int) -> Optional[Destination]:
        return db.query(Destination).filter(Destination.id == destination_id).first()

    @staticmethod
    def get_by_id(db: Session, availability_id: int) -> Optional[Availability]:
        return db.query(Availability).filter(Availability.id == availability_id).first()

    @staticmethod
    def get_day(db: Session, destination_id: int, day: date) -> Optional[Availability]:
        return (
            db.query(Availability)
            .filter(Availability.destination_id == destination_id, Availability.date == day)
            .first()
        )

    @staticmethod
    def get_range(db: Session, destination_id: int, start: date, end: date) -> list[Availability]:
        """Rows inside [start, end], oldest day first"""
        return (
            db.query(Availability)
            .filter(
                Availability.destination_id == destination_id,
                Availability.date >= start,
                Availability.date <= end,
            )
            .order_by(Availability.date.asc())
            .all()
        )

    @staticmethod
    def upsert_day(
        db: Session,
        destination_id: int,
        day: date,
        values: dict,
        on_insert: Optional[dict] = None,
    ) -> Availability:
        """
        Set `values` on the row for (destination, day), creating it when missing.
        `on_insert` fields only apply to newly created rows. Does not commit.
        """
        row = AvailabilityRepository.get_day(db, destination_id, day)
        if row is None:
            row = Availability(destination_id=destination_id, date=day, booked_slots=0)
            for key, value in (on_insert or {}).items():
                setattr(row, key, value)
            db.add(row)
        for key, value in values.items():
            setattr(row, key, value)
        db.flush()
        return row

    @staticmethod
    def save(db: Session, row: Availability) -> Availability:
        db.commit()
        db.refresh(row)
        return row
