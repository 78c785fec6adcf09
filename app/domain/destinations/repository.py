"""Destination repository - Database operations for destinations"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Destination


class DestinationRepository:
    """Repository for destination database operations"""

    @staticmethod
    def list_active(
        db: Session,
        offset: int,
        limit: int,
        country: Optional[str] = None,
        region: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Destination], int]:
        """Active destinations newest first, with the unpaginated total"""
        query = db.query(Destination).filter(Destination.is_active.is_(True))

        if country:
            query = query.filter(Destination.country == country)
        if region:
            query = query.filter(Destination.region == region)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Destination.name["en"].as_string().ilike(pattern),
                    Destination.name["ar"].as_string().ilike(pattern),
                    Destination.description["en"].as_string().ilike(pattern),
                    Destination.country.ilike(pattern),
                )
            )

        total = query.count()
        rows = (
            query.order_by(Destination.created_at.desc(), Destination.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def get_by_id(db: Session, destination_id: int) -> Optional[Destination]:
        return db.query(Destination).filter(Destination.id == destination_id).first()

    @staticmethod
    def get_active_by_slug(db: Session, slug: str) -> Optional[Destination]:
        return (
            db.query(Destination)
            .filter(Destination.slug == slug, Destination.is_active.is_(True))
            .first()
        )

    @staticmethod
    def create(db: Session, **data) -> Destination:
        destination = Destination(**data)
        db.add(destination)
        db.commit()
        db.refresh(destination)
        return destination

    @staticmethod
    def update(db: Session, destination: Destination, **updates) -> Destination:
        for key, value in updates.items():
            if value is not None and hasattr(destination, key):
                setattr(destination, key, value)
        db.commit()
        db.refresh(destination)
        return destination
