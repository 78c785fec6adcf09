"""Translation repository - Database operations for UI strings"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Translation


class TranslationRepository:
    """Repository for translation database operations"""

    @staticmethod
    def all(db: Session, category: Optional[str] = None) -> list[Translation]:
        query = db.query(Translation)
        if category:
            query = query.filter(Translation.category == category)
        return query.order_by(Translation.key.asc()).all()

    @staticmethod
    def get_by_key(db: Session, key: str) -> Optional[Translation]:
        return db.query(Translation).filter(Translation.key == key).first()

    @staticmethod
    def add(db: Session, **data) -> Translation:
        """Does not commit"""
        translation = Translation(**data)
        db.add(translation)
        return translation

    @staticmethod
    def delete(db: Session, translation: Translation) -> None:
        db.delete(translation)
        db.commit()
