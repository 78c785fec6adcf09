"""Translation service - Localized UI strings with English fallback"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Translation
from .repository import TranslationRepository
from .schemas import TranslationCreate, TranslationImport, TranslationUpdate

logger = logging.getLogger(__name__)

FALLBACK_LANGUAGE = "en"


def localized_map(translations: list[Translation], language: str) -> dict[str, str]:
    """{key: text} in the requested language, falling back to English"""
    return {
        t.key: (t.translations or {}).get(language) or (t.translations or {}).get(FALLBACK_LANGUAGE)
        for t in translations
    }


class TranslationService:
    """Service layer for translation business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TranslationRepository()

    def get_map(self, language: str, category: Optional[str] = None) -> dict[str, str]:
        return localized_map(self.repo.all(self.db, category), language)

    def create(self, data: TranslationCreate) -> Translation:
        if self.repo.get_by_key(self.db, data.key):
            raise HTTPException(status_code=400, detail="Translation key already exists")
        translation = self.repo.add(
            self.db, key=data.key, translations=data.translations, category=data.category
        )
        self.db.commit()
        self.db.refresh(translation)
        logger.info(f"🌐 Translation {translation.key} created")
        return translation

    def _get_or_404(self, key: str) -> Translation:
        translation = self.repo.get_by_key(self.db, key)
        if not translation:
            raise HTTPException(status_code=404, detail="Translation not found")
        return translation

    def update(self, key: str, data: TranslationUpdate) -> Translation:
        translation = self._get_or_404(key)
        if data.translations:
            merged = {**(translation.translations or {}), **data.translations}
            if not merged.get(FALLBACK_LANGUAGE):
                raise HTTPException(status_code=400, detail="English translation is required")
            translation.translations = merged
        if data.category:
            translation.category = data.category
        self.db.commit()
        self.db.refresh(translation)
        return translation

    def delete(self, key: str) -> None:
        self.repo.delete(self.db, self._get_or_404(key))
        logger.info(f"🗑️ Translation {key} deleted")

    def import_language(self, data: TranslationImport) -> dict:
        imported = updated = 0
        for key, value in data.translations.items():
            existing = self.repo.get_by_key(self.db, key)
            if existing:
                # JSON columns only persist on reassignment
                existing.translations = {**(existing.translations or {}), data.language: value}
                updated += 1
            else:
                texts = {data.language: value}
                if data.language != FALLBACK_LANGUAGE:
                    texts[FALLBACK_LANGUAGE] = ""
                self.repo.add(
                    self.db, key=key, translations=texts, category=data.category or "general"
                )
                imported += 1
        self.db.commit()
        logger.info(f"🌐 Imported {data.language}: {imported} new, {updated} updated")
        return {"imported": imported, "updated": updated, "total": imported + updated}
