"""Translation domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class TranslationCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=255)
    translations: dict[str, str]
    category: str = Field(..., min_length=1, max_length=100)

    @field_validator("translations")
    @classmethod
    def english_required(cls, v: dict[str, str]) -> dict[str, str]:
        if not v.get("en"):
            raise ValueError("English translation is required")
        return v


class TranslationUpdate(BaseModel):
    translations: Optional[dict[str, str]] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)


class TranslationImport(BaseModel):
    translations: dict[str, str]
    language: str = Field(..., min_length=2, max_length=10)
    category: Optional[str] = Field(None, max_length=100)
