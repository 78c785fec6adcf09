"""Destination domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LocalizedText(BaseModel):
    """English is mandatory, Arabic optional"""

    en: str = Field(..., min_length=1)
    ar: Optional[str] = None

    @field_validator("en")
    @classmethod
    def strip_en(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("English text is required")
        return v


class LocalizedName(LocalizedText):
    en: str = Field(..., min_length=1, max_length=200)
    ar: Optional[str] = Field(None, max_length=200)


class Duration(BaseModel):
    days: int = Field(1, ge=1)
    nights: int = Field(0, ge=0)


class DestinationCreate(BaseModel):
    name: LocalizedName
    description: LocalizedText
    shortDescription: Optional[LocalizedText] = None
    slug: Optional[str] = None
    images: list[str] = []
    thumbnailImage: Optional[str] = None
    country: str = Field(..., min_length=1, max_length=100)
    region: Optional[str] = Field(None, max_length=100)
    depositAmount: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    highlights: list[LocalizedText] = []
    inclusions: list[LocalizedText] = []
    exclusions: list[LocalizedText] = []
    duration: Duration = Duration()
    isActive: bool = True

    @field_validator("country")
    @classmethod
    def strip_country(cls, v: str) -> str:
        return v.strip()


class DestinationUpdate(BaseModel):
    name: Optional[LocalizedName] = None
    description: Optional[LocalizedText] = None
    shortDescription: Optional[LocalizedText] = None
    slug: Optional[str] = None
    images: Optional[list[str]] = None
    thumbnailImage: Optional[str] = None
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    region: Optional[str] = Field(None, max_length=100)
    depositAmount: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    highlights: Optional[list[LocalizedText]] = None
    inclusions: Optional[list[LocalizedText]] = None
    exclusions: Optional[list[LocalizedText]] = None
    duration: Optional[Duration] = None
    isActive: Optional[bool] = None
