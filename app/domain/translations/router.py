"""Translation router - FastAPI endpoints for localized UI strings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import admin_only
from ...database import get_db
from ...models import User
from ...serializers import serialize_translation
from ...shared.responses import created_response, success_response
from ...shared.validators import parse_accept_language
from .schemas import TranslationCreate, TranslationImport, TranslationUpdate
from .service import TranslationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/translations", tags=["Translations"])


def get_translation_service(db: Session = Depends(get_db)) -> TranslationService:
    """Dependency injection for TranslationService"""
    return TranslationService(db)


@router.get("")
async def get_translations(
    request: Request,
    language: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    service: TranslationService = Depends(get_translation_service),
):
    """Without ?language the Accept-Language header decides"""
    language = language or parse_accept_language(request.headers.get("accept-language"))
    return success_response(
        "Translations retrieved successfully", service.get_map(language, category)
    )


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@router.post("")
async def create_translation(
    data: TranslationCreate,
    current_user: User = Depends(admin_only),
    service: TranslationService = Depends(get_translation_service),
):
    translation = service.create(data)
    return created_response("Translation created successfully", serialize_translation(translation))


@router.get("/export/{language}")
async def export_translations(
    language: str,
    current_user: User = Depends(admin_only),
    service: TranslationService = Depends(get_translation_service),
):
    return JSONResponse(
        content=service.get_map(language),
        headers={"Content-Disposition": f"attachment; filename=translations-{language}.json"},
    )


@router.post("/import")
async def import_translations(
    data: TranslationImport,
    current_user: User = Depends(admin_only),
    service: TranslationService = Depends(get_translation_service),
):
    return success_response("Translations imported successfully", service.import_language(data))


@router.put("/{key}")
async def update_translation(
    key: str,
    data: TranslationUpdate,
    current_user: User = Depends(admin_only),
    service: TranslationService = Depends(get_translation_service),
):
    translation = service.update(key, data)
    return success_response("Translation updated successfully", serialize_translation(translation))


@router.delete("/{key}")
async def delete_translation(
    key: str,
    current_user: User = Depends(admin_only),
    service: TranslationService = Depends(get_translation_service),
):
    service.delete(key)
    return success_response("Translation deleted successfully")
