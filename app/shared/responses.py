"""Response envelope and pagination helpers shared by every router"""

import math
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(message: str, data: Any = None, meta: Optional[dict] = None) -> dict:
    """Standard success envelope: {success, message, data, meta?}"""
    body = {"success": True, "message": message, "data": data}
    if meta is not None:
        body["meta"] = meta
    return body


def created_response(message: str, data: Any = None) -> JSONResponse:
    return JSONResponse(status_code=201, content=jsonable_encoder(success_response(message, data)))


def error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


def pagination_meta(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def normalize_pagination(
    page: Optional[int], limit: Optional[int], default_limit: int = 10, max_limit: int = 100
) -> tuple[int, int]:
    """Clamp page/limit query values and return (page, limit)"""
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else default_limit
    return page, min(limit, max_limit)
