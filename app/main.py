import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401 - registers tables on Base
from .config import ALLOWED_ORIGINS, API_PREFIX, ENVIRONMENT, SECURITY_HEADERS_ENABLED
from .database import Base, engine
from .domain.activities.router import router as activities_router
from .domain.admin.router import router as admin_router
from .domain.affiliates.router import router as affiliates_router
from .domain.auth.router import router as auth_router
from .domain.availability.router import router as availability_router
from .domain.bookings.router import router as bookings_router
from .domain.destinations.router import router as destinations_router
from .domain.merchant.router import router as merchant_router
from .domain.messages.router import router as messages_router
from .domain.payments.router import router as payments_router
from .domain.translations.router import router as translations_router
from .rate_limiter import global_limiter
from .security_headers import SecurityHeadersMiddleware
from .shared.responses import error_body

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application starting up ({ENVIRONMENT})...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()  # Connection test
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed - rate limiting will count in memory only: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="TRIPLY API", version="1.0.0", lifespan=lifespan)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

UNIQUE_FIELD_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: \w+\.(\w+)"),  # sqlite
    re.compile(r"Key \((\w+)\)=\(.*\) already exists"),  # postgres
)


def duplicate_field(exc: IntegrityError) -> str:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    for pattern in UNIQUE_FIELD_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1)
    return "record"


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Pydantic errors become 400 with a flat {field, message} list"""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(
            {
                "field": ".".join(loc) or None,
                "message": str(error.get("msg", "")).removeprefix("Value error, "),
            }
        )
    logger.warning(f"⚠️ Validation error for {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(error_body("Validation failed", errors=errors)),
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    field = duplicate_field(exc)
    logger.warning(f"⚠️ Integrity error on {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=400,
        content=error_body(f"{field[:1].upper()}{field[1:]} already exists"),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ {request.method} {request.url.path} - Error: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


# ============================================================================
# MIDDLEWARE
# ============================================================================

if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,  # Refresh token travels as a cookie
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)


# ============================================================================
# ROUTES
# ============================================================================

for router in (
    auth_router,
    destinations_router,
    bookings_router,
    availability_router,
    affiliates_router,
    payments_router,
    activities_router,
    merchant_router,
    messages_router,
    admin_router,
    translations_router,
):
    app.include_router(router, prefix=API_PREFIX, dependencies=[Depends(global_limiter)])


@app.get(f"{API_PREFIX}/health")
def health():
    return {
        "success": True,
        "message": "TRIPLY API is running",
        "timestamp": datetime.utcnow().isoformat(),
    }
