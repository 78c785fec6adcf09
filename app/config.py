import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
IS_PRODUCTION = ENVIRONMENT.lower() == "production"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./triply.db")

API_PREFIX = "/api/v1"

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# JWT Configuration
JWT_SECRET = os.getenv("JWT_SECRET", SECRET_KEY)
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "15"))
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", f"{SECRET_KEY}-refresh")
JWT_REFRESH_EXPIRE_DAYS = int(os.getenv("JWT_REFRESH_EXPIRE_DAYS", "7"))
REFRESH_COOKIE_NAME = "refreshToken"

# Frontend base URL for links in emails and CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

# Stripe Configuration
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_API_BASE = os.getenv("STRIPE_API_BASE", "https://api.stripe.com/v1")

# Email Configuration - SMTP takes priority, Resend is the fallback
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Triply <noreply@triply.ae>")

# Booking rules
DEFAULT_DEPOSIT_AMOUNT = float(os.getenv("DEFAULT_DEPOSIT_AMOUNT", "199"))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "AED")
CALENDAR_UNLOCK_DURATION_DAYS = int(os.getenv("CALENDAR_UNLOCK_DURATION_DAYS", "365"))
MINIMUM_CHARGE_AMOUNT = 0.5  # Smallest amount the card processor accepts
ACTIVITY_COMMISSION_RATE = 0.2  # Platform share of activity bookings

# Rate limiting
RATE_LIMIT_WINDOW_MS = int(os.getenv("RATE_LIMIT_WINDOW_MS", "900000"))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Redis (rate limiting and the background worker)
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
