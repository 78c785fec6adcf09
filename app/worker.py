"""
ARQ Background Worker
Runs the daily calendar-expiry reminder job
"""

import logging
import os
from urllib.parse import urlparse

from arq.connections import RedisSettings
from arq.cron import cron

from . import models  # noqa: F401 - registers tables before any query
from .config import REDIS_URL
from .database import SessionLocal
from .services.reminder_service import send_calendar_expiry_reminders

logger = logging.getLogger(__name__)


def get_redis_settings() -> RedisSettings:
    """Redis settings for the ARQ worker, parsed from REDIS_URL"""
    parsed = urlparse(REDIS_URL)
    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        password=parsed.password,
        database=int(parsed.path.lstrip("/") or 0),
        ssl=parsed.scheme == "rediss",
        conn_timeout=15,
        conn_retry_delay=1,
    )


async def calendar_expiry_reminder_task(ctx):
    """
    Daily cron job: remind customers whose calendar access expires in about
    a month that they still need to pick travel dates.
    """
    logger.info("⏰ Starting calendar expiry reminder run")

    db = SessionLocal()
    try:
        summary = await send_calendar_expiry_reminders(db)
        logger.info(f"Calendar expiry reminders complete: {summary}")
        return summary
    except Exception as e:
        logger.error(f"❌ Calendar expiry reminders failed: {str(e)}")
        raise
    finally:
        db.close()


class WorkerSettings:
    """ARQ Worker Settings"""

    functions = [calendar_expiry_reminder_task]
    redis_settings = get_redis_settings()

    max_jobs = int(os.getenv("ARQ_MAX_JOBS", "10"))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "600"))
    keep_result = int(os.getenv("ARQ_KEEP_RESULT", "3600"))
    health_check_interval = 60
    max_tries = 3

    cron_jobs = [
        cron(calendar_expiry_reminder_task, hour=9, minute=0),  # 9 AM UTC
    ]
