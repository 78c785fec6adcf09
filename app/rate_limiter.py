"""
Hybrid in-memory + Redis rate limiting utilities
Counts live in memory and are synced to Redis periodically; without Redis
the limiter keeps counting per process.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

from .config import RATE_LIMIT_ENABLED, RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_MS

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None
_redis_unavailable_until = 0

# Format: {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # Sync to Redis every 10 seconds
MEMORY_CACHE_CLEANUP_INTERVAL = 60  # Clean up expired entries every 60 seconds
REDIS_RETRY_INTERVAL = 60  # Wait before retrying a failed connection
last_cleanup_time = 0


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client from REDIS_URL (or REDIS_HOST/REDIS_PORT).
    Raises when the server cannot be reached.
    """
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")
        if redis_url:
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        else:
            client = redis.Redis(
                host=os.getenv("REDIS_HOST", "localhost"),
                port=int(os.getenv("REDIS_PORT", "6379")),
                password=os.getenv("REDIS_PASSWORD"),
                db=int(os.getenv("REDIS_DB", "0")),
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        client.ping()
        logger.info("✅ Redis connected for rate limiting")
        redis_client = client

    return redis_client


def _optional_redis() -> Optional[redis.Redis]:
    """Redis client, or None while the server is unreachable"""
    global _redis_unavailable_until
    now = time.time()
    if redis_client is None and now < _redis_unavailable_until:
        return None
    try:
        return get_redis_client()
    except Exception as e:
        _redis_unavailable_until = now + REDIS_RETRY_INTERVAL
        logger.warning(f"⚠️ Redis unavailable, rate limiting in memory only: {e}")
        return None


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [k for k, v in memory_cache.items() if current_time >= v["reset_time"]]
        for k in expired_keys:
            del memory_cache[k]
        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis]
) -> tuple[bool, int, int]:
    """
    Check and count one request against a fixed window.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_time = int(time.time())
    cleanup_expired_cache()

    with cache_lock:
        if key not in memory_cache:
            entry = {
                "count": 0,
                "reset_time": current_time + window_seconds,
                "last_redis_sync": current_time,
            }
            if client is not None:
                try:
                    redis_count = client.get(key)
                    redis_ttl = client.ttl(key)
                    if redis_count and redis_ttl > 0:
                        entry["count"] = int(redis_count)
                        entry["reset_time"] = current_time + redis_ttl
                except redis.RedisError as e:
                    logger.warning(f"⚠️ Failed to load from Redis, using memory only: {e}")
            memory_cache[key] = entry

        entry = memory_cache[key]

        if current_time >= entry["reset_time"]:
            entry["count"] = 0
            entry["reset_time"] = current_time + window_seconds
            entry["last_redis_sync"] = 0

        is_allowed = entry["count"] < limit
        if is_allowed:
            entry["count"] += 1

        if client is not None and current_time - entry["last_redis_sync"] >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                client.set(key, entry["count"], ex=window_seconds)
                entry["last_redis_sync"] = current_time
                logger.debug(f"📡 Synced {key} to Redis: {entry['count']}/{limit}")
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to sync to Redis: {e}")

        ttl = entry["reset_time"] - current_time
        return is_allowed, entry["count"], max(0, ttl)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    message: Optional[str] = None,
):
    """FastAPI dependency body for per-IP rate limiting"""
    if not RATE_LIMIT_ENABLED:
        return

    key = f"{key_prefix}:{client_ip(request)}"
    is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, _optional_redis())

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
        raise HTTPException(
            status_code=429,
            detail=message or "Too many requests, please try again later.",
            headers={"Retry-After": str(ttl)},
        )

    request.state.rate_limit_remaining = limit - current_count


def create_rate_limiter(
    limit: int, window_seconds: int, key_prefix: str = "rate_limit", message: Optional[str] = None
):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        @router.post("/login", dependencies=[Depends(login_limiter)])
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix, message)

    return rate_limiter


global_limiter = create_rate_limiter(
    RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_MS // 1000, key_prefix="api"
)
login_limiter = create_rate_limiter(
    5, 15 * 60, key_prefix="login", message="Too many login attempts, please try again later."
)
password_reset_limiter = create_rate_limiter(
    3,
    60 * 60,
    key_prefix="password_reset",
    message="Too many password reset requests, please try again later.",
)
