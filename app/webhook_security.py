"""
Webhook Security Module

Signature verification for Stripe webhooks:
- Constant-time signature comparison
- Timestamp validation against replays
- Raw body is verified before any JSON parsing
"""

import hashlib
import hmac
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)

# Maximum age of webhook in seconds (5 minutes)
MAX_WEBHOOK_AGE_SECONDS = 300


class WebhookSignatureError(Exception):
    """Raised when webhook signature verification fails"""

    pass


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks"""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def parse_stripe_signature_header(header: str) -> tuple[Optional[str], list[str]]:
    """Split "t=123,v1=abc,v1=def" into the timestamp and every v1 signature"""
    timestamp = None
    signatures = []
    for item in header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)
    return timestamp, signatures


def build_stripe_signature_header(payload: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """Produce a Stripe-Signature header value for a payload"""
    timestamp = timestamp if timestamp is not None else int(time.time())
    signed = f"{timestamp}.".encode() + payload
    return f"t={timestamp},v1={compute_hmac_sha256(secret, signed)}"


def verify_stripe_signature(
    payload: bytes,
    header: Optional[str],
    secret: Optional[str],
    tolerance: int = MAX_WEBHOOK_AGE_SECONDS,
) -> None:
    """
    Verify a Stripe webhook.

    The signed message is "{timestamp}.{raw body}" with HMAC-SHA256 keyed by
    the endpoint secret; any matching v1 signature is accepted.

    Raises:
        WebhookSignatureError: when the header is missing, malformed, stale or wrong
    """
    if not header:
        raise WebhookSignatureError("No signature provided")
    if not secret:
        logger.error("❌ STRIPE_WEBHOOK_SECRET not configured")
        raise WebhookSignatureError("Webhook secret not configured")

    timestamp, signatures = parse_stripe_signature_header(header)
    if not timestamp or not signatures:
        logger.warning("🚫 Malformed Stripe-Signature header")
        raise WebhookSignatureError("Invalid signature")

    try:
        age = abs(int(time.time()) - int(timestamp))
    except ValueError as e:
        raise WebhookSignatureError("Invalid signature") from e
    if age > tolerance:
        logger.warning(f"🚫 Webhook timestamp too old: {age}s (max: {tolerance}s)")
        raise WebhookSignatureError("Invalid signature")

    expected = compute_hmac_sha256(secret, f"{timestamp}.".encode() + payload)
    if not any(constant_time_compare(expected, candidate) for candidate in signatures):
        logger.warning("🚫 Stripe webhook signature mismatch")
        raise WebhookSignatureError("Invalid signature")

    logger.info("✅ Stripe webhook signature verified")
