"""Stripe service - Payment intents and refunds over the Stripe REST API"""

import logging
from typing import Optional

import httpx

from ...config import STRIPE_API_BASE, STRIPE_SECRET_KEY

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised when Stripe rejects a call or cannot be reached"""

    pass


def to_minor_units(amount: float) -> int:
    """AED and most currencies use 2 decimal places (fils/cents)"""
    return int(round(amount * 100))


class StripePaymentsService:
    """Service for Stripe API operations"""

    def __init__(self, api_key: Optional[str] = None, base_url: str = STRIPE_API_BASE):
        self.api_key = api_key or STRIPE_SECRET_KEY
        self.base_url = base_url.rstrip("/")

        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; payment endpoints will fail until configured")

    def is_available(self) -> bool:
        """Check if Stripe credentials are configured"""
        return bool(self.api_key)

    async def _request(self, method: str, path: str, data: Optional[dict] = None) -> dict:
        if not self.api_key:
            raise PaymentGatewayError("Stripe client not configured")

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    data=data,
                    auth=(self.api_key, ""),
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Stripe request failed: {e}")
            raise PaymentGatewayError(str(e)) from e

        body = response.json()
        if response.status_code >= 400:
            message = body.get("error", {}).get("message", f"HTTP {response.status_code}")
            logger.error(f"❌ Stripe {method} {path} failed: {message}")
            raise PaymentGatewayError(message)
        return body

    async def create_payment_intent(
        self, amount: float, currency: str, metadata: Optional[dict] = None
    ) -> dict:
        """Create a payment intent; returns {clientSecret, paymentIntentId}"""
        data = {
            "amount": to_minor_units(amount),
            "currency": currency.lower(),
            "automatic_payment_methods[enabled]": "true",
        }
        for key, value in (metadata or {}).items():
            data[f"metadata[{key}]"] = str(value)

        intent = await self._request("POST", "/payment_intents", data)
        logger.info(f"💳 Payment intent {intent['id']} created for {amount} {currency}")
        return {"clientSecret": intent.get("client_secret", ""), "paymentIntentId": intent["id"]}

    async def retrieve_payment_intent(self, payment_intent_id: str) -> dict:
        """Fetch a payment intent; the 'status' field is 'succeeded' once paid"""
        return await self._request("GET", f"/payment_intents/{payment_intent_id}")

    async def create_refund(self, payment_intent_id: str, metadata: Optional[dict] = None) -> dict:
        """Refund a payment intent in full"""
        data = {"payment_intent": payment_intent_id, "reason": "requested_by_customer"}
        for key, value in (metadata or {}).items():
            data[f"metadata[{key}]"] = str(value)
        return await self._request("POST", "/refunds", data)


_payment_gateway: Optional[StripePaymentsService] = None


def get_payment_gateway() -> StripePaymentsService:
    """Dependency returning the shared Stripe service"""
    global _payment_gateway
    if _payment_gateway is None:
        _payment_gateway = StripePaymentsService()
    return _payment_gateway
