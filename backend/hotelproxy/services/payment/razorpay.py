"""
Razorpay integration - order creation and payment signature verification.
"""
import hashlib
import hmac
import logging
import time
from typing import Any, Dict, Optional

import httpx

from hotelproxy.core.errors import PaymentGatewayError
from hotelproxy.core.metrics import track_external_api

logger = logging.getLogger("HotelProxy-Razorpay")


def to_subunits(amount: float) -> int:
    """Razorpay amounts are in the currency's smallest unit (paise for INR)."""
    return int(round(amount * 100))


def generate_signature(order_id: str, payment_id: str, secret: str) -> str:
    """HMAC-SHA256 (hex) over "order_id|payment_id" keyed with the API secret."""
    return hmac.new(
        secret.encode("utf-8"),
        f"{order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str, secret: Optional[str]) -> bool:
    if not secret or not signature:
        return False
    expected = generate_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected, signature)


class RazorpayClient:

    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        base_url: str = "https://api.razorpay.com/v1",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.http = http_client or httpx.AsyncClient(timeout=30.0)

    async def close(self):
        await self.http.aclose()

    async def create_order(
        self,
        amount: float,
        currency: str = "INR",
        receipt: Optional[str] = None,
        notes: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not self.key_id or not self.key_secret:
            raise PaymentGatewayError("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET must be set", status_code=500)

        body = {
            "amount": to_subunits(amount),
            "currency": currency,
            "receipt": receipt or f"hotel_{int(time.time() * 1000)}",
            "notes": notes or {},
        }

        with track_external_api("razorpay"):
            try:
                response = await self.http.post(
                    f"{self.base_url}/orders",
                    json=body,
                    auth=(self.key_id, self.key_secret),
                )
            except httpx.HTTPError as e:
                raise PaymentGatewayError(f"Razorpay unreachable: {e}")

            if response.status_code not in (200, 201):
                try:
                    details = response.json()
                except ValueError:
                    details = {"raw": response.text[:200]}
                message = (details.get("error") or {}).get("description") if isinstance(details, dict) else None
                logger.error(f"Razorpay order failed: {response.status_code} - {details}")
                raise PaymentGatewayError(
                    message or f"Razorpay error {response.status_code}",
                    status_code=response.status_code,
                    details=details,
                )

        order = response.json()
        logger.info(f"💳 Razorpay order created: {order.get('id')}")
        return order
