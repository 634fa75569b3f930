"""
Cashfree Payment Gateway Service
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional
import base64
import hashlib
import hmac
import logging

import httpx

from hostel.config import settings
from hostel.models.payment import PaymentStatus

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """The gateway could not be reached or rejected the request"""


@dataclass(frozen=True)
class GatewayResult:
    """Payment outcome as reported by the gateway"""
    status: PaymentStatus
    gateway_payment_id: Optional[str] = None
    failure_reason: Optional[str] = None


# Gateway payment states; anything else is still in flight
_PAYMENT_STATUS_MAP = {
    "SUCCESS": PaymentStatus.SUCCESS,
    "FAILED": PaymentStatus.FAILED,
    "USER_DROPPED": PaymentStatus.CANCELLED,
    "CANCELLED": PaymentStatus.CANCELLED,
}


def map_gateway_result(order: Dict[str, Any], payments: List[Dict[str, Any]]) -> GatewayResult:
    """
    Reduce an order and its payment attempts to a single payment status

    Args:
        order: Order object from the gateway
        payments: Payment attempts for the order, any order

    Returns:
        GatewayResult
    """
    order_status = (order.get("order_status") or "").upper()
    attempts = sorted(payments, key=lambda p: p.get("payment_time") or "")
    successful = next((p for p in attempts if p.get("payment_status") == "SUCCESS"), None)

    if order_status == "PAID" or successful is not None:
        cf_payment_id = successful.get("cf_payment_id") if successful else None
        return GatewayResult(PaymentStatus.SUCCESS, gateway_payment_id=str(cf_payment_id) if cf_payment_id else None)

    if order_status == "EXPIRED":
        return GatewayResult(PaymentStatus.FAILED, failure_reason="Payment session expired")
    if order_status == "TERMINATED":
        return GatewayResult(PaymentStatus.CANCELLED, failure_reason="Payment order was terminated")

    if attempts:
        latest = attempts[-1]
        status = _PAYMENT_STATUS_MAP.get((latest.get("payment_status") or "").upper())
        if status is not None:
            cf_payment_id = latest.get("cf_payment_id")
            return GatewayResult(
                status,
                gateway_payment_id=str(cf_payment_id) if cf_payment_id else None,
                failure_reason=latest.get("payment_message") or None,
            )

    return GatewayResult(PaymentStatus.PENDING)


class CashfreeService:
    """Service for interacting with the Cashfree PG API"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = "https://sandbox.cashfree.com/pg" if settings.CASHFREE_ENVIRONMENT == "sandbox" else "https://api.cashfree.com/pg"
        self.api_version = settings.CASHFREE_API_VERSION
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "x-client-id": settings.CASHFREE_APP_ID,
            "x-client-secret": settings.CASHFREE_SECRET_KEY,
            "x-api-version": self.api_version,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=15.0) as client:
                response = await client.request(method, f"{self.base_url}{path}", headers=self._headers(), **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Cashfree %s %s failed: %s %s", method, path, e.response.status_code, e.response.text)
            raise GatewayError(f"Gateway returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Cashfree %s %s failed: %s", method, path, e)
            raise GatewayError("Gateway unreachable") from e

    async def create_order(
        self,
        order_id: str,
        amount: Decimal,
        customer_id: str,
        customer_name: str,
        customer_phone: Optional[str],
        currency: str = "INR",
    ) -> Dict[str, Any]:
        """
        Create a payment order

        Args:
            order_id: Merchant order id, unique per attempt
            amount: Order amount in rupees
            customer_id: Stable customer reference
            customer_name: Display name
            customer_phone: Phone number (the gateway requires one)
            currency: ISO currency code

        Returns:
            Order object with order_id and payment_session_id
        """
        return await self._request(
            "POST",
            "/orders",
            json={
                "order_id": order_id,
                "order_amount": float(amount),
                "order_currency": currency,
                "customer_details": {
                    "customer_id": customer_id,
                    "customer_name": customer_name,
                    "customer_phone": customer_phone or "9999999999",
                },
                "order_meta": {
                    "return_url": settings.PAYMENT_RETURN_URL.format(order_id=order_id),
                },
            },
        )

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        """Get an order by merchant order id"""
        return await self._request("GET", f"/orders/{order_id}")

    async def get_order_payments(self, order_id: str) -> List[Dict[str, Any]]:
        """List payment attempts for an order"""
        data = await self._request("GET", f"/orders/{order_id}/payments")
        return data if isinstance(data, list) else []

    async def terminate_order(self, order_id: str) -> Dict[str, Any]:
        """Terminate an active order so it can no longer be paid"""
        return await self._request("PATCH", f"/orders/{order_id}", json={"order_status": "TERMINATED"})

    async def fetch_result(self, order_id: str) -> GatewayResult:
        """Current payment outcome for an order"""
        order = await self.get_order(order_id)
        payments = await self.get_order_payments(order_id)
        return map_gateway_result(order, payments)

    @staticmethod
    def verify_webhook_signature(raw_body: bytes, timestamp: str, signature: str) -> bool:
        """
        Verify a webhook signature: base64(HMAC-SHA256(secret, timestamp + body))
        """
        if not settings.CASHFREE_SECRET_KEY:
            logger.warning("CASHFREE_SECRET_KEY is not set; rejecting webhook")
            return False
        if not timestamp or not signature:
            return False
        message = timestamp.encode() + raw_body
        digest = hmac.new(settings.CASHFREE_SECRET_KEY.encode(), message, hashlib.sha256).digest()
        expected = base64.b64encode(digest).decode()
        return hmac.compare_digest(expected, signature)


# Singleton instance
cashfree_service = CashfreeService()


def get_payment_gateway() -> CashfreeService:
    """Dependency returning the payment gateway"""
    return cashfree_service
