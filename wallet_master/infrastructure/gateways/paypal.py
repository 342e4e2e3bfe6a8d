"""PayPal Orders v2 adapter with client-credentials token exchange"""

import logging
import time
from collections import OrderedDict
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from wallet_master.config import settings
from wallet_master.domain.exceptions import GatewayError, GatewayUnavailable
from wallet_master.domain.gateway import FAILED, PENDING, SUCCEEDED, PaymentGateway, PaymentIntent, PaymentResult, RefundResult
from wallet_master.infrastructure.observability.metrics import gateway_latency_histogram

logger = logging.getLogger(__name__)

# Order and capture statuses onto the intent lifecycle; anything unlisted is terminal
PAYPAL_STATUSES = {
    "CREATED": PENDING,
    "SAVED": PENDING,
    "APPROVED": PENDING,
    "PAYER_ACTION_REQUIRED": PENDING,
    "PENDING": PENDING,
    "COMPLETED": SUCCEEDED,
    "VOIDED": FAILED,
    "DECLINED": FAILED,
}

MAX_CACHED_CAPTURES = 1024


class PayPalGateway(PaymentGateway):
    """
    Redirect-based processor: create_payment returns an approval URL the
    payer must visit before process_payment can capture the order.
    """

    id = "paypal"
    name = "PayPal"

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id or settings.paypal_client_id
        self.client_secret = client_secret or settings.paypal_client_secret
        self.base_url = base_url or settings.paypal_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

        self._access_token: Optional[str] = None
        self._token_expiry = 0.0
        # order id -> capture id, most recent last; misses are looked up on the order
        self._captures: "OrderedDict[str, str]" = OrderedDict()

        if not self.client_id or not self.client_secret:
            logger.warning("PayPal credentials not configured. PayPal gateway will be unavailable.")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        """Return the cached token while it is valid, otherwise exchange credentials for a new one"""
        if self._access_token and time.monotonic() < self._token_expiry:
            return self._access_token

        response = await client.post(
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
        )
        if response.is_error:
            raise GatewayError(f"PayPal API error: {response.status_code} {response.reason_phrase}")

        data = response.json()
        self._access_token = data["access_token"]
        self._token_expiry = time.monotonic() + int(data.get("expires_in", 0))
        return self._access_token

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        """
        Send an authenticated JSON request.

        Raises:
            GatewayUnavailable: credentials missing
            GatewayError: token exchange failure, timeout or network failure
        """
        if not self.client_id or not self.client_secret:
            raise GatewayUnavailable("PayPal API credentials are not configured")

        async with self._client() as client:
            try:
                token = await self._get_access_token(client)
                return await client.request(
                    method,
                    path,
                    json=json,
                    headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
                )
            except httpx.TimeoutException as e:
                raise GatewayError(f"PayPal API timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                raise GatewayError(f"PayPal API request failed: {e.__class__.__name__}") from e

    @staticmethod
    def _error_message(response: httpx.Response, fallback: str) -> str:
        try:
            return response.json().get("message") or fallback
        except (ValueError, AttributeError):
            return fallback

    async def create_payment(self, amount: Decimal, currency: str = "USD", metadata: Optional[Dict[str, str]] = None) -> PaymentIntent:
        metadata = metadata or {}
        purchase_unit: Dict[str, Any] = {
            "amount": {"currency_code": currency.upper(), "value": f"{amount:.2f}"},
            "description": metadata.get("description", "Payment"),
        }
        if metadata.get("userId"):
            purchase_unit["custom_id"] = metadata["userId"]

        order = {
            "intent": "CAPTURE",
            "purchase_units": [purchase_unit],
            "application_context": {
                "return_url": metadata.get("returnUrl", settings.paypal_return_url),
                "cancel_url": metadata.get("cancelUrl", settings.paypal_cancel_url),
            },
        }

        with gateway_latency_histogram.labels(gateway=self.id, step="create").time():
            response = await self._request("POST", "/v2/checkout/orders", order)

        if response.is_error:
            raise GatewayError(f"PayPal API error: {self._error_message(response, response.reason_phrase)}")

        try:
            data = response.json()
            approval_url = next(
                (link["href"] for link in data.get("links", []) if link.get("rel") == "approve"),
                None,
            )
            return PaymentIntent(
                id=data["id"],
                amount=amount,
                currency=currency.upper(),
                status=PAYPAL_STATUSES.get(data["status"], FAILED),
                metadata=dict(metadata),
                redirect_url=approval_url,
            )
        except (KeyError, ValueError, TypeError) as e:
            raise GatewayError(f"Invalid order from PayPal: {e}") from e

    @staticmethod
    def _first_capture(order: Dict[str, Any]) -> Optional[str]:
        try:
            return order["purchase_units"][0]["payments"]["captures"][0]["id"]
        except (KeyError, IndexError, TypeError):
            return None

    def _remember_capture(self, order_id: str, capture_id: str) -> None:
        self._captures[order_id] = capture_id
        self._captures.move_to_end(order_id)
        while len(self._captures) > MAX_CACHED_CAPTURES:
            self._captures.popitem(last=False)

    async def _capture_id(self, order_id: str) -> Optional[str]:
        """Capture of a completed order, from the cache or from the order itself"""
        capture_id = self._captures.get(order_id)
        if capture_id:
            return capture_id

        response = await self._request("GET", f"/v2/checkout/orders/{order_id}")
        if response.is_error:
            return None
        capture_id = self._first_capture(response.json())
        if capture_id:
            self._remember_capture(order_id, capture_id)
        return capture_id

    async def process_payment(self, payment_id: str, payment_method_id: Optional[str] = None) -> PaymentResult:
        with gateway_latency_histogram.labels(gateway=self.id, step="process").time():
            response = await self._request("POST", f"/v2/checkout/orders/{payment_id}/capture")

        if response.is_error:
            return PaymentResult(
                success=False,
                status=FAILED,
                error=self._error_message(response, "Failed to capture payment"),
            )

        data = response.json()
        raw_status = data.get("status", "DECLINED")
        capture_id = self._first_capture(data)
        if capture_id:
            self._remember_capture(payment_id, capture_id)

        if raw_status == "COMPLETED":
            return PaymentResult(success=True, status=SUCCEEDED, transaction_id=capture_id)
        return PaymentResult(
            success=False,
            status=PAYPAL_STATUSES.get(raw_status, FAILED),
            transaction_id=capture_id,
            error=f"Order not completed (status: {raw_status})",
        )

    async def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> RefundResult:
        body: Dict[str, Any] = {}
        if amount is not None:
            body["amount"] = {"value": f"{amount:.2f}", "currency_code": "USD"}

        with gateway_latency_histogram.labels(gateway=self.id, step="refund").time():
            capture_id = await self._capture_id(payment_id)
            if capture_id is None:
                return RefundResult(success=False, error="Order has no completed capture to refund")
            response = await self._request("POST", f"/v2/payments/captures/{capture_id}/refund", body)

        if response.is_error:
            return RefundResult(success=False, error=self._error_message(response, "Failed to refund payment"))

        data = response.json()
        succeeded = data.get("status") == "COMPLETED"
        if succeeded and amount is None:
            self._captures.pop(payment_id, None)
        return RefundResult(
            success=succeeded,
            refund_id=data.get("id"),
            error=None if succeeded else f"Refund status: {data.get('status')}",
        )
