"""Stripe PaymentIntents adapter over the REST API"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from wallet_master.config import settings
from wallet_master.domain.exceptions import GatewayError, GatewayUnavailable
from wallet_master.domain.gateway import FAILED, PENDING, SUCCEEDED, PaymentGateway, PaymentIntent, PaymentResult, RefundResult
from wallet_master.domain.money import from_minor_units, to_minor_units
from wallet_master.infrastructure.observability.metrics import gateway_latency_histogram

logger = logging.getLogger(__name__)

# Stripe intent statuses onto the intent lifecycle; anything unlisted is terminal
STRIPE_STATUSES = {
    "requires_payment_method": PENDING,
    "requires_confirmation": PENDING,
    "requires_action": PENDING,
    "requires_capture": PENDING,
    "processing": PENDING,
    "succeeded": SUCCEEDED,
    "canceled": FAILED,
}


class StripeGateway(PaymentGateway):
    """Client for the Stripe PaymentIntents and Refunds endpoints"""

    id = "stripe"
    name = "Stripe"

    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        default_payment_method: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.secret_key = secret_key or settings.stripe_secret_key
        self.base_url = base_url or settings.stripe_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.default_payment_method = default_payment_method or settings.stripe_default_payment_method
        self.transport = transport

        if not self.secret_key:
            logger.warning("Stripe credentials not configured. Stripe gateway will be unavailable.")

    async def _request(self, method: str, path: str, data: Optional[Dict[str, Any]] = None) -> httpx.Response:
        """
        Send a form-encoded request with bearer auth.

        Raises:
            GatewayUnavailable: secret key missing
            GatewayError: timeout or network failure
        """
        if not self.secret_key:
            raise GatewayUnavailable("Stripe API credentials are not configured")

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={"Authorization": f"Bearer {self.secret_key}"},
        ) as client:
            try:
                return await client.request(method, path, data=data)
            except httpx.TimeoutException as e:
                raise GatewayError(f"Stripe API timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                raise GatewayError(f"Stripe API request failed: {e.__class__.__name__}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            return f"Stripe API error: {response.status_code}"

    async def create_payment(self, amount: Decimal, currency: str = "usd", metadata: Optional[Dict[str, str]] = None) -> PaymentIntent:
        form: Dict[str, Any] = {"amount": to_minor_units(amount), "currency": currency.lower()}
        for key, value in (metadata or {}).items():
            form[f"metadata[{key}]"] = value

        with gateway_latency_histogram.labels(gateway=self.id, step="create").time():
            response = await self._request("POST", "/v1/payment_intents", form)

        if response.is_error:
            raise GatewayError(self._error_message(response))

        try:
            data = response.json()
            return PaymentIntent(
                id=data["id"],
                amount=from_minor_units(data["amount"]),
                currency=data["currency"],
                status=STRIPE_STATUSES.get(data["status"], FAILED),
                metadata=data.get("metadata") or {},
                client_secret=data.get("client_secret"),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise GatewayError(f"Invalid payment intent from Stripe: {e}") from e

    async def process_payment(self, payment_id: str, payment_method_id: Optional[str] = None) -> PaymentResult:
        payment_method = payment_method_id or self.default_payment_method

        with gateway_latency_histogram.labels(gateway=self.id, step="process").time():
            if payment_method:
                confirm = await self._request(
                    "POST", f"/v1/payment_intents/{payment_id}/confirm", {"payment_method": payment_method}
                )
                if confirm.is_error:
                    return PaymentResult(
                        success=False,
                        status=FAILED,
                        transaction_id=payment_id,
                        error=self._error_message(confirm),
                    )

            response = await self._request("GET", f"/v1/payment_intents/{payment_id}")

        if response.is_error:
            return PaymentResult(success=False, status=FAILED, error=self._error_message(response))

        intent = response.json()
        raw_status = intent.get("status", "canceled")
        if raw_status == "succeeded":
            return PaymentResult(success=True, status=SUCCEEDED, transaction_id=intent.get("id", payment_id))

        # A declined confirmation drops the intent back to requires_payment_method
        last_error = (intent.get("last_payment_error") or {}).get("message")
        return PaymentResult(
            success=False,
            status=FAILED if last_error else STRIPE_STATUSES.get(raw_status, FAILED),
            transaction_id=intent.get("id", payment_id),
            error=last_error or f"Payment not completed (status: {raw_status})",
        )

    async def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> RefundResult:
        form: Dict[str, Any] = {"payment_intent": payment_id}
        if amount is not None:
            form["amount"] = to_minor_units(amount)

        with gateway_latency_histogram.labels(gateway=self.id, step="refund").time():
            response = await self._request("POST", "/v1/refunds", form)

        if response.is_error:
            return RefundResult(success=False, error=self._error_message(response))

        refund = response.json()
        succeeded = refund.get("status") == "succeeded"
        return RefundResult(
            success=succeeded,
            refund_id=refund.get("id"),
            error=None if succeeded else f"Refund status: {refund.get('status')}",
        )
