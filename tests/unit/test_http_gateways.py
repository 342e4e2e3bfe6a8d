"""Unit tests for the Stripe and PayPal adapters over httpx.MockTransport"""

import json
from decimal import Decimal
from urllib.parse import parse_qs

import httpx
import pytest

from wallet_master.domain.exceptions import GatewayError, GatewayUnavailable
from wallet_master.infrastructure.gateways import paypal as paypal_module
from wallet_master.infrastructure.gateways.paypal import PayPalGateway
from wallet_master.infrastructure.gateways.stripe import StripeGateway


def form(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


# Stripe


def stripe_with(handler) -> StripeGateway:
    return StripeGateway(
        secret_key="sk_test_123",
        base_url="https://stripe.test",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


async def test_stripe_create_payment_sends_cents_and_metadata():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["form"] = form(request)
        return httpx.Response(
            200,
            json={"id": "pi_1", "amount": 1250, "currency": "usd", "status": "requires_payment_method", "client_secret": "pi_1_secret"},
        )

    intent = await stripe_with(handler).create_payment(Decimal("12.50"), "USD", {"userId": "7", "operation": "add_funds"})

    assert seen["auth"] == "Bearer sk_test_123"
    assert seen["form"] == {"amount": "1250", "currency": "usd", "metadata[userId]": "7", "metadata[operation]": "add_funds"}
    assert intent.id == "pi_1"
    assert intent.amount == Decimal("12.50")
    assert intent.client_secret == "pi_1_secret"
    assert intent.status == "pending"


async def test_stripe_create_payment_error_raises_gateway_error():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "Invalid currency"}})

    with pytest.raises(GatewayError, match="Invalid currency"):
        await stripe_with(handler).create_payment(Decimal("1.00"), "xxx", {})


async def test_stripe_process_confirms_then_retrieves():
    paths = []

    def handler(request):
        paths.append((request.method, request.url.path))
        if request.url.path.endswith("/confirm"):
            assert form(request) == {"payment_method": "pm_card_visa"}
            return httpx.Response(200, json={"id": "pi_1", "status": "succeeded"})
        return httpx.Response(200, json={"id": "pi_1", "status": "succeeded"})

    result = await stripe_with(handler).process_payment("pi_1", "pm_card_visa")

    assert result.success is True
    assert paths == [("POST", "/v1/payment_intents/pi_1/confirm"), ("GET", "/v1/payment_intents/pi_1")]


async def test_stripe_card_error_is_a_decline():
    def handler(request):
        return httpx.Response(402, json={"error": {"message": "Your card was declined."}})

    result = await stripe_with(handler).process_payment("pi_1", "pm_card_chargeDeclined")

    assert result.success is False
    assert result.error == "Your card was declined."


async def test_stripe_incomplete_intent_is_not_success():
    def handler(request):
        return httpx.Response(200, json={"id": "pi_1", "status": "requires_action"})

    result = await stripe_with(handler).process_payment("pi_1")

    assert result.success is False
    assert result.error == "Payment not completed (status: requires_action)"
    assert result.status == "pending"


async def test_stripe_refund_partial_amount():
    def handler(request):
        assert form(request) == {"payment_intent": "pi_1", "amount": "500"}
        return httpx.Response(200, json={"id": "re_1", "status": "succeeded"})

    result = await stripe_with(handler).refund_payment("pi_1", Decimal("5.00"))

    assert result.success is True
    assert result.refund_id == "re_1"


async def test_stripe_transport_failure_raises_gateway_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(GatewayError):
        await stripe_with(handler).process_payment("pi_1")


async def test_stripe_without_key_is_unavailable():
    gateway = stripe_with(lambda request: httpx.Response(200))
    gateway.secret_key = None

    with pytest.raises(GatewayUnavailable):
        await gateway.create_payment(Decimal("1.00"), "usd", {})


async def test_stripe_declined_confirmation_is_failed():
    def handler(request):
        return httpx.Response(
            200,
            json={"id": "pi_1", "status": "requires_payment_method", "last_payment_error": {"message": "Insufficient funds."}},
        )

    result = await stripe_with(handler).process_payment("pi_1")

    assert result.success is False
    assert result.status == "failed"
    assert result.error == "Insufficient funds."


# PayPal


class PayPalSandbox:
    """Minimal fake of the token, orders and refund endpoints"""

    def __init__(self, order_status: str = "COMPLETED"):
        self.order_status = order_status
        self.token_requests = 0
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/v1/oauth2/token":
            self.token_requests += 1
            assert request.headers["Authorization"].startswith("Basic ")
            return httpx.Response(200, json={"access_token": "A21", "expires_in": 3600})

        assert request.headers["Authorization"] == "Bearer A21"
        self.requests.append((path, json.loads(request.content or b"null")))
        if request.method == "GET" and path.startswith("/v2/checkout/orders/"):
            if path.endswith("/ORDER-1"):
                return httpx.Response(
                    200,
                    json={"id": "ORDER-1", "status": "COMPLETED", "purchase_units": [{"payments": {"captures": [{"id": "CAPTURE-1"}]}}]},
                )
            return httpx.Response(404, json={"message": "Order not found"})
        if path == "/v2/checkout/orders":
            return httpx.Response(
                201,
                json={
                    "id": "ORDER-1",
                    "status": "CREATED",
                    "links": [{"rel": "self", "href": "https://paypal.test/self"}, {"rel": "approve", "href": "https://paypal.test/approve"}],
                },
            )
        if path.endswith("/capture"):
            return httpx.Response(
                201,
                json={
                    "status": self.order_status,
                    "purchase_units": [{"payments": {"captures": [{"id": "CAPTURE-1"}]}}],
                },
            )
        if path == "/v2/payments/captures/CAPTURE-1/refund":
            return httpx.Response(201, json={"id": "REFUND-1", "status": "COMPLETED"})
        return httpx.Response(404, json={"message": "Not found"})


def paypal_with(sandbox: PayPalSandbox) -> PayPalGateway:
    return PayPalGateway(
        client_id="client",
        client_secret="secret",
        base_url="https://paypal.test",
        timeout=1.0,
        transport=httpx.MockTransport(sandbox),
    )


async def test_paypal_order_capture_and_refund():
    sandbox = PayPalSandbox()
    gateway = paypal_with(sandbox)

    intent = await gateway.create_payment(Decimal("19.50"), "usd", {"userId": "3"})
    result = await gateway.process_payment(intent.id)
    refund = await gateway.refund_payment(intent.id, Decimal("4.00"))

    assert intent.id == "ORDER-1"
    assert intent.redirect_url == "https://paypal.test/approve"
    assert intent.status == "pending"
    order = sandbox.requests[0][1]
    assert order["intent"] == "CAPTURE"
    assert order["purchase_units"][0]["amount"] == {"currency_code": "USD", "value": "19.50"}
    assert order["purchase_units"][0]["custom_id"] == "3"
    assert result.success is True
    assert result.transaction_id == "CAPTURE-1"
    assert result.status == "succeeded"
    assert refund.success is True
    assert sandbox.requests[-1] == ("/v2/payments/captures/CAPTURE-1/refund", {"amount": {"value": "4.00", "currency_code": "USD"}})
    # Token fetched once and reused while valid
    assert sandbox.token_requests == 1


async def test_paypal_uncompleted_capture_is_not_success():
    gateway = paypal_with(PayPalSandbox(order_status="PENDING"))

    result = await gateway.process_payment("ORDER-1")

    assert result.success is False
    assert result.status == "pending"
    assert "PENDING" in result.error


async def test_paypal_without_credentials_is_unavailable():
    gateway = paypal_with(PayPalSandbox())
    gateway.client_secret = None

    with pytest.raises(GatewayUnavailable):
        await gateway.create_payment(Decimal("1.00"), "usd", {})


async def test_paypal_refund_looks_up_capture_of_unknown_order():
    sandbox = PayPalSandbox()
    gateway = paypal_with(sandbox)

    refund = await gateway.refund_payment("ORDER-1")

    assert refund.success is True
    assert [path for path, _ in sandbox.requests] == ["/v2/checkout/orders/ORDER-1", "/v2/payments/captures/CAPTURE-1/refund"]


async def test_paypal_refund_of_order_without_capture_fails():
    sandbox = PayPalSandbox()

    refund = await paypal_with(sandbox).refund_payment("ORDER-404")

    assert refund.success is False
    assert not any(path.endswith("/refund") for path, _ in sandbox.requests)


async def test_paypal_full_refund_forgets_capture():
    gateway = paypal_with(PayPalSandbox())
    await gateway.process_payment("ORDER-1")

    partial = await gateway.refund_payment("ORDER-1", Decimal("1.00"))
    assert gateway._captures == {"ORDER-1": "CAPTURE-1"}

    full = await gateway.refund_payment("ORDER-1")

    assert partial.success is True
    assert full.success is True
    assert gateway._captures == {}


async def test_paypal_capture_cache_is_bounded(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(paypal_module, "MAX_CACHED_CAPTURES", 2)
    gateway = paypal_with(PayPalSandbox())

    for order_id in ("ORDER-A", "ORDER-B", "ORDER-C"):
        await gateway.process_payment(order_id)

    assert list(gateway._captures) == ["ORDER-B", "ORDER-C"]
