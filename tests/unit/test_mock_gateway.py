"""Unit tests for the in-memory gateway"""

from decimal import Decimal

from wallet_master.infrastructure.gateways.mock import MockGateway


async def test_create_and_process_succeeds():
    gateway = MockGateway()

    intent = await gateway.create_payment(Decimal("25.00"), "usd", {"userId": "1"})
    result = await gateway.process_payment(intent.id, "pm_card_visa")

    assert intent.id.startswith("mock_payment_")
    assert intent.client_secret.startswith(f"{intent.id}_secret_")
    assert intent.status == "pending"
    assert result.success is True
    assert result.status == "succeeded"
    assert gateway.get_payment(intent.id).payment_method_id == "pm_card_visa"


async def test_point_99_amounts_are_declined():
    gateway = MockGateway()
    intent = await gateway.create_payment(Decimal("10.99"), "usd", {})

    result = await gateway.process_payment(intent.id)

    assert result.success is False
    assert result.error == "Mock payment failure"
    assert gateway.get_payment(intent.id).status == "failed"


async def test_terminal_payments_are_not_reprocessed():
    gateway = MockGateway()
    declined = await gateway.create_payment(Decimal("1.99"), "usd", {})
    await gateway.process_payment(declined.id)

    again = await gateway.process_payment(declined.id)

    assert again.success is False
    assert again.status == "failed"


async def test_unknown_payment_is_a_failure_not_an_exception():
    result = await MockGateway().process_payment("mock_payment_missing")

    assert result.success is False
    assert result.error == "Payment not found"


async def test_refunds():
    gateway = MockGateway()
    intent = await gateway.create_payment(Decimal("30.00"), "usd", {})
    await gateway.process_payment(intent.id)

    partial = await gateway.refund_payment(intent.id, Decimal("10.00"))
    too_much = await gateway.refund_payment(intent.id, Decimal("25.00"))
    rest = await gateway.refund_payment(intent.id)

    assert partial.success is True
    assert partial.refund_id.startswith("mock_refund_")
    assert gateway.get_refund(partial.refund_id).amount == Decimal("10.00")
    assert too_much.success is False
    assert rest.success is True
    assert gateway.get_refund(rest.refund_id).amount == Decimal("20.00")


async def test_refund_requires_succeeded_payment():
    gateway = MockGateway()
    pending = await gateway.create_payment(Decimal("5.00"), "usd", {})

    result = await gateway.refund_payment(pending.id)

    assert result.success is False


async def test_reset_forgets_everything():
    gateway = MockGateway()
    intent = await gateway.create_payment(Decimal("5.00"), "usd", {})

    gateway.reset()

    assert gateway.get_payment(intent.id) is None
