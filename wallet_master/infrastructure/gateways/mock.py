"""
In-memory payment gateway for tests and local development.

Deterministic behaviour:
- any amount whose fractional part is exactly .99 is declined on processing
- unknown payment ids are reported as failures, not raised
- only succeeded payments can be refunded, and never beyond what was charged
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from wallet_master.domain.gateway import FAILED, PENDING, SUCCEEDED, PaymentGateway, PaymentIntent, PaymentResult, RefundResult
from wallet_master.domain.money import has_fraction
from wallet_master.utils.date_utils import utc_now

DECLINE_FRACTION = ".99"


@dataclass
class MockPayment:
    id: str
    amount: Decimal
    currency: str
    status: str
    metadata: Dict[str, str]
    payment_method_id: Optional[str] = None
    refunded: Decimal = Decimal("0")
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class MockRefund:
    id: str
    payment_id: str
    amount: Decimal
    status: str
    created_at: datetime = field(default_factory=utc_now)


class MockGateway(PaymentGateway):
    """Simulated processor that never leaves the process"""

    id = "mock"
    name = "Test Gateway"

    def __init__(self):
        self.payments: Dict[str, MockPayment] = {}
        self.refunds: Dict[str, MockRefund] = {}

    async def create_payment(self, amount: Decimal, currency: str = "usd", metadata: Optional[Dict[str, str]] = None) -> PaymentIntent:
        payment_id = f"mock_payment_{uuid.uuid4()}"
        payment = MockPayment(
            id=payment_id,
            amount=amount,
            currency=currency,
            status=PENDING,
            metadata=dict(metadata or {}),
        )
        self.payments[payment_id] = payment

        return PaymentIntent(
            id=payment_id,
            amount=amount,
            currency=currency,
            status=payment.status,
            metadata=dict(payment.metadata),
            client_secret=f"{payment_id}_secret_{uuid.uuid4()}",
        )

    async def process_payment(self, payment_id: str, payment_method_id: Optional[str] = None) -> PaymentResult:
        payment = self.payments.get(payment_id)
        if payment is None:
            return PaymentResult(success=False, status=FAILED, error="Payment not found")

        # Terminal states are never re-processed
        if payment.status != PENDING:
            return PaymentResult(
                success=payment.status == SUCCEEDED,
                status=payment.status,
                transaction_id=payment_id,
                error=None if payment.status == SUCCEEDED else "Payment already failed",
            )

        payment.payment_method_id = payment_method_id

        if has_fraction(payment.amount, DECLINE_FRACTION):
            payment.status = FAILED
            return PaymentResult(
                success=False,
                status=FAILED,
                transaction_id=payment_id,
                error="Mock payment failure",
            )

        payment.status = SUCCEEDED
        return PaymentResult(success=True, status=SUCCEEDED, transaction_id=payment_id)

    async def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> RefundResult:
        payment = self.payments.get(payment_id)
        if payment is None:
            return RefundResult(success=False, error="Payment not found")

        if payment.status != SUCCEEDED:
            return RefundResult(success=False, error="Cannot refund a payment that has not succeeded")

        remaining = payment.amount - payment.refunded
        refund_amount = remaining if amount is None else amount
        if refund_amount <= 0 or refund_amount > remaining:
            return RefundResult(success=False, error="Refund amount exceeds the refundable balance")

        refund_id = f"mock_refund_{uuid.uuid4()}"
        self.refunds[refund_id] = MockRefund(
            id=refund_id,
            payment_id=payment_id,
            amount=refund_amount,
            status="succeeded",
        )
        payment.refunded += refund_amount

        return RefundResult(success=True, refund_id=refund_id)

    def get_payment(self, payment_id: str) -> Optional[MockPayment]:
        return self.payments.get(payment_id)

    def get_refund(self, refund_id: str) -> Optional[MockRefund]:
        return self.refunds.get(refund_id)

    def reset(self) -> None:
        """Forget every payment and refund"""
        self.payments = {}
        self.refunds = {}
