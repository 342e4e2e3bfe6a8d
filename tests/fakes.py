"""Test doubles shared by the unit and integration suites"""

from typing import Any, Dict, List, Optional, Tuple

from wallet_master.domain.advisor import FinancialAdvisor, InsightSuggestion
from wallet_master.domain.gateway import PaymentGateway, PaymentIntent, PaymentResult, RefundResult
from wallet_master.infrastructure.gateways.mock import MockGateway


class SpyGateway(PaymentGateway):
    """Delegates to a MockGateway and records every call"""

    id = "mock"
    name = "Test Gateway"

    def __init__(self, inner: Optional[PaymentGateway] = None):
        self.inner = inner or MockGateway()
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.succeeded: set = set()

    async def create_payment(self, amount, currency, metadata):
        self.calls.append(("create", (amount, currency, dict(metadata))))
        return await self.inner.create_payment(amount, currency, metadata)

    async def process_payment(self, payment_id, payment_method_id=None):
        self.calls.append(("process", (payment_id, payment_method_id)))
        result = await self.inner.process_payment(payment_id, payment_method_id)
        if result.success:
            self.succeeded.add(payment_id)
        return result

    async def refund_payment(self, payment_id, amount=None):
        self.calls.append(("refund", (payment_id, amount)))
        return await self.inner.refund_payment(payment_id, amount)

    def steps(self) -> List[str]:
        return [step for step, _ in self.calls]


class ExplodingGateway(PaymentGateway):
    """Gateway whose processor call fails with an unexpected error"""

    id = "exploding"
    name = "Exploding"

    async def create_payment(self, amount, currency, metadata) -> PaymentIntent:
        return PaymentIntent(id="boom_1", amount=amount, currency=currency, status="pending")

    async def process_payment(self, payment_id, payment_method_id=None) -> PaymentResult:
        raise RuntimeError("connection reset by peer")

    async def refund_payment(self, payment_id, amount=None) -> RefundResult:
        return RefundResult(success=False, error="not supported")


class FakeAdvisor(FinancialAdvisor):
    """Deterministic advisor that remembers the context it was given"""

    def __init__(self):
        self.contexts: List[Dict[str, Any]] = []

    async def get_advice(self, message, context):
        self.contexts.append(context)
        return f"Advice about: {message}"

    async def generate_insights(self, context):
        self.contexts.append(context)
        return [
            InsightSuggestion(text="Spend less on dining out", type="spending", icon="utensils", color="#EF4444"),
            InsightSuggestion(text="Automate your savings", type="saving", icon="piggy-bank", color="#10B981"),
        ]

    async def analyze_spending(self, context):
        self.contexts.append(context)
        return ["Cancel unused subscriptions"]


