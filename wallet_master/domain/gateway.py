"""Payment Gateway contract shared by every processor adapter"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional

# Intent lifecycle: pending until confirmed, then one terminal state
PENDING = "pending"
SUCCEEDED = "succeeded"
FAILED = "failed"


@dataclass(frozen=True)
class PaymentIntent:
    """One attempt to move money through the processor"""

    id: str
    amount: Decimal
    currency: str
    status: str  # PENDING, SUCCEEDED or FAILED
    metadata: Dict[str, str] = field(default_factory=dict)
    client_secret: Optional[str] = None
    redirect_url: Optional[str] = None


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of confirming an intent; a decline is success=False, never an exception"""

    success: bool
    status: str
    transaction_id: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class RefundResult:
    """Outcome of a full or partial refund"""

    success: bool
    refund_id: Optional[str] = None
    error: Optional[str] = None


class PaymentGateway(ABC):
    """
    Uniform view of a payment processor.

    Adapters raise GatewayUnavailable when their credentials are missing and
    GatewayError on transport faults; business declines are reported through
    the result objects.
    """

    id: str
    name: str

    @abstractmethod
    async def create_payment(self, amount: Decimal, currency: str, metadata: Dict[str, str]) -> PaymentIntent:
        """Register a pending intent for `amount` major currency units"""

    @abstractmethod
    async def process_payment(self, payment_id: str, payment_method_id: Optional[str] = None) -> PaymentResult:
        """Confirm the intent, attaching `payment_method_id` first when given"""

    @abstractmethod
    async def refund_payment(self, payment_id: str, amount: Optional[Decimal] = None) -> RefundResult:
        """Refund `amount`, or everything when omitted"""
