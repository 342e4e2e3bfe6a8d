"""
Payment orchestration: deposits, bill payments and peer transfers.

Every operation runs the same sequence:

    validate -> sufficiency check -> gateway create + process -> ledger update

Ordering rules:
- Validation and balance checks happen before any gateway call, so requests
  that are doomed locally never reach the processor.
- The gateway result is checked before any ledger write. A decline leaves the
  ledger untouched.
- The ledger step is synchronous (no await inside it), so once the gateway has
  confirmed, cancellation of the request cannot interrupt the bookkeeping.

Concurrency: all cards touched by an operation are locked (ascending id order)
from the balance read until the ledger write, and the write itself is a
compare-and-swap on the store, so concurrent debits cannot both spend the
same starting balance.
"""

import asyncio
import logging
import time
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set

from wallet_master.domain.exceptions import (
    CardNotFound,
    GatewayUnavailable,
    InsufficientFunds,
    InvalidRequest,
    PaymentDeclined,
    PaymentProcessingFailed,
    RecipientHasNoCard,
    RecipientNotFound,
    ReconciliationRequired,
    WalletError,
)
from wallet_master.domain.gateway import PaymentGateway, PaymentIntent
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.models import Card, Transaction, User
from wallet_master.domain.money import parse_amount
from wallet_master.infrastructure.observability.logging import log_payment
from wallet_master.infrastructure.observability.metrics import reconciliation_incident_counter, record_payment
from wallet_master.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

BILLS_CATEGORY = "Bills & Utilities"
GENERAL_CATEGORY = "Other"
DEPOSIT_MERCHANT = "Add Funds"

OPERATION_DEPOSIT = "add_funds"
OPERATION_BILL = "pay_utility"
OPERATION_TRANSFER = "transfer"


@dataclass(frozen=True)
class DepositResult:
    card: Card
    transaction: Transaction
    payment_id: str


@dataclass(frozen=True)
class BillPaymentResult:
    card: Card
    transaction: Transaction
    payment_id: str


@dataclass(frozen=True)
class TransferResult:
    sender_card: Card
    recipient_card: Card
    sender_transaction: Transaction
    recipient_transaction: Transaction
    payment_id: str


class CardLocks:
    """
    One asyncio lock per card id.

    A lock lives only while some operation holds or waits for it.
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._users: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, *card_ids: int) -> AsyncIterator[None]:
        """Acquire the locks of all given cards in ascending id order to avoid deadlocks"""
        ordered = sorted(set(card_ids))
        for card_id in ordered:
            self._users[card_id] = self._users.get(card_id, 0) + 1
        try:
            async with AsyncExitStack() as stack:
                for card_id in ordered:
                    lock = self._locks.setdefault(card_id, asyncio.Lock())
                    await stack.enter_async_context(lock)
                yield
        finally:
            for card_id in ordered:
                self._users[card_id] -= 1
                if not self._users[card_id]:
                    del self._users[card_id]
                    self._locks.pop(card_id, None)


def select_recipient_card(cards: List[Card]) -> Optional[Card]:
    """The default card, else the first card, else None"""
    return next((card for card in cards if card.is_default), cards[0] if cards else None)


class PaymentOrchestrator:
    """Coordinates the payment gateway with the ledger store"""

    def __init__(
        self,
        store: LedgerStore,
        gateway: PaymentGateway,
        currency: str = "usd",
        refund_on_ledger_failure: bool = True,
        notifier: Any = None,
    ):
        self.store = store
        self.gateway = gateway
        self.currency = currency
        self.refund_on_ledger_failure = refund_on_ledger_failure
        self.notifier = notifier
        self.locks = CardLocks()
        self._background: Set[asyncio.Task] = set()

    # Public operations

    async def create_intent(
        self,
        actor_id: int,
        amount: Any,
        currency: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> PaymentIntent:
        """Create a bare gateway intent for client-side confirmation; touches no ledger"""
        amount = parse_amount(amount)
        # Actor id is injected server-side and cannot be overridden by the caller
        payload = {**{str(k): str(v) for k, v in (metadata or {}).items()}, "userId": str(actor_id)}

        try:
            return await self.gateway.create_payment(amount, currency or self.currency, payload)
        except GatewayUnavailable:
            logger.error("Payment gateway unavailable", extra={"gateway": self.gateway.id, "user_id": actor_id})
            raise
        except Exception as e:
            logger.exception("Payment intent creation failed", extra={"gateway": self.gateway.id})
            raise PaymentProcessingFailed("Failed to create payment intent") from e

    async def deposit(
        self,
        actor_id: int,
        card_id: Any,
        amount: Any,
        payment_method_id: Optional[str],
        description: Optional[str] = None,
    ) -> DepositResult:
        """Charge the payer through the gateway and credit one of the actor's cards"""
        async with self._track(OPERATION_DEPOSIT, actor_id) as outcome:
            amount = parse_amount(amount)
            card_id = _require_id(card_id, "cardId")
            if not payment_method_id:
                raise InvalidRequest("paymentMethodId is required")
            category_id = self._category_id(GENERAL_CATEGORY)
            self._owned_card(actor_id, card_id)

            async with self.locks.hold(card_id):
                card = self._owned_card(actor_id, card_id)

                payment_id, confirmed = await self._charge(
                    amount,
                    {"userId": str(actor_id), "cardId": str(card.id), "operation": OPERATION_DEPOSIT},
                    payment_method_id,
                )
                outcome["payment_id"] = payment_id

                def record() -> DepositResult:
                    updated = self._adjust_balance(card, confirmed)
                    transaction = self.store.create_transaction(
                        user_id=actor_id,
                        card_id=card.id,
                        category_id=category_id,
                        merchant=DEPOSIT_MERCHANT,
                        amount=confirmed,
                        type="income",
                        date=utc_now(),
                        description=description or f"Funds added via {self.gateway.name}",
                        payment_ref=payment_id,
                    )
                    return DepositResult(card=updated, transaction=transaction, payment_id=payment_id)

                result = await self._record(OPERATION_DEPOSIT, payment_id, confirmed, record)
                outcome["amount"] = confirmed
                return result

    async def pay_bill(
        self,
        actor_id: int,
        card_id: Any,
        amount: Any,
        utility_name: Optional[str],
        category_id: Any = None,
        description: Optional[str] = None,
        payment_method_id: Optional[str] = None,
    ) -> BillPaymentResult:
        """Pay a third-party biller from one of the actor's cards"""
        async with self._track(OPERATION_BILL, actor_id) as outcome:
            amount = parse_amount(amount)
            card_id = _require_id(card_id, "cardId")
            utility_name = (utility_name or "").strip()
            if not utility_name:
                raise InvalidRequest("utilityName is required")
            if category_id is None:
                category_id = self._category_id(BILLS_CATEGORY)
            elif self.store.get_category(_require_id(category_id, "utilityCategory")) is None:
                raise InvalidRequest(f"Category {category_id} does not exist")
            self._owned_card(actor_id, card_id)

            async with self.locks.hold(card_id):
                card = self._owned_card(actor_id, card_id)
                _check_sufficient(card, amount)

                payment_id, confirmed = await self._charge(
                    amount,
                    {
                        "userId": str(actor_id),
                        "cardId": str(card.id),
                        "utilityName": utility_name,
                        "operation": OPERATION_BILL,
                    },
                    payment_method_id,
                )
                outcome["payment_id"] = payment_id

                def record() -> BillPaymentResult:
                    updated = self._adjust_balance(card, -confirmed)
                    transaction = self.store.create_transaction(
                        user_id=actor_id,
                        card_id=card.id,
                        category_id=int(category_id),
                        merchant=utility_name,
                        amount=confirmed,
                        type="expense",
                        date=utc_now(),
                        description=description or f"Payment to {utility_name}",
                        payment_ref=payment_id,
                    )
                    return BillPaymentResult(card=updated, transaction=transaction, payment_id=payment_id)

                result = await self._record(OPERATION_BILL, payment_id, confirmed, record)
                outcome["amount"] = confirmed
                return result

    async def transfer(
        self,
        actor_id: int,
        recipient_id: Any,
        card_id: Any,
        amount: Any,
        description: Optional[str] = None,
        payment_method_id: Optional[str] = None,
    ) -> TransferResult:
        """Move money from one of the actor's cards to the recipient's default card"""
        async with self._track(OPERATION_TRANSFER, actor_id) as outcome:
            amount = parse_amount(amount)
            card_id = _require_id(card_id, "cardId")
            recipient_id = _require_id(recipient_id, "recipientId")
            if recipient_id == actor_id:
                raise InvalidRequest("Cannot transfer funds to yourself")

            sender = self._user(actor_id)
            recipient = self.store.get_user(recipient_id)
            if recipient is None:
                raise RecipientNotFound("Recipient not found")
            category_id = self._category_id(GENERAL_CATEGORY)

            self._owned_card(actor_id, card_id)
            recipient_card = self._recipient_card(recipient)

            async with self.locks.hold(card_id, recipient_card.id):
                sender_card = self._owned_card(actor_id, card_id)
                recipient_card = self.store.get_card(recipient_card.id)
                if recipient_card is None or recipient_card.user_id != recipient.id:
                    raise RecipientHasNoCard("Recipient card is no longer available")
                _check_sufficient(sender_card, amount)

                payment_id, confirmed = await self._charge(
                    amount,
                    {
                        "userId": str(actor_id),
                        "recipientId": str(recipient.id),
                        "cardId": str(sender_card.id),
                        "operation": OPERATION_TRANSFER,
                    },
                    payment_method_id,
                )
                outcome["payment_id"] = payment_id

                def record() -> TransferResult:
                    debited = self._adjust_balance(sender_card, -confirmed)
                    credited = self._adjust_balance(recipient_card, confirmed)
                    now = utc_now()
                    sent = self.store.create_transaction(
                        user_id=sender.id,
                        card_id=sender_card.id,
                        category_id=category_id,
                        merchant=recipient.display_name,
                        amount=confirmed,
                        type="expense",
                        date=now,
                        description=description or f"Transfer to {recipient.display_name}",
                        payment_ref=payment_id,
                    )
                    received = self.store.create_transaction(
                        user_id=recipient.id,
                        card_id=recipient_card.id,
                        category_id=category_id,
                        merchant=sender.display_name,
                        amount=confirmed,
                        type="income",
                        date=now,
                        description=description or f"Transfer from {sender.display_name}",
                        payment_ref=payment_id,
                    )
                    return TransferResult(
                        sender_card=debited,
                        recipient_card=credited,
                        sender_transaction=sent,
                        recipient_transaction=received,
                        payment_id=payment_id,
                    )

                result = await self._record(OPERATION_TRANSFER, payment_id, confirmed, record)
                outcome["amount"] = confirmed
                return result

    # Validation helpers

    def _user(self, user_id: int) -> User:
        user = self.store.get_user(user_id)
        if user is None:
            raise InvalidRequest("Unknown user")
        return user

    def _owned_card(self, actor_id: int, card_id: int) -> Card:
        card = self.store.get_card(card_id)
        if card is None or card.user_id != actor_id:
            raise CardNotFound("Card not found")
        return card

    def _recipient_card(self, recipient: User) -> Card:
        card = select_recipient_card(self.store.list_cards(recipient.id))
        if card is None:
            raise RecipientHasNoCard("Recipient has no cards to receive funds")
        return card

    def _category_id(self, name: str) -> int:
        category = self.store.get_category_by_name(name)
        if category is None:
            category = self.store.create_category(name=name, icon="ellipsis-h", color="#9CA3AF")
        return category.id

    # Gateway step

    async def _charge(
        self,
        amount: Decimal,
        metadata: Dict[str, str],
        payment_method_id: Optional[str],
    ) -> tuple[str, Decimal]:
        """
        Create and process a payment; return (payment id, confirmed amount).

        Raises:
            PaymentDeclined: gateway reported success=False
            GatewayUnavailable: gateway not configured
            PaymentProcessingFailed: any other gateway exception
        """
        try:
            intent = await self.gateway.create_payment(amount, self.currency, metadata)
            result = await self.gateway.process_payment(intent.id, payment_method_id)
        except GatewayUnavailable:
            logger.error(
                "Payment gateway unavailable",
                extra={"gateway": self.gateway.id, "operation": metadata.get("operation")},
            )
            raise
        except Exception as e:
            logger.exception(
                "Unexpected payment gateway failure",
                extra={"gateway": self.gateway.id, "operation": metadata.get("operation")},
            )
            raise PaymentProcessingFailed("Payment processing failed") from e

        if not result.success:
            raise PaymentDeclined(result.error or "Payment was declined", details={"paymentId": intent.id})

        return intent.id, intent.amount

    # Ledger step

    def _adjust_balance(self, card: Card, delta: Decimal) -> Card:
        new_balance = card.balance + delta
        if new_balance < 0:
            raise InsufficientFunds("Insufficient funds on card")
        return self.store.set_card_balance(card.id, expected=card.balance, new=new_balance)

    async def _record(self, operation: str, payment_id: str, amount: Decimal, write: Callable[[], Any]) -> Any:
        """Run the ledger writes as one unit; escalate any failure as a reconciliation incident"""
        try:
            with self.store.atomic():
                return write()
        except Exception as e:
            refunded = await self._compensate(payment_id, amount)
            reconciliation_incident_counter.labels(operation=operation).inc()
            incident = {
                "event": "LEDGER_UPDATE_FAILED",
                "operation": operation,
                "payment_id": payment_id,
                "gateway": self.gateway.id,
                "amount": str(amount),
                "refunded": refunded,
            }
            logger.critical(
                "Payment confirmed but ledger update failed; reconciliation required",
                extra={**incident, "error": e.__class__.__name__},
            )
            self._notify(incident)
            raise ReconciliationRequired(
                "Payment was processed but could not be recorded; it has been flagged for reconciliation",
                details={"paymentId": payment_id, "refunded": refunded},
            ) from e

    async def _compensate(self, payment_id: str, amount: Decimal) -> bool:
        if not self.refund_on_ledger_failure:
            return False
        try:
            refund = await self.gateway.refund_payment(payment_id, amount)
        except Exception:
            logger.exception("Compensating refund failed", extra={"payment_id": payment_id})
            return False
        if not refund.success:
            logger.error(
                "Compensating refund rejected",
                extra={"payment_id": payment_id, "refund_error": refund.error},
            )
        return refund.success

    def _notify(self, incident: Dict[str, Any]) -> None:
        """Deliver the incident to the reconciliation webhook without delaying the response"""
        if self.notifier is None or not getattr(self.notifier, "webhook_url", None):
            return

        async def deliver() -> None:
            try:
                await self.notifier.send_incident(incident)
            except Exception:
                logger.exception("Reconciliation webhook delivery failed", extra={"payment_id": incident["payment_id"]})

        task = asyncio.create_task(deliver())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # Observability

    @asynccontextmanager
    async def _track(self, operation: str, actor_id: int) -> AsyncIterator[Dict[str, Any]]:
        """Record one metric and one log line per operation, whatever its outcome"""
        start_time = time.time()
        outcome: Dict[str, Any] = {"payment_id": None, "amount": None}
        result = "succeeded"
        try:
            yield outcome
        except WalletError as e:
            result = e.category
            raise
        except Exception:
            result = "internal_error"
            raise
        finally:
            duration_ms = (time.time() - start_time) * 1000
            record_payment(operation, result, outcome["amount"])
            log_payment(operation, result, actor_id, outcome["amount"], outcome["payment_id"], duration_ms)


def _require_id(value: Any, field: str) -> int:
    if value is None or value == "" or isinstance(value, bool):
        raise InvalidRequest(f"{field} is required")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidRequest(f"{field} must be an integer")
    # 1.7 is not card 1
    if not isinstance(value, str) and number != value:
        raise InvalidRequest(f"{field} must be an integer")
    return number


def _check_sufficient(card: Card, amount: Decimal) -> None:
    if card.balance < amount:
        raise InsufficientFunds("Insufficient funds on card")
