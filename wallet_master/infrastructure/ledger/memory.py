"""In-memory Ledger Store: one dict per entity keyed by auto-increment id"""

import threading
from contextlib import contextmanager
from dataclasses import replace
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, List, Optional, Type

from wallet_master.domain.exceptions import StaleBalanceError
from wallet_master.domain.ledger import DEFAULT_CATEGORIES, LedgerStore
from wallet_master.domain.models import (
    AiInsight,
    AiMessage,
    Budget,
    Card,
    Category,
    SavingsGoal,
    Transaction,
    User,
)
from wallet_master.utils.date_utils import as_utc, utc_now


class _Table:
    """Rows of one entity type plus its id counter"""

    def __init__(self, model: Type, stamp_field: str = "created_at", defaults: Optional[Dict[str, Any]] = None):
        self.model = model
        self.stamp_field = stamp_field
        self.defaults = defaults or {}
        self.rows: Dict[int, Any] = {}
        self.next_id = 1

    def insert(self, fields: Dict[str, Any]) -> Any:
        values = {**self.defaults, **fields, "id": self.next_id, self.stamp_field: utc_now()}
        row = self.model(**values)
        self.rows[row.id] = row
        self.next_id += 1
        return row

    def update(self, row_id: int, fields: Dict[str, Any]) -> Optional[Any]:
        row = self.rows.get(row_id)
        if row is None:
            return None
        row = replace(row, **fields)
        self.rows[row_id] = row
        return row

    def select(self, predicate: Callable[[Any], bool]) -> List[Any]:
        return [row for row in self.rows.values() if predicate(row)]


class MemoryLedgerStore(LedgerStore):
    """
    Process-local store. Rows are frozen dataclasses, so handing them out
    never exposes internal state; writes replace rows instead of mutating them.
    """

    def __init__(self, seed_categories: bool = True):
        self._lock = threading.RLock()
        self._depth = 0
        self._users = _Table(User, defaults={"profile_image": None})
        self._cards = _Table(Card, defaults={"card_color": None, "is_default": False})
        self._categories = _Table(Category)
        self._transactions = _Table(Transaction, defaults={"description": None, "payment_ref": None})
        self._budgets = _Table(Budget, defaults={"end_date": None})
        self._savings_goals = _Table(SavingsGoal, defaults={"target_date": None})
        self._ai_messages = _Table(AiMessage, stamp_field="timestamp")
        self._ai_insights = _Table(AiInsight)

        if seed_categories:
            for category in DEFAULT_CATEGORIES:
                self.create_category(**category)

    @property
    def _tables(self) -> List[_Table]:
        return [
            self._users,
            self._cards,
            self._categories,
            self._transactions,
            self._budgets,
            self._savings_goals,
            self._ai_messages,
            self._ai_insights,
        ]

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            snapshot = [(table, dict(table.rows), table.next_id) for table in self._tables]
            self._depth = 1
            try:
                yield
            except BaseException:
                # Restore every table to its state before the block
                for table, rows, next_id in snapshot:
                    table.rows = rows
                    table.next_id = next_id
                raise
            finally:
                self._depth = 0

    # Users

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.rows.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            return next(iter(self._users.select(lambda u: u.username == username)), None)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            return next(iter(self._users.select(lambda u: u.email == email)), None)

    def create_user(self, **fields: Any) -> User:
        with self._lock:
            return self._users.insert(fields)

    def update_user(self, user_id: int, **fields: Any) -> Optional[User]:
        with self._lock:
            return self._users.update(user_id, fields)

    # Cards

    def get_card(self, card_id: int) -> Optional[Card]:
        with self._lock:
            return self._cards.rows.get(card_id)

    def list_cards(self, user_id: int) -> List[Card]:
        with self._lock:
            return self._cards.select(lambda c: c.user_id == user_id)

    def create_card(self, **fields: Any) -> Card:
        with self.atomic():
            card = self._cards.insert(fields)
            if card.is_default:
                self._clear_other_defaults(card)
            return card

    def update_card(self, card_id: int, **fields: Any) -> Optional[Card]:
        with self.atomic():
            card = self._cards.update(card_id, fields)
            if card is not None and fields.get("is_default"):
                self._clear_other_defaults(card)
            return card

    def _clear_other_defaults(self, card: Card) -> None:
        for other in self._cards.select(lambda c: c.user_id == card.user_id and c.id != card.id and c.is_default):
            self._cards.update(other.id, {"is_default": False})

    def delete_card(self, card_id: int) -> bool:
        with self._lock:
            return self._cards.rows.pop(card_id, None) is not None

    def set_card_balance(self, card_id: int, expected: Decimal, new: Decimal) -> Card:
        with self._lock:
            card = self._cards.rows.get(card_id)
            if card is None:
                raise StaleBalanceError(f"Card {card_id} no longer exists")
            if card.balance != expected:
                raise StaleBalanceError(f"Card {card_id} balance changed from {expected} to {card.balance}")
            return self._cards.update(card_id, {"balance": new})

    # Categories

    def get_category(self, category_id: int) -> Optional[Category]:
        with self._lock:
            return self._categories.rows.get(category_id)

    def get_category_by_name(self, name: str) -> Optional[Category]:
        with self._lock:
            return next(iter(self._categories.select(lambda c: c.name == name)), None)

    def list_categories(self) -> List[Category]:
        with self._lock:
            return list(self._categories.rows.values())

    def create_category(self, **fields: Any) -> Category:
        with self._lock:
            return self._categories.insert(fields)

    # Transactions

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        with self._lock:
            return self._transactions.rows.get(transaction_id)

    def list_transactions(self, user_id: int, limit: Optional[int] = None) -> List[Transaction]:
        with self._lock:
            rows = self._transactions.select(lambda t: t.user_id == user_id)
        rows.sort(key=lambda t: (as_utc(t.date), t.id), reverse=True)
        return rows[:limit] if limit else rows

    def list_transactions_by_payment(self, payment_ref: str) -> List[Transaction]:
        with self._lock:
            return self._transactions.select(lambda t: t.payment_ref == payment_ref)

    def create_transaction(self, **fields: Any) -> Transaction:
        with self._lock:
            return self._transactions.insert(fields)

    # Budgets

    def get_budget(self, budget_id: int) -> Optional[Budget]:
        with self._lock:
            return self._budgets.rows.get(budget_id)

    def list_budgets(self, user_id: int) -> List[Budget]:
        with self._lock:
            return self._budgets.select(lambda b: b.user_id == user_id)

    def create_budget(self, **fields: Any) -> Budget:
        with self._lock:
            return self._budgets.insert(fields)

    def update_budget(self, budget_id: int, **fields: Any) -> Optional[Budget]:
        with self._lock:
            return self._budgets.update(budget_id, fields)

    def delete_budget(self, budget_id: int) -> bool:
        with self._lock:
            return self._budgets.rows.pop(budget_id, None) is not None

    # Savings goals

    def get_savings_goal(self, goal_id: int) -> Optional[SavingsGoal]:
        with self._lock:
            return self._savings_goals.rows.get(goal_id)

    def list_savings_goals(self, user_id: int) -> List[SavingsGoal]:
        with self._lock:
            return self._savings_goals.select(lambda g: g.user_id == user_id)

    def create_savings_goal(self, **fields: Any) -> SavingsGoal:
        with self._lock:
            return self._savings_goals.insert(fields)

    def update_savings_goal(self, goal_id: int, **fields: Any) -> Optional[SavingsGoal]:
        with self._lock:
            return self._savings_goals.update(goal_id, fields)

    def delete_savings_goal(self, goal_id: int) -> bool:
        with self._lock:
            return self._savings_goals.rows.pop(goal_id, None) is not None

    # AI history

    def list_ai_messages(self, user_id: int, limit: Optional[int] = None) -> List[AiMessage]:
        with self._lock:
            rows = self._ai_messages.select(lambda m: m.user_id == user_id)
        rows.sort(key=lambda m: (m.timestamp, m.id), reverse=True)
        return rows[:limit] if limit else rows

    def create_ai_message(self, **fields: Any) -> AiMessage:
        with self._lock:
            return self._ai_messages.insert(fields)

    def list_ai_insights(self, user_id: int) -> List[AiInsight]:
        with self._lock:
            return self._ai_insights.select(lambda i: i.user_id == user_id)

    def create_ai_insight(self, **fields: Any) -> AiInsight:
        with self._lock:
            return self._ai_insights.insert(fields)
