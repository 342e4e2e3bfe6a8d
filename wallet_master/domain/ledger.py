"""Ledger Store contract

The payment orchestrator and the API routers depend only on this interface.
Implementations live in infrastructure (in-memory maps, SQLAlchemy).

Conventions shared by every implementation:
- `create_*` assigns a monotonically increasing integer id and `created_at`
  and never mutates its arguments.
- `get_*` returns None for unknown ids; `update_*` returns None as well.
- Transactions are append-only: there is no update or delete.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, ContextManager, List, Optional

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

DEFAULT_CATEGORIES = [
    {"name": "Food & Dining", "icon": "utensils", "color": "#3B82F6"},
    {"name": "Housing", "icon": "home", "color": "#10B981"},
    {"name": "Transportation", "icon": "car", "color": "#6366F1"},
    {"name": "Shopping", "icon": "shopping-bag", "color": "#F59E0B"},
    {"name": "Entertainment", "icon": "film", "color": "#EC4899"},
    {"name": "Health & Fitness", "icon": "heartbeat", "color": "#EF4444"},
    {"name": "Personal Care", "icon": "bath", "color": "#8B5CF6"},
    {"name": "Education", "icon": "graduation-cap", "color": "#14B8A6"},
    {"name": "Gifts & Donations", "icon": "gift", "color": "#F97316"},
    {"name": "Bills & Utilities", "icon": "file-invoice-dollar", "color": "#6B7280"},
    {"name": "Travel", "icon": "plane", "color": "#06B6D4"},
    {"name": "Other", "icon": "ellipsis-h", "color": "#9CA3AF"},
]


class LedgerStore(ABC):
    """Abstract storage for users, cards, transactions and planning entities"""

    # Units of work

    @abstractmethod
    def atomic(self) -> ContextManager[None]:
        """
        Group writes so they become visible together or not at all.

        Nested blocks join the outermost one.
        """

    # Users

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, **fields: Any) -> User: ...

    @abstractmethod
    def update_user(self, user_id: int, **fields: Any) -> Optional[User]: ...

    # Cards

    @abstractmethod
    def get_card(self, card_id: int) -> Optional[Card]: ...

    @abstractmethod
    def list_cards(self, user_id: int) -> List[Card]:
        """Cards of a user in creation order"""

    @abstractmethod
    def create_card(self, **fields: Any) -> Card:
        """Create a card; a card created with is_default=True clears the flag on the owner's other cards"""

    @abstractmethod
    def update_card(self, card_id: int, **fields: Any) -> Optional[Card]: ...

    @abstractmethod
    def delete_card(self, card_id: int) -> bool: ...

    @abstractmethod
    def set_card_balance(self, card_id: int, expected: Decimal, new: Decimal) -> Card:
        """
        Compare-and-swap the card balance.

        Raises:
            StaleBalanceError: stored balance is not `expected`, or the card is gone
        """

    # Categories

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]: ...

    @abstractmethod
    def get_category_by_name(self, name: str) -> Optional[Category]: ...

    @abstractmethod
    def list_categories(self) -> List[Category]: ...

    @abstractmethod
    def create_category(self, **fields: Any) -> Category: ...

    # Transactions

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]: ...

    @abstractmethod
    def list_transactions(self, user_id: int, limit: Optional[int] = None) -> List[Transaction]:
        """Transactions of a user, most recent `date` first"""

    @abstractmethod
    def list_transactions_by_payment(self, payment_ref: str) -> List[Transaction]: ...

    @abstractmethod
    def create_transaction(self, **fields: Any) -> Transaction: ...

    # Budgets

    @abstractmethod
    def get_budget(self, budget_id: int) -> Optional[Budget]: ...

    @abstractmethod
    def list_budgets(self, user_id: int) -> List[Budget]: ...

    @abstractmethod
    def create_budget(self, **fields: Any) -> Budget: ...

    @abstractmethod
    def update_budget(self, budget_id: int, **fields: Any) -> Optional[Budget]: ...

    @abstractmethod
    def delete_budget(self, budget_id: int) -> bool: ...

    # Savings goals

    @abstractmethod
    def get_savings_goal(self, goal_id: int) -> Optional[SavingsGoal]: ...

    @abstractmethod
    def list_savings_goals(self, user_id: int) -> List[SavingsGoal]: ...

    @abstractmethod
    def create_savings_goal(self, **fields: Any) -> SavingsGoal: ...

    @abstractmethod
    def update_savings_goal(self, goal_id: int, **fields: Any) -> Optional[SavingsGoal]: ...

    @abstractmethod
    def delete_savings_goal(self, goal_id: int) -> bool: ...

    # AI history

    @abstractmethod
    def list_ai_messages(self, user_id: int, limit: Optional[int] = None) -> List[AiMessage]: ...

    @abstractmethod
    def create_ai_message(self, **fields: Any) -> AiMessage: ...

    @abstractmethod
    def list_ai_insights(self, user_id: int) -> List[AiInsight]: ...

    @abstractmethod
    def create_ai_insight(self, **fields: Any) -> AiInsight: ...
