"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class User:
    """Registered account holder"""

    id: int
    username: str
    password: str  # "<pbkdf2 hex>$<salt>", never serialised
    first_name: str
    last_name: str
    email: str
    profile_image: Optional[str]
    created_at: datetime

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class Card:
    """Linked payment card with an in-app balance"""

    id: int
    user_id: int
    card_type: str  # visa, mastercard, ...
    bank_name: str
    card_number: str
    last_four: str
    expiry_date: str
    balance: Decimal
    card_color: Optional[str]
    is_default: bool
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Spending category shared by all users"""

    id: int
    name: str
    icon: str
    color: str
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Immutable ledger entry; amount is always positive, type carries the sign"""

    id: int
    user_id: int
    card_id: int
    category_id: int
    merchant: str
    amount: Decimal
    type: str  # "income" or "expense"
    date: datetime
    description: Optional[str]
    payment_ref: Optional[str]  # gateway payment id, for reconciliation
    created_at: datetime


@dataclass(frozen=True)
class Budget:
    """Spending limit for a category over a period"""

    id: int
    user_id: int
    category_id: int
    amount: Decimal
    period: str  # monthly, weekly, yearly
    start_date: datetime
    end_date: Optional[datetime]
    created_at: datetime


@dataclass(frozen=True)
class SavingsGoal:
    """Target amount the user is saving towards"""

    id: int
    user_id: int
    name: str
    target_amount: Decimal
    current_amount: Decimal
    target_date: Optional[datetime]
    created_at: datetime


@dataclass(frozen=True)
class AiMessage:
    """Chat exchange with the financial advisor"""

    id: int
    user_id: int
    message: str
    response: str
    timestamp: datetime


@dataclass(frozen=True)
class AiInsight:
    """Stored advisor insight shown on the dashboard"""

    id: int
    user_id: int
    insight: str
    type: str  # spending, saving, investment
    icon: str
    color: str
    created_at: datetime
