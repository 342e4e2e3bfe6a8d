"""Pydantic schemas for API request/response validation

Wire format is camelCase; Python attributes stay snake_case. Money is a
Decimal internally and a JSON number on the wire.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Auth


class UserResponse(CamelModel):
    """Public view of a user; the password hash is never exposed"""

    id: int
    username: str
    first_name: str
    last_name: str
    email: str
    profile_image: Optional[str] = None
    created_at: datetime


class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    profile_image: Optional[str] = None


class LoginRequest(CamelModel):
    username: str
    password: str


class AuthResponse(CamelModel):
    token: str
    user: UserResponse


# Cards


class CardCreate(CamelModel):
    card_type: str = Field(..., min_length=1)
    bank_name: str = Field(..., min_length=1)
    card_number: str = Field(..., pattern=r"^\d{12,19}$", description="Full card number, digits only")
    expiry_date: str = Field(..., pattern=r"^(0[1-9]|1[0-2])/\d{2}$", description="MM/YY")
    balance: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    card_color: Optional[str] = None
    is_default: bool = False


class CardUpdate(CamelModel):
    """Display attributes only; balances move through the payment endpoints"""

    card_type: Optional[str] = Field(default=None, min_length=1)
    bank_name: Optional[str] = Field(default=None, min_length=1)
    expiry_date: Optional[str] = Field(default=None, pattern=r"^(0[1-9]|1[0-2])/\d{2}$")
    card_color: Optional[str] = None
    is_default: Optional[bool] = None


class CardResponse(CamelModel):
    """Card as shown to its owner; the full number is never returned"""

    id: int
    user_id: int
    card_type: str
    bank_name: str
    last_four: str
    expiry_date: str
    balance: Money
    card_color: Optional[str] = None
    is_default: bool
    created_at: datetime


# Categories and transactions


class CategoryResponse(CamelModel):
    id: int
    name: str
    icon: str
    color: str


class TransactionCreate(CamelModel):
    card_id: int
    category_id: int
    merchant: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    type: Literal["income", "expense"]
    date: Optional[datetime] = None
    description: Optional[str] = None


class TransactionResponse(CamelModel):
    id: int
    user_id: int
    card_id: int
    category_id: int
    merchant: str
    amount: Money
    type: str
    date: datetime
    description: Optional[str] = None
    payment_ref: Optional[str] = None
    created_at: datetime


# Budgets and savings goals


class BudgetCreate(CamelModel):
    category_id: int
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    period: Literal["weekly", "monthly", "yearly"] = "monthly"
    start_date: datetime
    end_date: Optional[datetime] = None


class BudgetUpdate(CamelModel):
    category_id: Optional[int] = None
    amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    period: Optional[Literal["weekly", "monthly", "yearly"]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class BudgetResponse(CamelModel):
    id: int
    user_id: int
    category_id: int
    amount: Money
    period: str
    start_date: datetime
    end_date: Optional[datetime] = None
    created_at: datetime


class SavingsGoalCreate(CamelModel):
    name: str = Field(..., min_length=1)
    target_amount: Decimal = Field(..., gt=0, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    target_date: Optional[datetime] = None


class SavingsGoalUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    target_amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    current_amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    target_date: Optional[datetime] = None


class SavingsGoalResponse(CamelModel):
    id: int
    user_id: int
    name: str
    target_amount: Money
    current_amount: Money
    target_date: Optional[datetime] = None
    created_at: datetime


# Dashboard


class BudgetProgressResponse(BudgetResponse):
    spent: Money
    percentage: Money


class SavingsProgressResponse(SavingsGoalResponse):
    percentage: Money


class DashboardResponse(CamelModel):
    total_balance: Money
    total_income: Money
    total_expenses: Money
    budgets: List[BudgetProgressResponse]
    savings_goals: List[SavingsProgressResponse]


# AI advisor


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1)


class ChatResponse(CamelModel):
    response: str


class InsightResponse(CamelModel):
    id: int
    insight: str
    type: str
    icon: str
    color: str
    created_at: datetime


class SpendingAnalysisResponse(CamelModel):
    recommendations: List[str]


# Payments
#
# Required payment fields are declared optional so the orchestrator reports
# them with the same error body as every other payment failure.


class CreateIntentRequest(CamelModel):
    amount: Any = None
    currency: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class CreateIntentResponse(CamelModel):
    client_secret: Optional[str] = None
    id: str
    status: str
    redirect_url: Optional[str] = None


class AddFundsRequest(CamelModel):
    card_id: Optional[int] = None
    amount: Any = None
    payment_method_id: Optional[str] = None
    description: Optional[str] = None


class AddFundsResponse(CamelModel):
    success: bool
    card: CardResponse
    transaction: TransactionResponse
    payment_id: str


class PayUtilityRequest(CamelModel):
    card_id: Optional[int] = None
    amount: Any = None
    utility_name: Optional[str] = None
    utility_category: Optional[int] = None
    description: Optional[str] = None
    payment_method_id: Optional[str] = None


class PayUtilityResponse(CamelModel):
    success: bool
    card: CardResponse
    transaction: TransactionResponse
    payment_id: str


class TransferRequest(CamelModel):
    recipient_id: Optional[int] = None
    card_id: Optional[int] = None
    amount: Any = None
    description: Optional[str] = None
    payment_method_id: Optional[str] = None


class TransferResponse(CamelModel):
    success: bool
    sender_card: CardResponse
    recipient_card: CardResponse
    sender_transaction: TransactionResponse
    recipient_transaction: TransactionResponse
    payment_id: str


class GatewayResponse(CamelModel):
    id: str
    name: str


class UserLookupResponse(CamelModel):
    """Limited recipient view used before a transfer"""

    id: int
    email: str
    first_name: str
    last_name: str
