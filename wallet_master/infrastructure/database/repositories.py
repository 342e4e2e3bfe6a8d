"""Relational Ledger Store backed by SQLAlchemy"""

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import fields as dataclass_fields
from decimal import Decimal
from typing import Any, Iterator, List, Optional, Type

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, sessionmaker

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
from wallet_master.infrastructure.database.models import (
    AiInsightRow,
    AiMessageRow,
    BudgetRow,
    CardRow,
    CategoryRow,
    SavingsGoalRow,
    TransactionRow,
    UserRow,
)


def _to_domain(row: Any, model: Type) -> Any:
    return model(**{f.name: getattr(row, f.name) for f in dataclass_fields(model)})


class SqlLedgerStore(LedgerStore):
    """
    Ledger Store on a relational database.

    Each call runs in its own session and commits on success. Inside
    `atomic()` all calls share one session that commits or rolls back when
    the outermost block exits, which gives the payment ledger step a real
    transactional boundary.
    """

    def __init__(self, session_factory: sessionmaker, seed_categories: bool = True):
        self.session_factory = session_factory
        self._current: ContextVar[Optional[Session]] = ContextVar(f"ledger_session_{id(self)}", default=None)

        if seed_categories:
            with self.atomic():
                if not self.list_categories():
                    for category in DEFAULT_CATEGORIES:
                        self.create_category(**category)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if self._current.get() is not None:
            yield
            return

        session = self.session_factory()
        token = self._current.set(session)
        try:
            yield
            session.commit()
        except BaseException:
            session.rollback()
            raise
        finally:
            self._current.reset(token)
            session.close()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Join the enclosing unit of work, or run a single-call one"""
        session = self._current.get()
        if session is not None:
            yield session
            return
        with self.atomic():
            yield self._current.get()

    def _create(self, row_cls: Type, model: Type, values: dict) -> Any:
        with self._session() as session:
            row = row_cls(**values)
            session.add(row)
            session.flush()  # Get ID without committing
            return _to_domain(row, model)

    def _get(self, row_cls: Type, model: Type, row_id: int) -> Optional[Any]:
        with self._session() as session:
            row = session.get(row_cls, row_id)
            return _to_domain(row, model) if row is not None else None

    def _update(self, row_cls: Type, model: Type, row_id: int, values: dict) -> Optional[Any]:
        with self._session() as session:
            row = session.get(row_cls, row_id)
            if row is None:
                return None
            for key, value in values.items():
                setattr(row, key, value)
            session.flush()
            return _to_domain(row, model)

    def _delete(self, row_cls: Type, row_id: int) -> bool:
        with self._session() as session:
            result = session.execute(delete(row_cls).where(row_cls.id == row_id))
            return result.rowcount > 0

    def _select(self, model: Type, statement) -> List[Any]:
        with self._session() as session:
            return [_to_domain(row, model) for row in session.scalars(statement)]

    # Users

    def get_user(self, user_id: int) -> Optional[User]:
        return self._get(UserRow, User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next(iter(self._select(User, select(UserRow).where(UserRow.username == username))), None)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return next(iter(self._select(User, select(UserRow).where(UserRow.email == email))), None)

    def create_user(self, **fields: Any) -> User:
        return self._create(UserRow, User, fields)

    def update_user(self, user_id: int, **fields: Any) -> Optional[User]:
        return self._update(UserRow, User, user_id, fields)

    # Cards

    def get_card(self, card_id: int) -> Optional[Card]:
        return self._get(CardRow, Card, card_id)

    def list_cards(self, user_id: int) -> List[Card]:
        return self._select(Card, select(CardRow).where(CardRow.user_id == user_id).order_by(CardRow.id))

    def create_card(self, **fields: Any) -> Card:
        with self.atomic():
            card = self._create(CardRow, Card, fields)
            if card.is_default:
                self._clear_other_defaults(card)
            return card

    def update_card(self, card_id: int, **fields: Any) -> Optional[Card]:
        with self.atomic():
            card = self._update(CardRow, Card, card_id, fields)
            if card is not None and fields.get("is_default"):
                self._clear_other_defaults(card)
            return card

    def _clear_other_defaults(self, card: Card) -> None:
        with self._session() as session:
            session.execute(
                update(CardRow)
                .where(CardRow.user_id == card.user_id, CardRow.id != card.id)
                .values(is_default=False)
            )

    def delete_card(self, card_id: int) -> bool:
        return self._delete(CardRow, card_id)

    def set_card_balance(self, card_id: int, expected: Decimal, new: Decimal) -> Card:
        with self._session() as session:
            # Row lock on backends that support it; SQLite serialises writers anyway
            row = session.get(CardRow, card_id, with_for_update=True)
            if row is None:
                raise StaleBalanceError(f"Card {card_id} no longer exists")
            if Decimal(row.balance) != expected:
                raise StaleBalanceError(f"Card {card_id} balance changed from {expected} to {row.balance}")
            row.balance = new
            session.flush()
            return _to_domain(row, Card)

    # Categories

    def get_category(self, category_id: int) -> Optional[Category]:
        return self._get(CategoryRow, Category, category_id)

    def get_category_by_name(self, name: str) -> Optional[Category]:
        return next(iter(self._select(Category, select(CategoryRow).where(CategoryRow.name == name))), None)

    def list_categories(self) -> List[Category]:
        return self._select(Category, select(CategoryRow).order_by(CategoryRow.id))

    def create_category(self, **fields: Any) -> Category:
        return self._create(CategoryRow, Category, fields)

    # Transactions

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self._get(TransactionRow, Transaction, transaction_id)

    def list_transactions(self, user_id: int, limit: Optional[int] = None) -> List[Transaction]:
        statement = (
            select(TransactionRow)
            .where(TransactionRow.user_id == user_id)
            .order_by(TransactionRow.date.desc(), TransactionRow.id.desc())
        )
        if limit:
            statement = statement.limit(limit)
        return self._select(Transaction, statement)

    def list_transactions_by_payment(self, payment_ref: str) -> List[Transaction]:
        return self._select(
            Transaction,
            select(TransactionRow).where(TransactionRow.payment_ref == payment_ref).order_by(TransactionRow.id),
        )

    def create_transaction(self, **fields: Any) -> Transaction:
        return self._create(TransactionRow, Transaction, fields)

    # Budgets

    def get_budget(self, budget_id: int) -> Optional[Budget]:
        return self._get(BudgetRow, Budget, budget_id)

    def list_budgets(self, user_id: int) -> List[Budget]:
        return self._select(Budget, select(BudgetRow).where(BudgetRow.user_id == user_id).order_by(BudgetRow.id))

    def create_budget(self, **fields: Any) -> Budget:
        return self._create(BudgetRow, Budget, fields)

    def update_budget(self, budget_id: int, **fields: Any) -> Optional[Budget]:
        return self._update(BudgetRow, Budget, budget_id, fields)

    def delete_budget(self, budget_id: int) -> bool:
        return self._delete(BudgetRow, budget_id)

    # Savings goals

    def get_savings_goal(self, goal_id: int) -> Optional[SavingsGoal]:
        return self._get(SavingsGoalRow, SavingsGoal, goal_id)

    def list_savings_goals(self, user_id: int) -> List[SavingsGoal]:
        return self._select(
            SavingsGoal,
            select(SavingsGoalRow).where(SavingsGoalRow.user_id == user_id).order_by(SavingsGoalRow.id),
        )

    def create_savings_goal(self, **fields: Any) -> SavingsGoal:
        return self._create(SavingsGoalRow, SavingsGoal, fields)

    def update_savings_goal(self, goal_id: int, **fields: Any) -> Optional[SavingsGoal]:
        return self._update(SavingsGoalRow, SavingsGoal, goal_id, fields)

    def delete_savings_goal(self, goal_id: int) -> bool:
        return self._delete(SavingsGoalRow, goal_id)

    # AI history

    def list_ai_messages(self, user_id: int, limit: Optional[int] = None) -> List[AiMessage]:
        statement = (
            select(AiMessageRow)
            .where(AiMessageRow.user_id == user_id)
            .order_by(AiMessageRow.timestamp.desc(), AiMessageRow.id.desc())
        )
        if limit:
            statement = statement.limit(limit)
        return self._select(AiMessage, statement)

    def create_ai_message(self, **fields: Any) -> AiMessage:
        return self._create(AiMessageRow, AiMessage, fields)

    def list_ai_insights(self, user_id: int) -> List[AiInsight]:
        return self._select(
            AiInsight, select(AiInsightRow).where(AiInsightRow.user_id == user_id).order_by(AiInsightRow.id)
        )

    def create_ai_insight(self, **fields: Any) -> AiInsight:
        return self._create(AiInsightRow, AiInsight, fields)
