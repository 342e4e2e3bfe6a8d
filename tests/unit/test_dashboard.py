"""Unit tests for dashboard aggregation"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from wallet_master.domain.dashboard import budget_spent, percentage_of, summarize
from wallet_master.domain.models import Budget, Card, SavingsGoal, Transaction

NOW = datetime(2026, 3, 15, tzinfo=timezone.utc)


def card(balance: str) -> Card:
    return Card(
        id=1, user_id=1, card_type="visa", bank_name="Bank", card_number="4242424242424242", last_four="4242",
        expiry_date="01/30", balance=Decimal(balance), card_color=None, is_default=True, created_at=NOW,
    )


def txn(amount: str, type: str = "expense", category_id: int = 1, date: datetime = NOW) -> Transaction:
    return Transaction(
        id=1, user_id=1, card_id=1, category_id=category_id, merchant="Shop", amount=Decimal(amount),
        type=type, date=date, description=None, payment_ref=None, created_at=NOW,
    )


def budget(amount: str, category_id: int = 1, start=NOW - timedelta(days=14), end=None) -> Budget:
    return Budget(
        id=1, user_id=1, category_id=category_id, amount=Decimal(amount), period="monthly",
        start_date=start, end_date=end, created_at=NOW,
    )


def test_percentage_of():
    assert percentage_of(Decimal("25"), Decimal("200")) == Decimal("12.50")
    assert percentage_of(Decimal("300"), Decimal("200")) == Decimal("150.00")
    assert percentage_of(Decimal("1"), Decimal("0")) == Decimal("0.00")
    assert percentage_of(Decimal("1"), Decimal("3")) == Decimal("33.33")


def test_budget_spent_counts_matching_expenses_in_window():
    transactions = [
        txn("10.00"),
        txn("5.00", type="income"),
        txn("7.00", category_id=2),
        txn("3.00", date=NOW - timedelta(days=30)),
        txn("4.00", date=NOW - timedelta(days=1)),
    ]

    assert budget_spent(budget("100.00"), transactions) == Decimal("14.00")
    assert budget_spent(budget("100.00", end=NOW - timedelta(hours=1)), transactions) == Decimal("4.00")


def test_budget_spent_accepts_naive_dates():
    naive_start = (NOW - timedelta(days=2)).replace(tzinfo=None)

    assert budget_spent(budget("50.00", start=naive_start), [txn("5.00")]) == Decimal("5.00")


def test_summarize_totals_and_progress():
    goal = SavingsGoal(
        id=1, user_id=1, name="Bike", target_amount=Decimal("400.00"), current_amount=Decimal("100.00"),
        target_date=None, created_at=NOW,
    )

    summary = summarize(
        cards=[card("120.50"), card("79.50")],
        transactions=[txn("50.00"), txn("1000.00", type="income", category_id=3)],
        budgets=[budget("200.00")],
        goals=[goal],
    )

    assert summary.total_balance == Decimal("200.00")
    assert summary.total_income == Decimal("1000.00")
    assert summary.total_expenses == Decimal("50.00")
    assert summary.budgets[0].spent == Decimal("50.00")
    assert summary.budgets[0].percentage == Decimal("25.00")
    assert summary.savings_goals[0].percentage == Decimal("25.00")


def test_summarize_empty_account():
    summary = summarize([], [], [], [])

    assert summary.total_balance == Decimal("0.00")
    assert summary.budgets == []
