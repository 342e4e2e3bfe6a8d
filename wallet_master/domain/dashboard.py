"""Dashboard aggregation - balances, budget progress and savings progress"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from wallet_master.domain.models import Budget, Card, SavingsGoal, Transaction
from wallet_master.utils.date_utils import as_utc

ZERO = Decimal("0.00")
PERCENT = Decimal("0.01")


@dataclass(frozen=True)
class BudgetProgress:
    budget: Budget
    spent: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class SavingsProgress:
    goal: SavingsGoal
    percentage: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    total_balance: Decimal
    total_income: Decimal
    total_expenses: Decimal
    budgets: List[BudgetProgress]
    savings_goals: List[SavingsProgress]


def percentage_of(current: Decimal, total: Decimal) -> Decimal:
    """current / total as a percentage with two decimals; 0 when total is 0. Not capped at 100."""
    if not total:
        return ZERO
    return (current / total * 100).quantize(PERCENT, rounding=ROUND_HALF_UP)


def budget_spent(budget: Budget, transactions: List[Transaction]) -> Decimal:
    """
    Sum of expense transactions in the budget's category.

    Only transactions dated inside [start_date, end_date] count; an open
    end date means the budget is still running.
    """
    start = as_utc(budget.start_date)
    end = as_utc(budget.end_date)
    spent = ZERO
    for txn in transactions:
        if txn.type != "expense" or txn.category_id != budget.category_id:
            continue
        when = as_utc(txn.date)
        if start is not None and when < start:
            continue
        if end is not None and when > end:
            continue
        spent += txn.amount
    return spent


def summarize(
    cards: List[Card],
    transactions: List[Transaction],
    budgets: List[Budget],
    goals: List[SavingsGoal],
) -> DashboardSummary:
    """Build the dashboard for one user from their own records"""
    total_income = sum((t.amount for t in transactions if t.type == "income"), ZERO)
    total_expenses = sum((t.amount for t in transactions if t.type == "expense"), ZERO)

    budget_rows = []
    for budget in budgets:
        spent = budget_spent(budget, transactions)
        budget_rows.append(BudgetProgress(budget=budget, spent=spent, percentage=percentage_of(spent, budget.amount)))

    goal_rows = [
        SavingsProgress(goal=goal, percentage=percentage_of(goal.current_amount, goal.target_amount))
        for goal in goals
    ]

    return DashboardSummary(
        total_balance=sum((c.balance for c in cards), ZERO),
        total_income=total_income,
        total_expenses=total_expenses,
        budgets=budget_rows,
        savings_goals=goal_rows,
    )
