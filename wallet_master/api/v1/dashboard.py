"""GET /api/dashboard - account overview"""

from fastapi import APIRouter, Depends

from wallet_master.api.dependencies import get_current_user, get_store
from wallet_master.api.v1.schemas import (
    BudgetProgressResponse,
    BudgetResponse,
    DashboardResponse,
    SavingsGoalResponse,
    SavingsProgressResponse,
)
from wallet_master.domain.dashboard import summarize
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.models import User

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(user: User = Depends(get_current_user), store: LedgerStore = Depends(get_store)):
    summary = summarize(
        cards=store.list_cards(user.id),
        transactions=store.list_transactions(user.id),
        budgets=store.list_budgets(user.id),
        goals=store.list_savings_goals(user.id),
    )

    return DashboardResponse(
        total_balance=summary.total_balance,
        total_income=summary.total_income,
        total_expenses=summary.total_expenses,
        budgets=[
            BudgetProgressResponse(
                **BudgetResponse.model_validate(row.budget).model_dump(),
                spent=row.spent,
                percentage=row.percentage,
            )
            for row in summary.budgets
        ],
        savings_goals=[
            SavingsProgressResponse(
                **SavingsGoalResponse.model_validate(row.goal).model_dump(),
                percentage=row.percentage,
            )
            for row in summary.savings_goals
        ],
    )
