"""Budget CRUD endpoints"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from wallet_master.api.dependencies import get_current_user, get_store
from wallet_master.api.v1.schemas import BudgetCreate, BudgetResponse, BudgetUpdate
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.models import Budget, User

router = APIRouter()


def owned_budget(store: LedgerStore, user: User, budget_id: int) -> Budget:
    budget = store.get_budget(budget_id)
    if budget is None:
        raise HTTPException(status_code=404, detail="Budget not found")
    if budget.user_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return budget


def check_category(store: LedgerStore, category_id: int) -> None:
    if store.get_category(category_id) is None:
        raise HTTPException(status_code=400, detail="Unknown category")


@router.get("/budgets", response_model=List[BudgetResponse])
def list_budgets(user: User = Depends(get_current_user), store: LedgerStore = Depends(get_store)):
    return [BudgetResponse.model_validate(b) for b in store.list_budgets(user.id)]


@router.post("/budgets", response_model=BudgetResponse, status_code=201)
def create_budget(body: BudgetCreate, user: User = Depends(get_current_user), store: LedgerStore = Depends(get_store)):
    check_category(store, body.category_id)
    budget = store.create_budget(user_id=user.id, **body.model_dump())
    return BudgetResponse.model_validate(budget)


@router.put("/budgets/{budget_id}", response_model=BudgetResponse)
def update_budget(
    budget_id: int,
    body: BudgetUpdate,
    user: User = Depends(get_current_user),
    store: LedgerStore = Depends(get_store),
):
    owned_budget(store, user, budget_id)
    fields = body.model_dump(exclude_unset=True)
    # end_date may be cleared; everything else keeps its value when sent as null
    fields = {k: v for k, v in fields.items() if v is not None or k == "end_date"}
    if "category_id" in fields:
        check_category(store, fields["category_id"])
    return BudgetResponse.model_validate(store.update_budget(budget_id, **fields))


@router.delete("/budgets/{budget_id}", status_code=204)
def delete_budget(budget_id: int, user: User = Depends(get_current_user), store: LedgerStore = Depends(get_store)):
    owned_budget(store, user, budget_id)
    store.delete_budget(budget_id)
