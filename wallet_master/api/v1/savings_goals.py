"""Savings goal CRUD endpoints"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from wallet_master.api.dependencies import get_current_user, get_store
from wallet_master.api.v1.schemas import SavingsGoalCreate, SavingsGoalResponse, SavingsGoalUpdate
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.models import SavingsGoal, User

router = APIRouter()


def owned_goal(store: LedgerStore, user: User, goal_id: int) -> SavingsGoal:
    goal = store.get_savings_goal(goal_id)
    if goal is None:
        raise HTTPException(status_code=404, detail="Savings goal not found")
    if goal.user_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return goal


@router.get("/savings-goals", response_model=List[SavingsGoalResponse])
def list_goals(user: User = Depends(get_current_user), store: LedgerStore = Depends(get_store)):
    return [SavingsGoalResponse.model_validate(g) for g in store.list_savings_goals(user.id)]


@router.post("/savings-goals", response_model=SavingsGoalResponse, status_code=201)
def create_goal(body: SavingsGoalCreate, user: User = Depends(get_current_user), store: LedgerStore = Depends(get_store)):
    goal = store.create_savings_goal(user_id=user.id, **body.model_dump())
    return SavingsGoalResponse.model_validate(goal)


@router.put("/savings-goals/{goal_id}", response_model=SavingsGoalResponse)
def update_goal(
    goal_id: int,
    body: SavingsGoalUpdate,
    user: User = Depends(get_current_user),
    store: LedgerStore = Depends(get_store),
):
    owned_goal(store, user, goal_id)
    fields = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None or k == "target_date"}
    return SavingsGoalResponse.model_validate(store.update_savings_goal(goal_id, **fields))


@router.delete("/savings-goals/{goal_id}", status_code=204)
def delete_goal(goal_id: int, user: User = Depends(get_current_user), store: LedgerStore = Depends(get_store)):
    owned_goal(store, user, goal_id)
    store.delete_savings_goal(goal_id)
