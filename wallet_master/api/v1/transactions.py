"""Transaction history and manual entry"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from wallet_master.api.dependencies import get_current_user, get_store
from wallet_master.api.v1.cards import owned_card
from wallet_master.api.v1.schemas import TransactionCreate, TransactionResponse
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.models import User
from wallet_master.utils.date_utils import utc_now

router = APIRouter()


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    user: User = Depends(get_current_user),
    store: LedgerStore = Depends(get_store),
):
    """Newest first"""
    return [TransactionResponse.model_validate(t) for t in store.list_transactions(user.id, limit=limit)]


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    body: TransactionCreate,
    user: User = Depends(get_current_user),
    store: LedgerStore = Depends(get_store),
):
    """
    Record a transaction by hand.

    Bookkeeping only: card balances are not adjusted.
    """
    owned_card(store, user, body.card_id)
    if store.get_category(body.category_id) is None:
        raise HTTPException(status_code=400, detail="Unknown category")

    transaction = store.create_transaction(
        user_id=user.id,
        card_id=body.card_id,
        category_id=body.category_id,
        merchant=body.merchant,
        amount=body.amount,
        type=body.type,
        date=body.date or utc_now(),
        description=body.description,
    )
    return TransactionResponse.model_validate(transaction)
