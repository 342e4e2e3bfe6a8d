"""Spending categories (shared by every user)"""

from typing import List

from fastapi import APIRouter, Depends

from wallet_master.api.dependencies import get_store
from wallet_master.api.v1.schemas import CategoryResponse
from wallet_master.domain.ledger import LedgerStore

router = APIRouter()


@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(store: LedgerStore = Depends(get_store)):
    return [CategoryResponse.model_validate(category) for category in store.list_categories()]
