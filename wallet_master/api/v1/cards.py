"""Card management endpoints"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from wallet_master.api.dependencies import get_current_user, get_store
from wallet_master.api.v1.schemas import CardCreate, CardResponse, CardUpdate
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.models import Card, User

router = APIRouter()


def owned_card(store: LedgerStore, user: User, card_id: int) -> Card:
    """404 when missing, 403 when it belongs to someone else"""
    card = store.get_card(card_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")
    if card.user_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return card


@router.get("/cards", response_model=List[CardResponse])
def list_cards(user: User = Depends(get_current_user), store: LedgerStore = Depends(get_store)):
    return [CardResponse.model_validate(card) for card in store.list_cards(user.id)]


@router.post("/cards", response_model=CardResponse, status_code=201)
def create_card(body: CardCreate, user: User = Depends(get_current_user), store: LedgerStore = Depends(get_store)):
    card = store.create_card(
        user_id=user.id,
        card_type=body.card_type,
        bank_name=body.bank_name,
        card_number=body.card_number,
        last_four=body.card_number[-4:],
        expiry_date=body.expiry_date,
        balance=body.balance,
        card_color=body.card_color,
        is_default=body.is_default,
    )
    return CardResponse.model_validate(card)


@router.put("/cards/{card_id}", response_model=CardResponse)
def update_card(
    card_id: int,
    body: CardUpdate,
    user: User = Depends(get_current_user),
    store: LedgerStore = Depends(get_store),
):
    owned_card(store, user, card_id)
    card = store.update_card(card_id, **body.model_dump(exclude_none=True))
    return CardResponse.model_validate(card)


@router.delete("/cards/{card_id}", status_code=204)
def delete_card(card_id: int, user: User = Depends(get_current_user), store: LedgerStore = Depends(get_store)):
    owned_card(store, user, card_id)
    store.delete_card(card_id)
