"""GET /api/users/find - resolve a transfer recipient by email"""

from fastapi import APIRouter, Depends, Query

from wallet_master.api.dependencies import get_current_user, get_store
from wallet_master.api.v1.schemas import UserLookupResponse
from wallet_master.domain.exceptions import InvalidRequest, RecipientNotFound
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.models import User

router = APIRouter()


@router.get("/users/find", response_model=UserLookupResponse)
def find_user(
    email: str = Query(default=""),
    user: User = Depends(get_current_user),
    store: LedgerStore = Depends(get_store),
):
    email = email.strip()
    if not email:
        raise InvalidRequest("email is required")

    found = store.get_user_by_email(email)
    if found is None:
        raise RecipientNotFound("User not found")
    if found.id == user.id:
        raise InvalidRequest("Cannot transfer funds to yourself")

    return UserLookupResponse.model_validate(found)
