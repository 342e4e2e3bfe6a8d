"""Registration, login and session endpoints"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from wallet_master.api.dependencies import get_bearer_token, get_current_user, get_sessions, get_store
from wallet_master.api.v1.schemas import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.models import User
from wallet_master.infrastructure.auth.passwords import hash_password, verify_password
from wallet_master.infrastructure.auth.sessions import SessionRegistry

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    body: RegisterRequest,
    store: LedgerStore = Depends(get_store),
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Create an account and log it in"""
    if store.get_user_by_username(body.username):
        raise HTTPException(status_code=400, detail="Username already exists")
    if store.get_user_by_email(body.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = store.create_user(
        username=body.username,
        password=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        profile_image=body.profile_image,
    )
    logger.info("User registered", extra={"user_id": user.id})
    return AuthResponse(token=sessions.issue(user.id), user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    store: LedgerStore = Depends(get_store),
    sessions: SessionRegistry = Depends(get_sessions),
):
    user = store.get_user_by_username(body.username)
    if user is None or not verify_password(body.password, user.password):
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return AuthResponse(token=sessions.issue(user.id), user=UserResponse.model_validate(user))


@router.post("/logout", status_code=204)
def logout(
    token: str = Depends(get_bearer_token),
    sessions: SessionRegistry = Depends(get_sessions),
):
    sessions.revoke(token)


@router.get("/user", response_model=UserResponse)
def current_user(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)
