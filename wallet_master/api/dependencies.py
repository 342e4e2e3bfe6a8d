"""Dependency injection for FastAPI endpoints

Collaborators are built once by the application factory and kept on
`app.state`; these providers hand them to the routers.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from wallet_master.domain.advisor import FinancialAdvisor
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.models import User
from wallet_master.domain.payments import PaymentOrchestrator
from wallet_master.infrastructure.auth.sessions import SessionRegistry
from wallet_master.infrastructure.gateways.registry import GatewayRegistry

bearer_scheme = HTTPBearer(auto_error=False)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_store(request: Request) -> LedgerStore:
    return request.app.state.store


def get_gateway_registry(request: Request) -> GatewayRegistry:
    return request.app.state.gateways


def get_orchestrator(request: Request) -> PaymentOrchestrator:
    return request.app.state.orchestrator


def get_advisor(request: Request) -> FinancialAdvisor:
    return request.app.state.advisor


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> str:
    """Raw bearer token; 401 when the header is missing"""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_bearer_token),
    store: LedgerStore = Depends(get_store),
    sessions: SessionRegistry = Depends(get_sessions),
) -> User:
    """Authenticated actor; 401 for unknown, expired or orphaned sessions"""
    user_id = sessions.resolve(token)
    user = store.get_user(user_id) if user_id is not None else None
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
