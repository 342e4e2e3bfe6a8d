"""Pytest fixtures for testing"""

from decimal import Decimal
from typing import Callable, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from fakes import FakeAdvisor, SpyGateway
from wallet_master.api.main import create_app
from wallet_master.config import Settings
from wallet_master.domain.models import Card, User
from wallet_master.domain.payments import PaymentOrchestrator
from wallet_master.infrastructure.auth.passwords import hash_password
from wallet_master.infrastructure.gateways.registry import GatewayRegistry
from wallet_master.infrastructure.ledger.memory import MemoryLedgerStore


@pytest.fixture
def store() -> MemoryLedgerStore:
    return MemoryLedgerStore()


@pytest.fixture
def gateway() -> SpyGateway:
    return SpyGateway()


@pytest.fixture
def orchestrator(store: MemoryLedgerStore, gateway: SpyGateway) -> PaymentOrchestrator:
    return PaymentOrchestrator(store, gateway, currency="usd")


@pytest.fixture
def make_user(store: MemoryLedgerStore) -> Callable[..., User]:
    """Factory for users stored with a hashed "secret123" password"""

    def _make(username: str, first_name: str = "Test", last_name: str = "User", email: Optional[str] = None) -> User:
        return store.create_user(
            username=username,
            password=hash_password("secret123"),
            first_name=first_name,
            last_name=last_name,
            email=email or f"{username}@example.com",
        )

    return _make


@pytest.fixture
def make_card(store: MemoryLedgerStore) -> Callable[..., Card]:
    def _make(user: User, balance: str = "100.00", is_default: bool = False, number: str = "4242424242424242") -> Card:
        return store.create_card(
            user_id=user.id,
            card_type="visa",
            bank_name="Test Bank",
            card_number=number,
            last_four=number[-4:],
            expiry_date="12/29",
            balance=Decimal(balance),
            is_default=is_default,
        )

    return _make


@pytest.fixture
def alice(make_user) -> User:
    return make_user("alice", "Alice", "Smith")


@pytest.fixture
def bob(make_user) -> User:
    return make_user("bob", "Bob", "Jones")


@pytest.fixture
def advisor() -> FakeAdvisor:
    return FakeAdvisor()


@pytest.fixture
def app(store: MemoryLedgerStore, gateway: SpyGateway, advisor: FakeAdvisor):
    """Application wired to the in-memory store, the spy gateway and the fake advisor"""
    config = Settings(reconciliation_webhook_url=None, openai_api_key=None)
    registry = GatewayRegistry([gateway], default_id=gateway.id)
    return create_app(config=config, store=store, gateway_registry=registry, advisor=advisor)


@pytest.fixture
def client(app) -> TestClient:
    """Create FastAPI test client"""
    return TestClient(app)


@pytest.fixture
def auth_headers(app) -> Callable[[User], Dict[str, str]]:
    """Bearer headers for a user without going through /api/login"""

    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {app.state.sessions.issue(user.id)}"}

    return _headers
