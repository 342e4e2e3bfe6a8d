"""Unit tests for gateway selection"""

import pytest

from wallet_master.config import Settings
from wallet_master.domain.exceptions import GatewayUnavailable
from wallet_master.infrastructure.gateways.mock import MockGateway
from wallet_master.infrastructure.gateways.registry import GatewayRegistry, build_gateway_registry


def test_build_registry_from_settings():
    registry = build_gateway_registry(Settings(payment_gateway="mock"))

    assert registry.default.id == "mock"
    assert {g.id for g in registry.available()} == {"stripe", "paypal", "mock"}
    assert registry.get("stripe").name == "Stripe"


def test_unknown_gateway_is_unavailable():
    registry = GatewayRegistry([MockGateway()], default_id="mock")

    with pytest.raises(GatewayUnavailable, match="square"):
        registry.get("square")


def test_unknown_default_fails_at_startup():
    with pytest.raises(GatewayUnavailable):
        GatewayRegistry([MockGateway()], default_id="square")
