"""Gateway registry: identifier -> adapter, resolved once at startup"""

from typing import Dict, Iterable, List

from wallet_master.config import Settings
from wallet_master.domain.exceptions import GatewayUnavailable
from wallet_master.domain.gateway import PaymentGateway
from wallet_master.infrastructure.gateways.mock import MockGateway
from wallet_master.infrastructure.gateways.paypal import PayPalGateway
from wallet_master.infrastructure.gateways.stripe import StripeGateway


class GatewayRegistry:
    """Holds one constructed adapter per identifier"""

    def __init__(self, gateways: Iterable[PaymentGateway], default_id: str):
        self._gateways: Dict[str, PaymentGateway] = {gateway.id: gateway for gateway in gateways}
        self.default = self.get(default_id)

    def get(self, gateway_id: str) -> PaymentGateway:
        """
        Raises:
            GatewayUnavailable: no adapter registered under `gateway_id`
        """
        gateway = self._gateways.get(gateway_id)
        if gateway is None:
            raise GatewayUnavailable(f'Payment gateway "{gateway_id}" not found')
        return gateway

    def available(self) -> List[PaymentGateway]:
        return list(self._gateways.values())


def build_gateway_registry(config: Settings) -> GatewayRegistry:
    """Construct every adapter from settings and select the configured default"""
    gateways = [
        StripeGateway(
            secret_key=config.stripe_secret_key,
            base_url=config.stripe_api_base,
            timeout=config.http_timeout_seconds,
            default_payment_method=config.stripe_default_payment_method,
        ),
        PayPalGateway(
            client_id=config.paypal_client_id,
            client_secret=config.paypal_client_secret,
            base_url=config.paypal_api_base,
            timeout=config.http_timeout_seconds,
        ),
        MockGateway(),
    ]
    return GatewayRegistry(gateways, default_id=config.payment_gateway)
