"""Configuration management using Pydantic Settings"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "wallet-master-api"
    log_level: str = "INFO"

    # Ledger storage
    ledger_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite://"

    # Payments
    payment_gateway: str = "mock"
    default_currency: str = "usd"
    refund_on_ledger_failure: bool = True

    stripe_secret_key: Optional[str] = None
    stripe_api_base: str = "https://api.stripe.com"
    stripe_default_payment_method: Optional[str] = None

    paypal_client_id: Optional[str] = None
    paypal_client_secret: Optional[str] = None
    paypal_api_base: str = "https://api-m.sandbox.paypal.com"
    paypal_return_url: str = "https://example.com/success"
    paypal_cancel_url: str = "https://example.com/cancel"

    # AI advisor (OpenAI-compatible chat completions)
    openai_api_key: Optional[str] = None
    openai_api_base: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"

    # Auth
    session_ttl_seconds: int = 86400

    # HTTP Client
    http_timeout_seconds: float = 10.0

    # Reconciliation incidents
    reconciliation_webhook_url: Optional[str] = None
    webhook_max_retries: int = 5
    webhook_backoff_base: float = 1.0  # Exponential backoff base in seconds


settings = Settings()
