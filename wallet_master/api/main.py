"""FastAPI application factory"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from wallet_master.api.middleware import MetricsMiddleware, RequestIDMiddleware
from wallet_master.api.v1 import ai, auth, budgets, cards, categories, dashboard, payments, savings_goals, transactions, users
from wallet_master.config import Settings, settings
from wallet_master.domain.advisor import FinancialAdvisor
from wallet_master.domain.exceptions import WalletError
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.payments import PaymentOrchestrator
from wallet_master.infrastructure.auth.sessions import SessionRegistry
from wallet_master.infrastructure.clients.advisor import OpenAIAdvisor
from wallet_master.infrastructure.clients.reconciliation import ReconciliationNotifier
from wallet_master.infrastructure.database.repositories import SqlLedgerStore
from wallet_master.infrastructure.database.session import build_session_factory
from wallet_master.infrastructure.gateways.registry import GatewayRegistry, build_gateway_registry
from wallet_master.infrastructure.ledger.memory import MemoryLedgerStore
from wallet_master.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)

# Error category for plain HTTP errors raised by routes and dependencies
HTTP_ERROR_CATEGORIES = {
    400: "invalid_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


def build_ledger_store(config: Settings) -> LedgerStore:
    if config.ledger_backend == "sql":
        return SqlLedgerStore(build_session_factory(config.database_url))
    return MemoryLedgerStore()


def create_app(
    config: Optional[Settings] = None,
    store: Optional[LedgerStore] = None,
    gateway_registry: Optional[GatewayRegistry] = None,
    advisor: Optional[FinancialAdvisor] = None,
    notifier: Optional[ReconciliationNotifier] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Collaborators default to what `config` describes; tests pass doubles.
    """
    config = config or settings

    app = FastAPI(
        title="Wallet Master API",
        description="Personal finance: cards, budgets, savings goals, AI insights and payments",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    store = store or build_ledger_store(config)
    gateway_registry = gateway_registry or build_gateway_registry(config)
    notifier = notifier or ReconciliationNotifier(
        webhook_url=config.reconciliation_webhook_url,
        max_retries=config.webhook_max_retries,
        backoff_base=config.webhook_backoff_base,
    )

    app.state.settings = config
    app.state.store = store
    app.state.gateways = gateway_registry
    app.state.orchestrator = PaymentOrchestrator(
        store,
        gateway_registry.default,
        currency=config.default_currency,
        refund_on_ledger_failure=config.refund_on_ledger_failure,
        notifier=notifier,
    )
    app.state.advisor = advisor or OpenAIAdvisor(
        api_key=config.openai_api_key,
        base_url=config.openai_api_base,
        model=config.openai_model,
        timeout=config.http_timeout_seconds,
    )
    app.state.sessions = SessionRegistry(config.session_ttl_seconds)

    logger.info(
        "Application configured",
        extra={"ledger_backend": config.ledger_backend, "gateway": gateway_registry.default.id},
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(WalletError)
    async def wallet_error_handler(request: Request, exc: WalletError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail, "error": HTTP_ERROR_CATEGORIES.get(exc.status_code, "http_error")},
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Validation error", "error": "invalid_request", "errors": jsonable_encoder(exc.errors())},
        )

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": config.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(cards.router, prefix="/api", tags=["cards"])
    app.include_router(categories.router, prefix="/api", tags=["categories"])
    app.include_router(transactions.router, prefix="/api", tags=["transactions"])
    app.include_router(budgets.router, prefix="/api", tags=["budgets"])
    app.include_router(savings_goals.router, prefix="/api", tags=["savings-goals"])
    app.include_router(dashboard.router, prefix="/api", tags=["dashboard"])
    app.include_router(ai.router, prefix="/api", tags=["ai"])
    app.include_router(payments.router, prefix="/api", tags=["payments"])
    app.include_router(users.router, prefix="/api", tags=["users"])

    return app


app = create_app()
