"""Payment endpoints: intents, deposits, bill payments, transfers

Failures are raised as WalletError subclasses by the orchestrator and
rendered by the application-level exception handler as
{"message", "error", ...}.
"""

from typing import List

from fastapi import APIRouter, Depends

from wallet_master.api.dependencies import get_current_user, get_gateway_registry, get_orchestrator
from wallet_master.api.v1.schemas import (
    AddFundsRequest,
    AddFundsResponse,
    CardResponse,
    CreateIntentRequest,
    CreateIntentResponse,
    GatewayResponse,
    PayUtilityRequest,
    PayUtilityResponse,
    TransactionResponse,
    TransferRequest,
    TransferResponse,
)
from wallet_master.domain.models import User
from wallet_master.domain.payments import PaymentOrchestrator
from wallet_master.infrastructure.gateways.registry import GatewayRegistry

router = APIRouter()


@router.get("/payments/gateways", response_model=List[GatewayResponse])
def list_gateways(registry: GatewayRegistry = Depends(get_gateway_registry)):
    return [GatewayResponse(id=gateway.id, name=gateway.name) for gateway in registry.available()]


@router.post("/payments/create-intent", response_model=CreateIntentResponse)
async def create_intent(
    body: CreateIntentRequest,
    user: User = Depends(get_current_user),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    intent = await orchestrator.create_intent(user.id, body.amount, body.currency, body.metadata)
    return CreateIntentResponse(
        client_secret=intent.client_secret,
        id=intent.id,
        status=intent.status,
        redirect_url=intent.redirect_url,
    )


@router.post("/payments/add-funds", response_model=AddFundsResponse)
async def add_funds(
    body: AddFundsRequest,
    user: User = Depends(get_current_user),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    result = await orchestrator.deposit(
        user.id,
        body.card_id,
        body.amount,
        body.payment_method_id,
        description=body.description,
    )
    return AddFundsResponse(
        success=True,
        card=CardResponse.model_validate(result.card),
        transaction=TransactionResponse.model_validate(result.transaction),
        payment_id=result.payment_id,
    )


@router.post("/payments/pay-utility", response_model=PayUtilityResponse)
async def pay_utility(
    body: PayUtilityRequest,
    user: User = Depends(get_current_user),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    result = await orchestrator.pay_bill(
        user.id,
        body.card_id,
        body.amount,
        body.utility_name,
        category_id=body.utility_category,
        description=body.description,
        payment_method_id=body.payment_method_id,
    )
    return PayUtilityResponse(
        success=True,
        card=CardResponse.model_validate(result.card),
        transaction=TransactionResponse.model_validate(result.transaction),
        payment_id=result.payment_id,
    )


@router.post("/payments/transfer", response_model=TransferResponse)
async def transfer(
    body: TransferRequest,
    user: User = Depends(get_current_user),
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
):
    result = await orchestrator.transfer(
        user.id,
        body.recipient_id,
        body.card_id,
        body.amount,
        description=body.description,
        payment_method_id=body.payment_method_id,
    )
    return TransferResponse(
        success=True,
        sender_card=CardResponse.model_validate(result.sender_card),
        recipient_card=CardResponse.model_validate(result.recipient_card),
        sender_transaction=TransactionResponse.model_validate(result.sender_transaction),
        recipient_transaction=TransactionResponse.model_validate(result.recipient_transaction),
        payment_id=result.payment_id,
    )
