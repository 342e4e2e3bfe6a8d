"""AI advisor endpoints: chat, insights, spending analysis"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from wallet_master.api.dependencies import get_advisor, get_current_user, get_store
from wallet_master.api.v1.schemas import ChatRequest, ChatResponse, InsightResponse, SpendingAnalysisResponse
from wallet_master.domain.advisor import FinancialAdvisor
from wallet_master.domain.ledger import LedgerStore
from wallet_master.domain.models import User

router = APIRouter()
logger = logging.getLogger(__name__)

CHAT_HISTORY_LIMIT = 20


def user_context(store: LedgerStore, user: User, transaction_limit: int | None = None) -> Dict[str, Any]:
    """Records the advisor may see; cards are left out so no card number leaves the service"""
    return {
        "transactions": store.list_transactions(user.id, limit=transaction_limit),
        "budgets": store.list_budgets(user.id),
        "savingsGoals": store.list_savings_goals(user.id),
    }


@router.post("/ai/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    user: User = Depends(get_current_user),
    store: LedgerStore = Depends(get_store),
    advisor: FinancialAdvisor = Depends(get_advisor),
):
    response = await advisor.get_advice(body.message, user_context(store, user, CHAT_HISTORY_LIMIT))
    store.create_ai_message(user_id=user.id, message=body.message, response=response)
    return ChatResponse(response=response)


@router.get("/ai/insights", response_model=List[InsightResponse])
async def insights(
    user: User = Depends(get_current_user),
    store: LedgerStore = Depends(get_store),
    advisor: FinancialAdvisor = Depends(get_advisor),
):
    """Stored insights, generating and storing a first batch when there are none"""
    existing = store.list_ai_insights(user.id)
    if existing:
        return [InsightResponse.model_validate(i) for i in existing]

    suggestions = await advisor.generate_insights(user_context(store, user))
    saved = [
        store.create_ai_insight(user_id=user.id, insight=s.text, type=s.type, icon=s.icon, color=s.color)
        for s in suggestions
    ]
    logger.info("Generated advisor insights", extra={"user_id": user.id, "count": len(saved)})
    return [InsightResponse.model_validate(i) for i in saved]


@router.get("/ai/spending-analysis", response_model=SpendingAnalysisResponse)
async def spending_analysis(
    user: User = Depends(get_current_user),
    store: LedgerStore = Depends(get_store),
    advisor: FinancialAdvisor = Depends(get_advisor),
):
    recommendations = await advisor.analyze_spending(
        {"transactions": store.list_transactions(user.id), "userId": user.id}
    )
    return SpendingAnalysisResponse(recommendations=recommendations)
