"""OpenAI-compatible chat completions client used as the financial advisor"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic_core import to_jsonable_python

from wallet_master.config import settings
from wallet_master.domain.advisor import FinancialAdvisor, InsightSuggestion

logger = logging.getLogger(__name__)

ADVICE_PROMPT = (
    "You are a helpful financial assistant in the Wallet Master app. "
    "Provide useful, personalized financial advice based on the user data provided. "
    "Be concise, practical, and friendly. Focus on actionable advice that can help "
    "the user improve their financial health. Context about the user: {context}"
)

INSIGHTS_PROMPT = (
    "You are a financial analysis AI for the Wallet Master app. "
    "Based on the user's transaction history, budget allocation, savings goals, and overall financial behavior, "
    "generate 2-3 actionable insights that can help them improve their financial health. "
    "Each insight should include a text, a type (spending, saving, or investment), "
    "an appropriate icon name (from Font Awesome, like 'lightbulb', 'piggy-bank', etc.), "
    "and a color (like '#3B82F6' for blue, '#10B981' for green, or '#EF4444' for red). "
    "Format your response as a JSON object with an 'insights' array."
)

SPENDING_PROMPT = (
    "You are a financial analysis AI that specializes in identifying spending patterns and providing "
    "actionable recommendations. Analyze the provided transaction data and generate 3 specific recommendations "
    "to help the user optimize their spending. Focus on identifying unusual spending patterns, potential savings "
    "opportunities, and budget optimizations. Format your response as a JSON object with a 'recommendations' array."
)

FALLBACK_ADVICE = "I'm experiencing technical difficulties. Please try again later."
EMPTY_ADVICE = "I'm having trouble providing advice right now. Please try again later."

FALLBACK_INSIGHTS = [
    InsightSuggestion(
        text="Try to save at least 20% of your monthly income for long-term goals.",
        type="saving",
        icon="piggy-bank",
        color="#10B981",
    ),
    InsightSuggestion(
        text="Review your subscription services and cancel ones you don't use regularly.",
        type="spending",
        icon="lightbulb",
        color="#3B82F6",
    ),
]

FALLBACK_RECOMMENDATIONS = [
    "Analyze your recurring subscriptions and cancel unused ones.",
    "Try a 30-day spending challenge in a high-expense category.",
    "Consider using cashback or rewards credit cards for regular expenses.",
]


class OpenAIAdvisor(FinancialAdvisor):
    """
    Advisor backed by a chat completions endpoint.

    Never raises: an unconfigured client, a failed request or an unparseable
    answer all degrade to fixed advice so the dashboard keeps working.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or settings.openai_api_key
        self.base_url = base_url or settings.openai_api_base
        self.model = model or settings.openai_model
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def _complete(self, system: str, user: str, json_mode: bool = False) -> Optional[str]:
        """Return the first choice's content, or None when the call cannot be made or fails"""
        if not self.api_key:
            return None

        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    "/chat/completions",
                    json=body,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                return response.json()["choices"][0]["message"]["content"]
            except httpx.HTTPStatusError as e:
                logger.error(f"Advisor API error: {e.response.status_code}")
            except httpx.RequestError as e:
                logger.error(f"Advisor API unreachable: {e.__class__.__name__}")
            except (KeyError, IndexError, TypeError, ValueError) as e:
                logger.error(f"Invalid advisor response: {e}")
        return None

    async def get_advice(self, message: str, context: Dict[str, Any]) -> str:
        if not self.api_key:
            return FALLBACK_ADVICE
        content = await self._complete(ADVICE_PROMPT.format(context=_dumps(context)), message)
        if content is None:
            return FALLBACK_ADVICE
        return content or EMPTY_ADVICE

    async def generate_insights(self, context: Dict[str, Any]) -> List[InsightSuggestion]:
        parsed = _parse_json(await self._complete(INSIGHTS_PROMPT, _dumps(context), json_mode=True))
        try:
            insights = [
                InsightSuggestion(text=i["text"], type=i["type"], icon=i["icon"], color=i["color"])
                for i in parsed.get("insights", [])
            ]
        except (KeyError, TypeError) as e:
            logger.error(f"Invalid insights from advisor: {e}")
            insights = []
        return insights or list(FALLBACK_INSIGHTS)

    async def analyze_spending(self, context: Dict[str, Any]) -> List[str]:
        parsed = _parse_json(await self._complete(SPENDING_PROMPT, _dumps(context), json_mode=True))
        recommendations = parsed.get("recommendations")
        if isinstance(recommendations, list) and recommendations:
            return [str(r) for r in recommendations]
        return list(FALLBACK_RECOMMENDATIONS)


def _dumps(context: Dict[str, Any]) -> str:
    return json.dumps(to_jsonable_python(context))


def _parse_json(content: Optional[str]) -> Dict[str, Any]:
    if not content:
        return {}
    try:
        parsed = json.loads(content)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}
