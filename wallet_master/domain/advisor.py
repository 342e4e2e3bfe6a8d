"""AI advisory collaborator contract"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass(frozen=True)
class InsightSuggestion:
    """Insight produced by the advisor before it is stored"""

    text: str
    type: str  # spending, saving, investment
    icon: str
    color: str


class FinancialAdvisor(ABC):
    """Opaque text generator: structured user context in, advice out"""

    @abstractmethod
    async def get_advice(self, message: str, context: Dict[str, Any]) -> str: ...

    @abstractmethod
    async def generate_insights(self, context: Dict[str, Any]) -> List[InsightSuggestion]: ...

    @abstractmethod
    async def analyze_spending(self, context: Dict[str, Any]) -> List[str]: ...
