"""AI Agents package."""

from smartspend.agents.ai_agents import (
    AdvisorAgent,
    CategorizerAgent,
    recent_transactions,
)

__all__ = [
    "AdvisorAgent",
    "CategorizerAgent",
    "recent_transactions",
]
