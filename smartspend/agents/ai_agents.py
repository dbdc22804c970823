"""
AI Agents for SmartSpend

CRITICAL BOUNDARIES:

1. ADVISOR AGENT:
   - CAN: Comment on the user's own recent transactions
   - CANNOT: Change the ledger
   - MUST: Return a readable string even when the model is unavailable

2. CATEGORIZER AGENT:
   - CAN: Suggest a category label for a description
   - CANNOT: Apply the suggestion - the user picks it in the form
   - MUST: Return None rather than guess when the model fails

The LLM is an ADVISOR, not a BOOKKEEPER.
Every number in the app comes from the aggregator, never from the model.
"""

import json
from datetime import datetime
from typing import Any, Iterable, Optional

import google.generativeai as genai
import structlog

from smartspend.config import GeminiSettings, get_settings
from smartspend.models.transaction import Category, Transaction


logger = structlog.get_logger(__name__)


EMPTY_LEDGER_MESSAGE = "Please add some transactions to receive AI-powered financial advice."
NO_ADVICE_MESSAGE = "Could not generate advice at this time."
ADVICE_UNAVAILABLE_MESSAGE = (
    "Sorry, I'm having trouble analyzing your data right now. Please try again later."
)


def _build_model(settings: GeminiSettings, temperature: float, max_tokens: int) -> Any:
    """Configure Google Generative AI and return a model handle."""
    genai.configure(api_key=settings.api_key)
    return genai.GenerativeModel(
        model_name=settings.model_name,
        generation_config={
            "temperature": temperature,
            "max_output_tokens": max_tokens,
        },
    )


def recent_transactions(transactions: Iterable[Transaction], limit: int = 50) -> list[Transaction]:
    """Most recent ``limit`` transactions by date. Undated records sort last."""
    ordered = sorted(
        transactions,
        key=lambda t: (t.date is not None, t.date or datetime.min),
        reverse=True,
    )
    return ordered[:limit]


class AdvisorAgent:
    """
    Financial advice over the user's recent transactions.

    BOUNDARIES:
    - Sees at most ``advice_window`` records
    - NEVER raises; failures become a placeholder message
    """

    def __init__(
        self,
        model: Any = None,
        settings: Optional[GeminiSettings] = None,
        advice_window: int = 50,
    ):
        """
        Args:
            model: Anything with an async ``generate_content_async(prompt)``.
                   If None, a Gemini model is built from settings.
            settings: Gemini settings; loaded lazily when a model must be built.
            advice_window: How many recent transactions go into the prompt.
        """
        self._model = model
        self._settings = settings
        self._advice_window = advice_window

    def _get_model(self) -> Any:
        if self._model is None:
            settings = self._settings or get_settings().gemini
            self._model = _build_model(settings, settings.temperature, settings.max_tokens)
        return self._model

    def build_prompt(self, transactions: list[Transaction]) -> str:
        records = [t.to_record() for t in transactions]
        return f"""You are a financial advisor. Analyze the following list of recent financial transactions (JSON format).

Transactions:
{json.dumps(records, ensure_ascii=False)}

Please provide a concise analysis in Markdown format:
1. Identify the top spending category.
2. Point out any unusual spending patterns or frequent small expenses.
3. Give one specific, actionable tip to improve savings based on this data.
4. Keep the tone encouraging but professional.
5. Keep it under 200 words."""

    async def get_advice(self, transactions: Iterable[Transaction]) -> str:
        """
        Generate advice for the given ledger.

        Returns:
            Markdown advice, or a fixed message when the ledger is empty
            or the model cannot be reached.
        """
        transactions = list(transactions)
        if not transactions:
            return EMPTY_LEDGER_MESSAGE

        prompt = self.build_prompt(recent_transactions(transactions, self._advice_window))

        try:
            response = await self._get_model().generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception as e:
            logger.error("advice_generation_failed", error=str(e))
            return ADVICE_UNAVAILABLE_MESSAGE

        return text or NO_ADVICE_MESSAGE


class CategorizerAgent:
    """Suggests a category label for a free-text description."""

    def __init__(
        self,
        model: Any = None,
        settings: Optional[GeminiSettings] = None,
    ):
        self._model = model
        self._settings = settings

    def _get_model(self) -> Any:
        if self._model is None:
            settings = self._settings or get_settings().gemini
            # Single short label, keep it deterministic
            self._model = _build_model(settings, temperature=0.1, max_tokens=100)
        return self._model

    def build_prompt(self, description: str) -> str:
        categories = ", ".join(f"'{c.value}'" for c in Category)
        return (
            "Categorize this expense description into a single short category name "
            f"(one of {categories}). Description: \"{description}\". "
            "Return ONLY the category name."
        )

    async def suggest_category(self, description: str) -> Optional[str]:
        """
        Suggest a category for ``description``.

        Returns:
            A known category label when the reply matches one, the
            model's own label otherwise, or None on failure/blank input.
        """
        description = (description or "").strip()
        if not description:
            return None

        try:
            response = await self._get_model().generate_content_async(
                self.build_prompt(description)
            )
            text = (response.text or "").strip()
        except Exception as e:
            logger.warning("category_suggestion_failed", error=str(e))
            return None

        # Models like to wrap the answer in quotes or add a full stop
        text = text.splitlines()[0].strip().strip("'\"`.").strip() if text else ""
        return Category.canonical(text)
