"""
Tests for the AI agents.

The Gemini model is replaced by a stub exposing ``generate_content_async``;
no API key or network is needed.
"""

import asyncio
import json
from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock

from smartspend.agents import AdvisorAgent, CategorizerAgent, recent_transactions
from smartspend.agents.ai_agents import (
    ADVICE_UNAVAILABLE_MESSAGE,
    EMPTY_LEDGER_MESSAGE,
    NO_ADVICE_MESSAGE,
)


def _model(text=None, error=None):
    model = SimpleNamespace()
    if error is not None:
        model.generate_content_async = AsyncMock(side_effect=error)
    else:
        model.generate_content_async = AsyncMock(return_value=SimpleNamespace(text=text))
    return model


def _prompt_records(model) -> list:
    prompt = model.generate_content_async.call_args.args[0]
    start = prompt.index("[")
    end = prompt.index("]\n") + 1
    return json.loads(prompt[start:end])


class TestRecentTransactions:

    def test_newest_first_and_undated_last(self, make_tx):
        old = make_tx(date=datetime(2024, 1, 1))
        new = make_tx(date=datetime(2024, 3, 1))
        undated = make_tx(date=None)
        assert recent_transactions([undated, old, new]) == [new, old, undated]

    def test_limit(self, make_tx):
        ledger = [make_tx(date=datetime(2024, 1, 1) + timedelta(days=i)) for i in range(10)]
        assert len(recent_transactions(ledger, limit=3)) == 3


class TestAdvisorAgent:
    """Tests for AdvisorAgent."""

    def test_empty_ledger_skips_model(self):
        model = _model("unused")
        advice = asyncio.run(AdvisorAgent(model).get_advice([]))
        assert advice == EMPTY_LEDGER_MESSAGE
        model.generate_content_async.assert_not_called()

    def test_returns_model_text(self, scenario):
        model = _model("  **Spend less on bazar.**  ")
        advice = asyncio.run(AdvisorAgent(model).get_advice(scenario))
        assert advice == "**Spend less on bazar.**"

    def test_prompt_holds_at_most_window_records(self, make_tx):
        ledger = [
            make_tx(description=f"item {i}", date=datetime(2024, 1, 1) + timedelta(hours=i))
            for i in range(60)
        ]
        model = _model("ok")
        asyncio.run(AdvisorAgent(model, advice_window=50).get_advice(ledger))
        records = _prompt_records(model)
        assert len(records) == 50
        # The ten oldest are left out
        assert "item 9" not in {r["description"] for r in records}
        assert records[0]["description"] == "item 59"

    def test_model_failure_returns_placeholder(self, scenario):
        model = _model(error=RuntimeError("quota exceeded"))
        advice = asyncio.run(AdvisorAgent(model).get_advice(scenario))
        assert advice == ADVICE_UNAVAILABLE_MESSAGE

    def test_blank_reply(self, scenario):
        advice = asyncio.run(AdvisorAgent(_model("")).get_advice(scenario))
        assert advice == NO_ADVICE_MESSAGE


class TestCategorizerAgent:
    """Tests for CategorizerAgent."""

    def test_known_label_is_canonicalized(self):
        model = _model('"bazar & groceries."\nBecause it is food.')
        suggestion = asyncio.run(CategorizerAgent(model).suggest_category("fish and rice"))
        assert suggestion == "Bazar & Groceries"

    def test_unknown_label_passes_through(self):
        suggestion = asyncio.run(CategorizerAgent(_model("Pets")).suggest_category("cat food"))
        assert suggestion == "Pets"

    def test_prompt_lists_categories(self):
        model = _model("transport")
        asyncio.run(CategorizerAgent(model).suggest_category("rickshaw"))
        prompt = model.generate_content_async.call_args.args[0]
        assert "rickshaw" in prompt
        assert "'Transportation'" in prompt

    def test_blank_description_skips_model(self):
        model = _model("Other")
        assert asyncio.run(CategorizerAgent(model).suggest_category("   ")) is None
        model.generate_content_async.assert_not_called()

    def test_failure_returns_none(self):
        model = _model(error=ConnectionError("offline"))
        assert asyncio.run(CategorizerAgent(model).suggest_category("bus fare")) is None

    def test_empty_reply_returns_none(self):
        assert asyncio.run(CategorizerAgent(_model("")).suggest_category("bus fare")) is None
