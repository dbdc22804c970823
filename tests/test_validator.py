"""Tests for entry validation."""

import pytest
from datetime import timedelta
from decimal import Decimal

from smartspend.config import AppSettings
from smartspend.models import TransactionDraft, local_now
from smartspend.validation import TransactionValidator


@pytest.fixture
def validator():
    return TransactionValidator(AppSettings(
        future_date_tolerance_days=1,
        max_transaction_amount=100000.0,
    ))


def _draft(**overrides) -> TransactionDraft:
    data = {
        "amount": Decimal("50"),
        "type": "expense",
        "description": "Lunch",
        "category": "Food & Dining",
        "date": local_now(),
        "account_id": "cash",
    }
    data.update(overrides)
    return TransactionDraft(**data)


def _issue_types(result) -> set[str]:
    return {issue.issue_type for issue in result.issues}


class TestShapeValidation:
    """Stage 1: blocking errors."""

    def test_valid_expense(self, validator):
        result = validator.validate(_draft())
        assert result.is_valid
        assert result.issues == []

    def test_zero_amount_is_error(self, validator):
        result = validator.validate(_draft(amount=Decimal("0")))
        assert result.has_errors
        assert result.issues[0].field == "amount"

    def test_missing_description_is_error(self, validator):
        result = validator.validate(_draft(description="   "))
        assert result.has_errors
        assert "missing" in _issue_types(result)

    def test_transfer_needs_no_description(self, validator):
        result = validator.validate(_draft(type="transfer", description="", target_account_id="savings"))
        assert result.is_valid

    def test_transfer_without_target(self, validator):
        result = validator.validate(_draft(type="transfer"))
        assert result.has_errors
        assert result.issues[0].field == "targetAccountId"

    def test_self_transfer_rejected(self, validator):
        result = validator.validate(_draft(type="transfer", target_account_id="cash"))
        assert result.has_errors
        assert "self_transfer" in _issue_types(result)

    def test_unknown_account_rejected(self, validator):
        result = validator.validate(_draft(account_id="wallet"))
        assert result.has_errors

    def test_sanity_checks_skipped_after_errors(self, validator):
        result = validator.validate(_draft(amount=Decimal("0"), category="Pets"))
        assert "custom_category" not in _issue_types(result)


class TestSanityChecks:
    """Stage 2: warnings and info."""

    def test_target_on_expense_warns(self, validator):
        result = validator.validate(_draft(target_account_id="savings"))
        assert result.is_valid
        assert "ignored" in _issue_types(result)

    def test_future_date_warns(self, validator):
        result = validator.validate(_draft(date=local_now() + timedelta(days=3)))
        assert result.is_valid
        assert "future_date" in _issue_types(result)

    def test_tomorrow_within_tolerance(self, validator):
        result = validator.validate(_draft(date=local_now() + timedelta(hours=12)))
        assert "future_date" not in _issue_types(result)

    def test_large_amount_warns(self, validator):
        result = validator.validate(_draft(amount=Decimal("250000")))
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_long_description_warns(self, validator):
        result = validator.validate(_draft(description="d" * 501))
        assert result.is_valid
        assert "too_long" in _issue_types(result)

    def test_description_at_limit_is_quiet(self, validator):
        assert "too_long" not in _issue_types(validator.validate(_draft(description="d" * 500)))

    def test_custom_category_is_info(self, validator):
        result = validator.validate(_draft(category="Pets"))
        assert result.is_valid
        assert result.warnings == []
        assert result.issues[0].severity == "info"


class TestSummary:

    def test_friendly_summary(self, validator):
        ok = validator.get_user_friendly_summary(validator.validate(_draft()))
        bad = validator.get_user_friendly_summary(validator.validate(_draft(amount=Decimal("0"))))
        assert ok.startswith("✅")
        assert "greater than zero" in bad
