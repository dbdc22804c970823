"""
Entry Validation

DESIGN DECISION: Validation happens once, at entry, before a draft
becomes a Transaction. It has two stages:

STAGE 1 - SHAPE VALIDATION:
- Positive amount
- Description present (non-transfers)
- Transfer endpoints present and distinct
- This catches entries the ledger cannot represent

STAGE 2 - SANITY CHECKS:
- Future dates
- Absurd amounts and overlong descriptions
- Free-form categories
- This catches entries that are representable but suspicious

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; the aggregator never consults the validator, so
legacy records that would fail here still load and aggregate.
"""

from datetime import timedelta
from decimal import Decimal
from typing import Optional

from smartspend.config import AppSettings, get_settings
from smartspend.models.transaction import (
    ACCOUNT_IDS,
    Category,
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
    local_now,
)


class TransactionValidator:
    """
    Validates transaction drafts through a two-stage pipeline.

    Stage 1: Shape validation (blocking errors)
    Stage 2: Sanity checks (warnings and info)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_shape(self, draft: TransactionDraft) -> list[ValidationIssue]:
        issues = []

        if draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter a positive amount",
            ))

        if not draft.is_transfer and not draft.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
                suggested_fix="Describe what the money was for",
            ))

        if draft.account_id not in ACCOUNT_IDS:
            issues.append(ValidationIssue(
                field="accountId",
                issue_type="invalid_value",
                message=f"Unknown account '{draft.account_id}'",
                severity="error",
                suggested_fix="Choose salary, savings or cash",
            ))

        if draft.is_transfer:
            if not draft.target_account_id:
                issues.append(ValidationIssue(
                    field="targetAccountId",
                    issue_type="missing",
                    message="A transfer needs a destination account",
                    severity="error",
                    suggested_fix="Choose where the money goes",
                ))
            elif draft.target_account_id not in ACCOUNT_IDS:
                issues.append(ValidationIssue(
                    field="targetAccountId",
                    issue_type="invalid_value",
                    message=f"Unknown account '{draft.target_account_id}'",
                    severity="error",
                    suggested_fix="Choose salary, savings or cash",
                ))
            elif draft.target_account_id == draft.account_id:
                issues.append(ValidationIssue(
                    field="targetAccountId",
                    issue_type="self_transfer",
                    message="Cannot transfer to the same account",
                    severity="error",
                    suggested_fix="Choose a different destination account",
                ))

        return issues

    def _validate_sanity(self, draft: TransactionDraft) -> list[ValidationIssue]:
        issues = []

        if not draft.is_transfer and draft.target_account_id:
            issues.append(ValidationIssue(
                field="targetAccountId",
                issue_type="ignored",
                message="Destination account is only used by transfers and will be dropped",
                severity="warning",
            ))

        max_future_date = local_now() + timedelta(days=self._settings.future_date_tolerance_days)
        if draft.date is not None and draft.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({draft.date:%Y-%m-%d}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if len(draft.description) > self._settings.max_description_length:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description is longer than {self._settings.max_description_length} characters",
                severity="warning",
                suggested_fix="Shorten the description",
            ))

        max_amount = Decimal(str(self._settings.max_transaction_amount))
        if draft.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=(
                    f"Amount ({self._settings.currency_symbol} {draft.amount:,.2f}) "
                    "seems unusually high"
                ),
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        known = {category.value for category in Category}
        if draft.category not in known:
            issues.append(ValidationIssue(
                field="category",
                issue_type="custom_category",
                message=f"'{draft.category}' is not one of the standard categories",
                severity="info",
            ))

        return issues

    def validate(self, draft: TransactionDraft) -> ValidationResult:
        """
        Run both stages.

        Stage 2 only runs when stage 1 found no errors, so the user
        fixes blocking problems first.
        """
        issues = self._validate_shape(draft)
        if not any(issue.severity == "error" for issue in issues):
            issues.extend(self._validate_sanity(draft))
        return ValidationResult(issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short summary shown under the entry form."""
        if result.is_valid and not result.warnings:
            return "✅ Looks good."

        lines = []
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"❌ {issue.message}")
            elif issue.severity == "warning":
                lines.append(f"⚠️ {issue.message}")
        return "\n".join(lines)
