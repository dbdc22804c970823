"""
Data Models Package

This package contains all Pydantic models used in SmartSpend.
All data flowing through the system must conform to these schemas.
"""

from smartspend.models.transaction import (
    ACCOUNT_IDS,
    AccountBalances,
    AccountFilter,
    AccountId,
    BazarTrip,
    Category,
    FinancialSummary,
    FlowRow,
    LendingEntry,
    LendingKind,
    Period,
    PersonBalance,
    TopItem,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    parse_timestamp,
    local_now,
    local_timezone,
)
from smartspend.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from smartspend.models.state import AppState, Tab, Theme

__all__ = [
    # Ledger models
    "ACCOUNT_IDS",
    "AccountBalances",
    "AccountFilter",
    "AccountId",
    "BazarTrip",
    "Category",
    "FinancialSummary",
    "FlowRow",
    "LendingEntry",
    "LendingKind",
    "Period",
    "PersonBalance",
    "TopItem",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "parse_timestamp",
    "local_now",
    "local_timezone",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # View state
    "AppState",
    "Tab",
    "Theme",
]
