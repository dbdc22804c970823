"""
Core Data Models for SmartSpend

These models define the schemas for all data flowing through the ledger.
They are designed to:
1. Carry exactly the shape that is persisted (camelCase on the wire)
2. Tolerate legacy records (missing dates, unknown accounts)
3. Be serializable for storage, prompts and logging

DESIGN DECISION: The Transaction model is deliberately lenient about
account ids and dates. Strict checks live in the entry validator;
the aggregator simply skips what it cannot use.
"""

from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Any, Optional
from uuid import uuid4
from zoneinfo import ZoneInfo

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from smartspend.config import get_settings


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a ledger entry."""
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class AccountId(str, Enum):
    """
    The three fixed money pools.

    Accounts are not stored entities - balances are always derived
    by folding over the ledger.
    """
    SALARY = "salary"
    SAVINGS = "savings"
    CASH = "cash"


ACCOUNT_IDS: tuple[str, ...] = tuple(account.value for account in AccountId)


class AccountFilter(str, Enum):
    """Account scope for statements and summaries."""
    ALL = "all"
    SALARY = "salary"
    SAVINGS = "savings"
    CASH = "cash"


class Period(str, Enum):
    """Reporting window relative to a reference instant."""
    MONTH = "month"
    YEAR = "year"


class Category(str, Enum):
    """
    Recommended categories.

    Users may still type any label; these are the ones the
    forms offer and the reports know about.
    """
    FOOD = "Food & Dining"
    BAZAR = "Bazar & Groceries"
    TRANSPORT = "Transportation"
    UTILITIES = "Utilities"
    HOUSING = "Housing"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTH = "Health"
    SALARY = "Salary"
    INVESTMENT = "Investment"
    TRANSFER = "Transfer"
    LENDING = "Lending"
    OTHER = "Other"

    @classmethod
    def canonical(cls, label: Optional[str]) -> Optional[str]:
        """
        Trim a label and match it case-insensitively to a known category.

        Unknown labels come back trimmed but otherwise untouched.
        Blank labels come back as None.
        """
        if label is None:
            return None
        cleaned = str(label).strip()
        if not cleaned:
            return None
        folded = cleaned.casefold()
        for category in cls:
            if category.value.casefold() == folded or category.name.casefold() == folded:
                return category.value
        return cleaned


# =============================================================================
# TIMESTAMP PARSING
# =============================================================================

@lru_cache(maxsize=1)
def local_timezone() -> tzinfo:
    """The user's calendar zone (``AppSettings.timezone``)."""
    return ZoneInfo(get_settings().app.timezone)


def parse_timestamp(value: Any, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    Parse a stored timestamp into naive wall-clock time on the user's calendar.

    Accepts datetimes, dates (midnight) and ISO-8601 strings, with or
    without a time component or a trailing 'Z'. Values carrying an
    offset are converted to ``tz`` (default: the configured local zone);
    naive values are taken to already be local. Anything unparsable
    returns None so the record can be excluded from date aggregates.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz or local_timezone()).replace(tzinfo=None)
    return parsed


def local_now() -> datetime:
    """Current wall-clock time on the user's calendar, comparable with stored dates."""
    return datetime.now(local_timezone()).replace(tzinfo=None)


def _enum_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


# =============================================================================
# CORE TRANSACTION MODELS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    A transaction before it has an id.

    This is what the entry forms and helpers produce. The storage
    adapter turns it into a Transaction.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    amount: Decimal = Field(
        ...,
        ge=0,
        description="Positive magnitude; direction comes from type"
    )
    type: TransactionType = Field(
        ...,
        description="income, expense or transfer"
    )
    category: str = Field(
        default=Category.OTHER.value,
        description="Category label (recommended enumeration or free text)"
    )
    description: str = Field(
        default="",
        description="Free text; required for non-transfers at entry"
    )
    date: Optional[datetime] = Field(
        default=None,
        description="When it happened (local wall-clock time); None if unparsable"
    )
    account_id: str = Field(
        default=AccountId.SALARY.value,
        alias="accountId",
        description="Source account"
    )
    target_account_id: Optional[str] = Field(
        default=None,
        alias="targetAccountId",
        description="Destination account, transfers only"
    )
    raw_date: Optional[str] = Field(
        default=None,
        exclude=True,
        description="Stored date text that could not be parsed, written back unchanged"
    )

    @model_validator(mode="before")
    @classmethod
    def keep_unparsable_date(cls, data: Any) -> Any:
        if isinstance(data, dict):
            value = data.get("date")
            if isinstance(value, str) and value.strip() and parse_timestamp(value) is None:
                data = {**data, "raw_date": value}
        return data

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Optional[datetime]:
        return parse_timestamp(v)

    @field_validator("category", "account_id", "target_account_id", mode="before")
    @classmethod
    def unwrap_enums(cls, v: Any) -> Any:
        return _enum_value(v)

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)

    @field_serializer("date", when_used="json")
    def serialize_date(self, value: Optional[datetime]) -> Optional[str]:
        # Stored with the local offset so the instant survives a zone change
        if value is None:
            return None
        return value.replace(tzinfo=local_timezone()).isoformat()

    @property
    def is_transfer(self) -> bool:
        return self.type == TransactionType.TRANSFER


class Transaction(TransactionDraft):
    """
    The atomic ledger entry.

    Transactions are immutable; an update replaces the whole record
    (see LedgerSnapshot.with_updated).
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Opaque unique identifier"
    )

    @classmethod
    def from_draft(
        cls,
        draft: TransactionDraft,
        transaction_id: Optional[str] = None,
    ) -> "Transaction":
        """Assign an id to a draft."""
        data = draft.model_dump()
        data["raw_date"] = draft.raw_date
        if transaction_id:
            data["id"] = transaction_id
        return cls(**data)

    def to_record(self) -> dict:
        """
        Convert to the persisted record shape.

        camelCase keys, JSON-safe values. Fields without a meaningful
        value are omitted - some backends reject explicit nulls.
        """
        record = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if self.date is None and self.raw_date:
            record["date"] = self.raw_date
        if not self.is_transfer:
            record.pop("targetAccountId", None)
        return record


# =============================================================================
# AGGREGATE MODELS
# =============================================================================

class AccountBalances(BaseModel):
    """Lifetime balance of each fixed account. May be negative."""

    salary: Decimal = Decimal("0")
    savings: Decimal = Decimal("0")
    cash: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.salary + self.savings + self.cash

    def get(self, account: str) -> Decimal:
        return getattr(self, _enum_value(account))


class FinancialSummary(BaseModel):
    """
    Period-scoped flows plus lifetime balances.

    Flows answer "what happened in the selected window";
    balances answer "how much is in each account right now".
    """

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    savings_rate: float = 0.0
    salary_account_balance: Decimal = Decimal("0")
    savings_account_balance: Decimal = Decimal("0")
    cash_balance: Decimal = Decimal("0")


class TopItem(BaseModel):
    """A ranked spending item (normalized description)."""

    description: str
    total: Decimal
    count: int = Field(ge=1)


class FlowRow(BaseModel):
    """One bar of the income/expense chart."""

    label: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


class BazarTrip(BaseModel):
    """Bazar items entered in the same minute - one market trip."""

    key: str = Field(..., description="Minute bucket, YYYY-MM-DDTHH:MM")
    started_at: datetime
    total: Decimal
    items: list[Transaction] = Field(default_factory=list)


# =============================================================================
# LENDING MODELS
# =============================================================================

class LendingKind(str, Enum):
    LEND = "lend"
    RECOVER = "recover"


class LendingEntry(BaseModel):
    """A lending transaction resolved to a person."""

    name: str
    kind: LendingKind
    amount: Decimal


class PersonBalance(BaseModel):
    """Outstanding amount for one borrower."""

    name: str
    balance: Decimal = Decimal("0")
    last_activity: Optional[datetime] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'self_transfer')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a draft at entry.

    Errors block the save; warnings and info are shown to the user.
    """

    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
