"""
Filtering and grouping over a ledger snapshot.

All functions return new lists/dicts and leave their input untouched.
Records with no usable date are excluded from date predicates and
from date-keyed groups.
"""

import calendar
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from smartspend.models.transaction import (
    AccountFilter,
    Period,
    TopItem,
    Transaction,
    parse_timestamp,
    local_now,
)


KeyFn = Callable[[Transaction], Optional[str]]


def _reference(reference_now: Union[datetime, str, None]) -> datetime:
    if reference_now is None:
        return local_now()
    parsed = parse_timestamp(reference_now)
    if parsed is None:
        raise ValueError(f"Invalid reference timestamp: {reference_now!r}")
    return parsed


def filter_by_period(
    transactions: Iterable[Transaction],
    period: Union[Period, str],
    reference_now: Union[datetime, str, None] = None,
) -> list[Transaction]:
    """Keep transactions in the same calendar month (or year) as ``reference_now``."""
    period = Period(period)
    reference = _reference(reference_now)

    def in_period(t: Transaction) -> bool:
        if t.date is None:
            return False
        if t.date.year != reference.year:
            return False
        if period == Period.MONTH:
            return t.date.month == reference.month
        return True

    return [t for t in transactions if in_period(t)]


def shift_month(reference: datetime, delta: int) -> datetime:
    """
    Move ``reference`` by ``delta`` calendar months.

    The day is clamped to the length of the target month,
    so Jan 31 + 1 month is Feb 28/29.
    """
    month_index = reference.month - 1 + delta
    year = reference.year + month_index // 12
    month = month_index % 12 + 1
    day = min(reference.day, calendar.monthrange(year, month)[1])
    return reference.replace(year=year, month=month, day=day)


def filter_by_account(
    transactions: Iterable[Transaction],
    account_filter: Union[AccountFilter, str] = AccountFilter.ALL,
) -> list[Transaction]:
    """
    Statement view of one account.

    A transfer shows up on both endpoints' statements.
    """
    scope = AccountFilter(account_filter)
    if scope == AccountFilter.ALL:
        return list(transactions)
    account = scope.value
    return [
        t for t in transactions
        if t.account_id == account or t.target_account_id == account
    ]


# =============================================================================
# GROUPING
# =============================================================================

def day_key(t: Transaction) -> Optional[str]:
    """YYYY-MM-DD"""
    if t.date is None:
        return None
    return t.date.date().isoformat()


def minute_key(t: Transaction) -> Optional[str]:
    """
    YYYY-MM-DDTHH:MM

    Items entered together (a Bazar trip) share the same minute,
    so they land in one bucket.
    """
    if t.date is None:
        return None
    return t.date.replace(second=0, microsecond=0).isoformat(timespec="minutes")


def month_key(t: Transaction) -> Optional[str]:
    """YYYY-MM"""
    if t.date is None:
        return None
    return f"{t.date.year:04d}-{t.date.month:02d}"


def group_by_key(
    transactions: Iterable[Transaction],
    key_fn: KeyFn,
    descending: bool = True,
) -> dict[str, list[Transaction]]:
    """
    Group transactions by ``key_fn``.

    Groups are ordered by key (most recent first by default, since
    all keys above sort chronologically as strings). Members keep
    their original relative order. Records whose key is None are
    skipped.
    """
    groups: dict[str, list[Transaction]] = {}
    for t in transactions:
        key = key_fn(t)
        if key is None:
            continue
        groups.setdefault(key, []).append(t)

    return dict(sorted(groups.items(), key=lambda item: item[0], reverse=descending))


# =============================================================================
# RANKING
# =============================================================================

def normalize_description(description: Optional[str]) -> str:
    """Case-folded, whitespace-trimmed description used as an item key."""
    return (description or "").strip().casefold()


def top_n_by_description(
    transactions: Iterable[Transaction],
    n: int,
) -> list[TopItem]:
    """
    Rank items by total amount.

    "Milk", "milk " and "MILK" are the same item. Blank descriptions
    are not ranked. Ties keep first-seen order.
    """
    if n <= 0:
        return []

    totals: dict[str, Decimal] = defaultdict(Decimal)
    counts: dict[str, int] = defaultdict(int)

    for t in transactions:
        key = normalize_description(t.description)
        if not key:
            continue
        totals[key] += t.amount
        counts[key] += 1

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        TopItem(description=key, total=total, count=counts[key])
        for key, total in ranked[:n]
    ]
