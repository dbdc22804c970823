"""
Report roll-ups for the dashboard, Bazar and monthly report views.

Built on the filter/grouping primitives; every function takes the
snapshot it should report on and returns plain models.
"""

import calendar
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Union

from smartspend.ledger.aggregator import historical_balance_as_of
from smartspend.ledger.filters import (
    filter_by_period,
    group_by_key,
    minute_key,
    month_key,
    top_n_by_description,
)
from smartspend.models.transaction import (
    AccountBalances,
    BazarTrip,
    Category,
    FlowRow,
    Period,
    TopItem,
    Transaction,
    TransactionType,
)


MONTH_LABELS = [calendar.month_abbr[m] for m in range(1, 13)]


def _expenses(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.type == TransactionType.EXPENSE]


def _add_flow(row: FlowRow, t: Transaction) -> FlowRow:
    if t.type == TransactionType.INCOME:
        return row.model_copy(update={"income": row.income + t.amount})
    if t.type == TransactionType.EXPENSE:
        return row.model_copy(update={"expense": row.expense + t.amount})
    return row


def expenses_by_category(transactions: Iterable[Transaction]) -> list[tuple[str, Decimal]]:
    """Expense totals per category label, largest first."""
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for t in _expenses(transactions):
        totals[t.category] += t.amount
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def top_expense_items(transactions: Iterable[Transaction], n: int = 5) -> list[TopItem]:
    return top_n_by_description(_expenses(transactions), n)


def daily_flow(transactions: Iterable[Transaction]) -> list[FlowRow]:
    """Income/expense per day of month, for the month chart. Transfers are not flows."""
    rows: dict[int, FlowRow] = {}
    for t in transactions:
        if t.date is None:
            continue
        day = t.date.day
        row = rows.get(day) or FlowRow(label=str(day))
        rows[day] = _add_flow(row, t)
    return [rows[day] for day in sorted(rows)]


def monthly_flow(transactions: Iterable[Transaction]) -> list[FlowRow]:
    """Income/expense for Jan..Dec, zero-filled, for the year chart."""
    rows = [FlowRow(label=label) for label in MONTH_LABELS]
    for t in transactions:
        if t.date is None:
            continue
        index = t.date.month - 1
        rows[index] = _add_flow(rows[index], t)
    return rows


# =============================================================================
# BAZAR
# =============================================================================

def is_bazar(t: Transaction) -> bool:
    return t.category == Category.BAZAR.value


def bazar_transactions(
    transactions: Iterable[Transaction],
    reference_now: Union[datetime, str, None] = None,
) -> list[Transaction]:
    """Bazar items in the reference month."""
    return filter_by_period(
        (t for t in transactions if is_bazar(t)),
        Period.MONTH,
        reference_now,
    )


def bazar_trips(transactions: Iterable[Transaction]) -> list[BazarTrip]:
    """
    Cluster Bazar items into trips by minute bucket.

    Most recent trip first; items keep their entry order.
    """
    trips = []
    for key, items in group_by_key(transactions, minute_key).items():
        trips.append(BazarTrip(
            key=key,
            started_at=datetime.fromisoformat(key),
            total=sum((t.amount for t in items), Decimal("0")),
            items=items,
        ))
    return trips


def bazar_monthly_report(
    transactions: Iterable[Transaction],
) -> dict[str, tuple[Decimal, list[BazarTrip]]]:
    """
    Month key -> (month total, trips in that month).

    Covers every month with Bazar spending, most recent first.
    """
    report = {}
    bazar = [t for t in transactions if is_bazar(t)]
    for key, items in group_by_key(bazar, month_key).items():
        total = sum((t.amount for t in items), Decimal("0"))
        report[key] = (total, bazar_trips(items))
    return report


# =============================================================================
# HISTORICAL
# =============================================================================

def month_end(month: str) -> datetime:
    """Last instant of a YYYY-MM month."""
    year, month_number = (int(part) for part in month.split("-"))
    last_day = calendar.monthrange(year, month_number)[1]
    return datetime(year, month_number, last_day, 23, 59, 59, 999999)


def month_end_balances(
    transactions: Iterable[Transaction],
    month: str,
) -> AccountBalances:
    """Account balances at the close of ``month`` (YYYY-MM)."""
    return historical_balance_as_of(transactions, month_end(month))
