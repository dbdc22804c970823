"""
Ledger Aggregator

Pure folds over a list of transactions:
- lifetime balance of each fixed account
- period-scoped flow summary (income, expenses, savings rate)
- balances replayed up to a cutoff instant

Nothing here raises on bad data. A record with an unknown account
contributes nothing to that leg; a record without a date is left out
of anything date-bounded.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from smartspend.models.transaction import (
    ACCOUNT_IDS,
    AccountBalances,
    AccountFilter,
    FinancialSummary,
    Transaction,
    TransactionType,
    parse_timestamp,
)


ZERO = Decimal("0")


def _credit(totals: dict[str, Decimal], account: Optional[str], amount: Decimal) -> None:
    if account in totals:
        totals[account] += amount


def compute_account_balances(transactions: Iterable[Transaction]) -> AccountBalances:
    """
    Fold the whole ledger into the three account balances.

    income adds to the source account, expense subtracts from it,
    transfer subtracts from the source and adds to the target.
    Balances can go negative; this is a passive ledger, not a bank.
    """
    totals = {account: ZERO for account in ACCOUNT_IDS}

    for t in transactions:
        if t.type == TransactionType.INCOME:
            _credit(totals, t.account_id, t.amount)
        elif t.type == TransactionType.EXPENSE:
            _credit(totals, t.account_id, -t.amount)
        elif t.type == TransactionType.TRANSFER:
            _credit(totals, t.account_id, -t.amount)
            _credit(totals, t.target_account_id, t.amount)

    return AccountBalances(**totals)


def savings_rate(income: Decimal, expenses: Decimal) -> float:
    """Percentage of income kept. Zero when there is no income."""
    if income <= 0:
        return 0.0
    return float((income - expenses) / income * 100)


def compute_flows(
    filtered: Iterable[Transaction],
    account_filter: Union[AccountFilter, str] = AccountFilter.ALL,
) -> tuple[Decimal, Decimal]:
    """
    Sum income and expenses over an already filtered list.

    Unscoped, transfers are internal movements and count for nothing.
    Scoped to one account, a transfer out of it is an expense and a
    transfer into it is income.
    """
    scope = AccountFilter(account_filter)
    income = ZERO
    expenses = ZERO

    if scope == AccountFilter.ALL:
        for t in filtered:
            if t.type == TransactionType.INCOME:
                income += t.amount
            elif t.type == TransactionType.EXPENSE:
                expenses += t.amount
        return income, expenses

    account = scope.value
    for t in filtered:
        is_source = t.account_id == account
        is_target = t.target_account_id == account

        if t.type == TransactionType.INCOME and is_source:
            income += t.amount
        elif t.type == TransactionType.EXPENSE and is_source:
            expenses += t.amount
        elif t.type == TransactionType.TRANSFER:
            if is_source:
                expenses += t.amount
            if is_target:
                income += t.amount

    return income, expenses


def compute_summary(
    filtered: Sequence[Transaction],
    lifetime: Union[AccountBalances, Iterable[Transaction]],
    account_filter: Union[AccountFilter, str] = AccountFilter.ALL,
) -> FinancialSummary:
    """
    Build the summary card for a window.

    Args:
        filtered: Transactions already narrowed by period and account
        lifetime: The full ledger, or its precomputed balances.
                  Never the filtered window.
        account_filter: 'all' or the account the view is scoped to

    The balance figures are always lifetime balances, whatever window
    the flows cover.
    """
    filtered = list(filtered)
    income, expenses = compute_flows(filtered, account_filter)
    if isinstance(lifetime, AccountBalances):
        balances = lifetime
    else:
        balances = compute_account_balances(lifetime)

    return FinancialSummary(
        total_income=income,
        total_expenses=expenses,
        balance=income - expenses,
        savings_rate=savings_rate(income, expenses),
        salary_account_balance=balances.salary,
        savings_account_balance=balances.savings,
        cash_balance=balances.cash,
    )


def historical_balance_as_of(
    transactions: Iterable[Transaction],
    cutoff: Union[datetime, str],
) -> AccountBalances:
    """
    Account balances as they stood at ``cutoff``.

    Replays the entire history every call, skipping anything dated
    strictly after the cutoff (and anything undated).
    """
    limit = parse_timestamp(cutoff)
    if limit is None:
        raise ValueError(f"Invalid cutoff timestamp: {cutoff!r}")

    return compute_account_balances(
        t for t in transactions
        if t.date is not None and t.date <= limit
    )
