"""Ledger core: pure aggregation, filtering and report roll-ups."""

from smartspend.ledger.aggregator import (
    compute_account_balances,
    compute_flows,
    compute_summary,
    historical_balance_as_of,
    savings_rate,
)
from smartspend.ledger.filters import (
    day_key,
    filter_by_account,
    filter_by_period,
    group_by_key,
    minute_key,
    month_key,
    normalize_description,
    shift_month,
    top_n_by_description,
)
from smartspend.ledger.snapshot import LedgerSnapshot

__all__ = [
    # Aggregation
    "compute_account_balances",
    "compute_flows",
    "compute_summary",
    "historical_balance_as_of",
    "savings_rate",
    # Filters and grouping
    "day_key",
    "filter_by_account",
    "filter_by_period",
    "group_by_key",
    "minute_key",
    "month_key",
    "normalize_description",
    "shift_month",
    "top_n_by_description",
    # Snapshot
    "LedgerSnapshot",
]
