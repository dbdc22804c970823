"""
Ledger Snapshot

An immutable view of the transaction list. Mutations return a new
snapshot (whole-list replace), so whoever holds a snapshot can keep
using it while a newer one is being saved or synced.

Balances are memoised per snapshot object; a new snapshot recomputes
from scratch.
"""

from datetime import datetime
from functools import cached_property
from typing import Iterable, Iterator, Optional, Union

from smartspend.ledger.aggregator import compute_account_balances, compute_summary
from smartspend.ledger.filters import filter_by_account, filter_by_period
from smartspend.models.transaction import (
    AccountBalances,
    AccountFilter,
    FinancialSummary,
    Period,
    Transaction,
)


class LedgerSnapshot:
    """The current list of transactions, newest entries first."""

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._transactions: tuple[Transaction, ...] = tuple(transactions)

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._transactions

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self._transactions)

    def __repr__(self) -> str:
        return f"LedgerSnapshot({len(self._transactions)} transactions)"

    @cached_property
    def balances(self) -> AccountBalances:
        return compute_account_balances(self._transactions)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        for t in self._transactions:
            if t.id == transaction_id:
                return t
        return None

    # -- whole-list replace ---------------------------------------------------

    def with_added(self, transaction: Transaction) -> "LedgerSnapshot":
        return LedgerSnapshot((transaction,) + self._transactions)

    def with_added_all(self, transactions: Iterable[Transaction]) -> "LedgerSnapshot":
        """Add several records at once, as if added one after another."""
        return LedgerSnapshot(tuple(reversed(tuple(transactions))) + self._transactions)

    def with_updated(self, transaction: Transaction) -> "LedgerSnapshot":
        """
        Replace the record with the same id.

        Raises:
            KeyError: If no record has that id
        """
        if self.get(transaction.id) is None:
            raise KeyError(transaction.id)
        return LedgerSnapshot(
            transaction if t.id == transaction.id else t
            for t in self._transactions
        )

    def with_deleted(self, transaction_id: str) -> "LedgerSnapshot":
        """Remove the record with that id. Unknown ids are a no-op."""
        return LedgerSnapshot(t for t in self._transactions if t.id != transaction_id)

    # -- views ----------------------------------------------------------------

    def filtered(
        self,
        period: Union[Period, str, None] = None,
        account_filter: Union[AccountFilter, str] = AccountFilter.ALL,
        reference_now: Union[datetime, str, None] = None,
    ) -> list[Transaction]:
        """Narrow by period (if given) and then by account."""
        transactions: Iterable[Transaction] = self._transactions
        if period is not None:
            transactions = filter_by_period(transactions, period, reference_now)
        return filter_by_account(transactions, account_filter)

    def summary(
        self,
        period: Union[Period, str] = Period.MONTH,
        account_filter: Union[AccountFilter, str] = AccountFilter.ALL,
        reference_now: Union[datetime, str, None] = None,
    ) -> FinancialSummary:
        filtered = self.filtered(period, account_filter, reference_now)
        return compute_summary(filtered, self.balances, account_filter)
