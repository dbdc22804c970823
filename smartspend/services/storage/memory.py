"""In-process ledger storage. Nothing survives a restart; used by tests and demos."""

from typing import Optional

from smartspend.models.transaction import AccountId, Transaction, TransactionDraft
from smartspend.services.storage.interface import (
    NotFoundError,
    TransactionStorageInterface,
)
from smartspend.services.storage.migration import normalize_records


class InMemoryTransactionStorage(TransactionStorageInterface):
    """
    Ledger storage that lives only as long as the process.

    Records are kept in their persisted (dict) shape so tests exercise
    the same migration path as the file store.
    """

    def __init__(
        self,
        records: Optional[list] = None,
        default_account: str = AccountId.SALARY.value,
    ):
        self._records: list = list(records or [])
        self._default_account = default_account
        self.last_migration = None

    @property
    def records(self) -> list:
        return list(self._records)

    async def load(self) -> list[Transaction]:
        result = normalize_records(self._records, self._default_account)
        self.last_migration = result
        return result.transactions

    async def save(self, transactions: list[Transaction]) -> bool:
        unreadable = self.last_migration.unreadable if self.last_migration else []
        self._records = [t.to_record() for t in transactions] + list(unreadable)
        return True

    async def add(self, draft: TransactionDraft) -> Transaction:
        transaction = Transaction.from_draft(draft)
        self._records.insert(0, transaction.to_record())
        return transaction

    async def update(self, transaction: Transaction) -> bool:
        for index, record in enumerate(self._records):
            if isinstance(record, dict) and record.get("id") == transaction.id:
                self._records[index] = transaction.to_record()
                return True
        raise NotFoundError(f"Transaction not found: {transaction.id}")

    async def delete(self, transaction_id: str) -> bool:
        before = len(self._records)
        self._records = [
            r for r in self._records
            if not (isinstance(r, dict) and r.get("id") == transaction_id)
        ]
        return len(self._records) != before
