"""
Local JSON Storage

The primary store: one JSON file holding the whole ledger as an array
of camelCase records. Works offline, needs no configuration, and is
what the app reads on startup. Cloud sync is layered on top.

Writes go to a temporary file first and are then moved into place,
so a crash mid-write leaves the previous ledger intact.
"""

import json
import os
from pathlib import Path
from typing import Union

import structlog

from smartspend.models.transaction import AccountId, Transaction, TransactionDraft
from smartspend.services.storage.interface import (
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)
from smartspend.services.storage.migration import normalize_records


logger = structlog.get_logger(__name__)


class LocalJsonTransactionStorage(TransactionStorageInterface):
    """File-backed ledger storage."""

    def __init__(
        self,
        path: Union[str, Path],
        default_account: str = AccountId.SALARY.value,
    ):
        self._path = Path(path)
        self._default_account = default_account
        self.last_migration = None

    @property
    def path(self) -> Path:
        return self._path

    def _read_records(self) -> list:
        if not self._path.exists():
            return []
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read ledger file {self._path}: {e}")
        if not text.strip():
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Ledger file {self._path} is not valid JSON: {e}")
        if not isinstance(data, list):
            raise StorageError(f"Ledger file {self._path} does not hold a list")
        return data

    def _write_records(self, records: list[dict]) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(records, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write ledger file {self._path}: {e}")

    async def load(self) -> list[Transaction]:
        result = normalize_records(self._read_records(), self._default_account)
        self.last_migration = result
        logger.debug("ledger_file_loaded", path=str(self._path), count=len(result.transactions))
        return result.transactions

    async def save(self, transactions: list[Transaction]) -> bool:
        """Write the ledger. Records the last load could not read are kept at the end."""
        unreadable = self.last_migration.unreadable if self.last_migration else []
        self._write_records([t.to_record() for t in transactions] + list(unreadable))
        return True

    async def add(self, draft: TransactionDraft) -> Transaction:
        transaction = Transaction.from_draft(draft)
        transactions = await self.load()
        await self.save([transaction] + transactions)
        return transaction

    async def update(self, transaction: Transaction) -> bool:
        transactions = await self.load()
        for index, existing in enumerate(transactions):
            if existing.id == transaction.id:
                transactions[index] = transaction
                return await self.save(transactions)
        raise NotFoundError(f"Transaction not found: {transaction.id}")

    async def delete(self, transaction_id: str) -> bool:
        transactions = await self.load()
        remaining = [t for t in transactions if t.id != transaction_id]
        if len(remaining) == len(transactions):
            return False
        return await self.save(remaining)
