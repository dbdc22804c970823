"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger on local disk and sync it to Google Sheets
2. Use in-memory storage for testing
3. Swap the cloud backend later without touching the flows

The interface is intentionally simple - the ledger is small and is
always loaded and saved as a whole list. add/update/delete exist so
backends that can do better than a full rewrite are free to.
"""

from abc import ABC, abstractmethod

from smartspend.models.audit import AuditEvent
from smartspend.models.transaction import Transaction, TransactionDraft


class TransactionStorageInterface(ABC):
    """
    Abstract interface for ledger storage.

    Implementations return transactions that have already been through
    load-time migration (see ``migration.normalize_record``).
    """

    @abstractmethod
    async def load(self) -> list[Transaction]:
        """
        Load the whole ledger.

        Returns:
            All transactions, in stored order (newest entries first)

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def save(self, transactions: list[Transaction]) -> bool:
        """
        Replace the stored ledger with ``transactions``.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def add(self, draft: TransactionDraft) -> Transaction:
        """
        Assign an id to ``draft`` and store it.

        Returns:
            The stored transaction
        """
        pass

    @abstractmethod
    async def update(self, transaction: Transaction) -> bool:
        """
        Replace the record with the same id.

        Raises:
            NotFoundError: If no record has that id
        """
        pass

    @abstractmethod
    async def delete(self, transaction_id: str) -> bool:
        """
        Delete a record by id.

        Returns:
            True if something was deleted, False if the id was unknown
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
