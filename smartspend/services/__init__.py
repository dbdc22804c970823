"""Services package."""

from smartspend.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    InMemoryTransactionStorage,
    LocalJsonTransactionStorage,
    NotFoundError,
    StorageConnectionError,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStorage",
    "InMemoryTransactionStorage",
    "LocalJsonTransactionStorage",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    "TransactionStorageInterface",
]
