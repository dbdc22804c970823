"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The ledger lives in a local JSON file; Google Sheets is the optional cloud copy.
"""

from smartspend.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
    TransactionStorageInterface,
)
from smartspend.services.storage.migration import (
    MigrationResult,
    normalize_record,
    normalize_records,
)
from smartspend.services.storage.local_json import LocalJsonTransactionStorage
from smartspend.services.storage.memory import InMemoryTransactionStorage
from smartspend.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Migration
    "MigrationResult",
    "normalize_record",
    "normalize_records",
    # Local implementations
    "InMemoryTransactionStorage",
    "LocalJsonTransactionStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionStorage",
]
