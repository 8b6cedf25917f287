"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
SQLite is the local store; the in-memory backend serves tests and
throwaway sessions. Both follow the same interface, so either can be
swapped in without changing ledger logic.
"""

from financefriend.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    sort_newest_first,
)
from financefriend.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
)
from financefriend.services.storage.sqlite import (
    SQLiteAuditStorage,
    SQLiteClient,
    SQLiteLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    "sort_newest_first",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    # SQLite implementation
    "SQLiteAuditStorage",
    "SQLiteClient",
    "SQLiteLedgerStorage",
]
