"""
Storage Services Package

Provides the key/value interface the ledger is persisted through and its
implementations: in-memory, JSON file and Google Sheets.
"""

from debt_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    KeyValueStoreInterface,
    PersistenceUnavailableError,
    StorageError,
)
from debt_tracker.services.storage.local import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)
from debt_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStoreInterface",
    # Exceptions
    "ConnectionError",
    "PersistenceUnavailableError",
    "StorageError",
    # Local implementations
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
]
