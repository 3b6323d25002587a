"""Services package."""

from debt_tracker.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    PersistenceUnavailableError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStoreInterface",
    "PersistenceUnavailableError",
    "StorageError",
]
