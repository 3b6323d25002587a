"""
Abstract Storage Interface

DESIGN DECISION: Ledger state is persisted through a plain key/value store.
This allows us to:
1. Keep the on-disk layout identical to the browser version (three keys)
2. Use in-memory storage for testing
3. Swap a local JSON file for Google Sheets without touching the controller

Calls are synchronous: every ledger command runs to completion before the
next one starts, and the save is part of the command.
"""

from abc import ABC, abstractmethod
from typing import Optional

from debt_tracker.models.audit import AuditEvent


class KeyValueStoreInterface(ABC):
    """
    Abstract string key/value store.

    Any storage implementation (memory, JSON file, Google Sheets)
    must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Args:
            key: The key to read

        Returns:
            The stored string, or None if the key was never set

        Raises:
            PersistenceUnavailableError: If the store cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Write a value.

        Raises:
            PersistenceUnavailableError: If the write fails
        """
        pass

    def set_many(self, values: dict[str, str]) -> None:
        """
        Write several values.

        Backends that can write in one round trip should override this.
        """
        for key, value in values.items():
            self.set(key, value)


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceUnavailableError(StorageError):
    """The store is inaccessible or refused the write."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
