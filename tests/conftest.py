"""Shared fixtures: a controllable clock and in-memory stores."""

from typing import Optional

import pytest

from debt_tracker.audit import AuditLogger
from debt_tracker.controller import LedgerController
from debt_tracker.models.ledger import MS_PER_DAY
from debt_tracker.repository import LedgerRepository
from debt_tracker.services.storage import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    KeyValueStoreInterface,
    PersistenceUnavailableError,
)


T0 = 1_700_000_000_000


class FakeClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, days: int = 0, ms: int = 0) -> int:
        self.now += days * MS_PER_DAY + ms
        return self.now


class FailingWriteStore(KeyValueStoreInterface):
    """Reads work (from an in-memory dict); every write fails."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        raise PersistenceUnavailableError("quota exceeded")


class UnreadableStore(KeyValueStoreInterface):
    def get(self, key: str) -> Optional[str]:
        raise PersistenceUnavailableError("store offline")

    def set(self, key: str, value: str) -> None:
        raise PersistenceUnavailableError("store offline")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


def build_controller(store, clock, audit_storage=None, max_history: int = 10) -> LedgerController:
    repository = LedgerRepository(store=store, clock=clock, max_history=max_history)
    return LedgerController(
        repository=repository,
        audit_logger=AuditLogger(audit_storage),
        clock=clock,
    )


@pytest.fixture
def controller(store, clock, audit_storage) -> LedgerController:
    return build_controller(store, clock, audit_storage)
