"""
Local Storage Implementations

InMemoryKeyValueStore backs the tests. JsonFileKeyValueStore is the default
for a single user on one machine: one JSON object on disk, the same shape as
the browser's localStorage for this app.
"""

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Optional

import structlog

from debt_tracker.models.audit import AuditEvent
from debt_tracker.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStoreInterface,
    PersistenceUnavailableError,
)


logger = structlog.get_logger(__name__)


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dict-backed store. Lives as long as the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def as_dict(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    Key/value store kept in a single JSON file.

    The whole file is rewritten on every save through a temp file and
    os.replace, so a crash mid-write leaves the previous save intact.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self, quarantine_corrupt: bool = False) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceUnavailableError(f"Cannot read {self._path}: {e}")
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            return self._corrupt(f"is not valid JSON: {e}", quarantine_corrupt)
        if not isinstance(data, dict):
            return self._corrupt("does not hold an object", quarantine_corrupt)
        return {str(k): str(v) for k, v in data.items()}

    def _corrupt(self, problem: str, quarantine: bool) -> dict[str, str]:
        """
        Raise for an unreadable file, or move it aside so a save can start
        from an empty object.
        """
        if not quarantine:
            raise PersistenceUnavailableError(f"State file {self._path} {problem}")

        aside = self._path.with_name(
            f"{self._path.name}.corrupt-{int(time.time() * 1000)}"
        )
        try:
            os.replace(self._path, aside)
        except OSError as e:
            raise PersistenceUnavailableError(f"Cannot move aside {self._path}: {e}")
        logger.warning(
            "state_file_corrupt_moved_aside",
            path=str(self._path),
            moved_to=str(aside),
            problem=problem,
        )
        return {}

    def _write_all(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceUnavailableError(f"Cannot write {self._path}: {e}")

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, values: dict[str, str]) -> None:
        data = self._read_all(quarantine_corrupt=True)
        data.update(values)
        self._write_all(data)
        logger.debug("state_file_written", path=str(self._path), keys=sorted(values))


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps audit events in a list, oldest first."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
