"""
Local Storage Backends

In-memory storage for tests and throwaway sessions, and a single JSON
document on disk for a local install. The JSON file plays the role a
browser's local storage would: every key lives in one object.
"""

import copy
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from flowfinance.models.audit import AuditEvent
from flowfinance.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


class InMemoryKeyValueStorage(KeyValueStorageInterface):
    """Dict-backed storage. Values are deep-copied in and out."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def load(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    def save(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileKeyValueStorage(KeyValueStorageInterface):
    """
    All keys in one JSON file.

    Writes go to a temporary file in the same directory and are moved
    into place, so a crash mid-write leaves the previous file intact.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}")
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self.path}: expected an object")
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(f"Failed to write {self.path}: {e}")

    def load(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._read_all().get(key)

    def save(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of events."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
