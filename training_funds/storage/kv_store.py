"""
Key-Value Store Module

Versioned key-value interface used by the request store, plus an
in-process implementation for development and tests.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionedValue:
    """A stored value with the version it was read at."""

    value: str
    version: int


class KeyValueStore(Protocol):
    """Durable key-value store with conditional writes.

    ``put_if_absent`` and ``compare_and_set`` are the only write paths, so a
    caller can never overwrite a value it has not seen.
    """

    def get(self, key: str) -> VersionedValue | None:
        ...

    def put_if_absent(self, key: str, value: str) -> bool:
        ...

    def compare_and_set(self, key: str, expected_version: int, value: str) -> bool:
        ...

    def increment(self, key: str) -> int:
        ...


class InMemoryKeyValueStore:
    """Lock-guarded dict implementation of KeyValueStore."""

    def __init__(self):
        self._data: dict[str, VersionedValue] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> VersionedValue | None:
        with self._lock:
            return self._data.get(key)

    def put_if_absent(self, key: str, value: str) -> bool:
        with self._lock:
            if key in self._data:
                return False
            self._data[key] = VersionedValue(value, 1)
            return True

    def compare_and_set(self, key: str, expected_version: int, value: str) -> bool:
        with self._lock:
            current = self._data.get(key)
            if current is None or current.version != expected_version:
                return False
            self._data[key] = VersionedValue(value, expected_version + 1)
            return True

    def increment(self, key: str) -> int:
        with self._lock:
            current = self._data.get(key)
            count = int(current.value) + 1 if current else 1
            version = current.version + 1 if current else 1
            self._data[key] = VersionedValue(str(count), version)
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
