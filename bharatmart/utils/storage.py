"""Durable key/value storage for the buyer's local state.

Values are opaque strings (JSON blobs written by the stores). Both
backends expose the same three methods so stores never care which one
they were handed.
"""
import threading
from typing import Dict, Optional

from models import session_factory
from models.storage import StorageEntry
from bharatmart.errors import StorageError
from bharatmart.utils.db import transactional


class MemoryStorage:
    """Process-local storage; lost on exit."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class SqlStorage:
    """Storage backed by the ``local_storage`` table."""

    def __init__(self, sessions):
        self._sessions = sessions

    @classmethod
    def from_url(cls, url: str) -> "SqlStorage":
        return cls(session_factory(url))

    def get_item(self, key: str) -> Optional[str]:
        with self._sessions() as session:
            entry = session.get(StorageEntry, key)
            return entry.value if entry else None

    def set_item(self, key: str, value: str) -> None:
        with self._sessions() as session:
            with transactional(session, f"Failed to write storage key {key}"):
                entry = session.get(StorageEntry, key)
                if entry:
                    entry.value = value
                else:
                    session.add(StorageEntry(key=key, value=value))

    def remove_item(self, key: str) -> None:
        with self._sessions() as session:
            with transactional(session, f"Failed to remove storage key {key}"):
                entry = session.get(StorageEntry, key)
                if entry:
                    session.delete(entry)


def open_storage(url: Optional[str]):
    """Open the backend for ``url``; only ``memory://`` gives process-local storage."""
    if not url:
        raise StorageError("STORAGE_URL is not set")
    if url == "memory://":
        return MemoryStorage()
    return SqlStorage.from_url(url)


__all__ = ["MemoryStorage", "SqlStorage", "open_storage"]
