"""
Saved Store: Pins, Dashboard and Export Cart

Three small repositories over an injected :class:`StorageBackend`.
Each keeps a JSON array under its own key and handles its own
duplicate prevention:

* :class:`PinnedQueries`: newest first; a query text already pinned
  (case-insensitive) is not pinned again.
* :class:`Dashboard`: newest first; duplicate by response id.
* :class:`ExportCart`: insertion order; duplicate by response id.

Stored data that cannot be read back is logged and treated as empty.
"""

from __future__ import annotations

import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from backend.app.config import Settings
from backend.app.schema.query_schema import QueryResponse
from backend.app.schema.saved_schema import PinnedQuery, SavedResponse

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseModel)

PINS_KEY = "pinned_queries"
DASHBOARD_KEY = "dashboard_items"
CART_KEY = "export_cart"


# Storage backends

class StorageBackend(ABC):
    """Key -> JSON text storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored text, or ``None`` if nothing is stored."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def clear(self, key: str) -> None:
        """Remove *key*; a missing key is not an error."""


class MemoryStorage(StorageBackend):
    """Process-local storage; lost on exit."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def clear(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileStorage(StorageBackend):
    """One ``<key>.json`` file per key inside *directory*."""

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        with self._lock:
            if not path.is_file():
                return None
            return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        with self._lock:
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)

    def clear(self, key: str) -> None:
        with self._lock:
            self._path(key).unlink(missing_ok=True)


def build_storage(settings: Settings) -> StorageBackend:
    """File storage when ``storage_dir`` is configured, else in-memory."""
    if settings.storage_dir is None:
        return MemoryStorage()
    logger.info("Saved items are persisted under %s", settings.storage_dir)
    return JsonFileStorage(settings.storage_dir)


# Repositories

class _Repository(Generic[E]):
    """Load-modify-save list of entries under one storage key."""

    key: str = ""
    entry_model: type[BaseModel] = BaseModel

    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage
        self._adapter = TypeAdapter(list[self.entry_model])
        self._lock = threading.RLock()

    def entries(self) -> list[E]:
        with self._lock:
            return self._load()

    def count(self) -> int:
        return len(self.entries())

    def contains(self, item_id: str) -> bool:
        return any(e.id == item_id for e in self.entries())

    def remove(self, item_id: str) -> bool:
        """Remove an entry by id.  Returns ``True`` if it existed."""
        with self._lock:
            entries = self._load()
            kept = [e for e in entries if e.id != item_id]
            if len(kept) == len(entries):
                return False
            self._save(kept)
            logger.info("Removed %s from %s.", item_id, self.key)
            return True

    def _load(self) -> list[E]:
        try:
            raw = self._storage.get(self.key)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read stored %s data: %s", self.key, exc)
            return []
        if not raw:
            return []
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable %s data: %s", self.key, exc)
            return []

    def _save(self, entries: list[E]) -> None:
        self._storage.set(self.key, self._adapter.dump_json(entries).decode("utf-8"))


class PinnedQueries(_Repository[PinnedQuery]):
    key = PINS_KEY
    entry_model = PinnedQuery

    def add(self, response: QueryResponse) -> bool:
        """Pin a response; ``False`` if its query text is already pinned."""
        with self._lock:
            entries = self._load()
            wanted = response.query.lower()
            if any(p.query.lower() == wanted for p in entries):
                return False
            self._save([PinnedQuery.from_response(response)] + entries)
            logger.info("Pinned query '%s'.", response.query)
            return True

    def is_pinned(self, query: str) -> bool:
        wanted = query.lower()
        return any(p.query.lower() == wanted for p in self.entries())


class _ResponseRepository(_Repository[SavedResponse]):
    entry_model = SavedResponse
    newest_first = True

    def add(self, response: QueryResponse) -> bool:
        """Store a response; ``False`` if one with the same id is present."""
        with self._lock:
            entries = self._load()
            if any(e.id == response.id for e in entries):
                return False
            entry = SavedResponse.from_response(response)
            entries = [entry] + entries if self.newest_first else entries + [entry]
            self._save(entries)
            logger.info("Added %s to %s.", response.id, self.key)
            return True

    def responses(self) -> list[QueryResponse]:
        return [e.response for e in self.entries()]


class Dashboard(_ResponseRepository):
    key = DASHBOARD_KEY


class ExportCart(_ResponseRepository):
    key = CART_KEY
    newest_first = False

    def clear(self) -> None:
        with self._lock:
            self._storage.clear(self.key)
            logger.info("Export cart cleared.")
