from __future__ import annotations

from abc import ABC, abstractmethod
from threading import Lock, RLock
from typing import Dict, List, Optional, Tuple

from .expressions import UpdateStatement
from .models import TodoEntity
from .settings import get_settings

# DynamoDB limit for a sort key value, in bytes.
MAX_KEY_BYTES = 1024


class StoreError(Exception):
    """A store call failed for a reason the caller cannot fix."""

    def __init__(self, operation: str, message: str = "", error_code: Optional[str] = None) -> None:
        self.operation = operation
        self.error_code = error_code
        super().__init__(message or f"{operation} failed")


class MalformedKeyError(StoreError):
    """The store rejected the key itself (wrong shape, empty or too large)."""


# PUBLIC_INTERFACE
class ItemStore(ABC):
    """
    Contract for todo storage backends.

    Every method is keyed by the owner, so an item owned by someone else is
    indistinguishable from an item that does not exist. Every method is one
    atomic store call.
    """

    @abstractmethod
    def put(self, item: TodoEntity) -> None:
        """Write a complete item unconditionally."""

    @abstractmethod
    def query_by_owner(self, owner: str) -> List[TodoEntity]:
        """Return every item of ``owner`` in no particular order."""

    @abstractmethod
    def update(self, owner: str, todo_id: str, statement: UpdateStatement) -> Optional[TodoEntity]:
        """
        Apply ``statement`` to the item at (owner, todo_id) and return the item
        as it is after the update, or None when no such item exists. Never
        creates an item.
        """

    @abstractmethod
    def delete(self, owner: str, todo_id: str) -> Optional[TodoEntity]:
        """Delete the item at (owner, todo_id) and return it, or None if absent."""


class InMemoryItemStore(ItemStore):
    """
    Thread-safe in-memory store for local runs and tests.

    Mirrors the DynamoDB semantics the handlers rely on: composite key,
    conditional update without upsert, delete returning the old item, and
    rejection of keys DynamoDB would reject.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[Tuple[str, str], TodoEntity] = {}

    @staticmethod
    def _key(operation: str, owner: str, todo_id: str) -> Tuple[str, str]:
        for value in (owner, todo_id):
            if not isinstance(value, str) or not value:
                raise MalformedKeyError(operation, "The provided key element does not match the schema")
            if len(value.encode("utf-8")) > MAX_KEY_BYTES:
                raise MalformedKeyError(operation, "Key attribute exceeds the size limit")
        return owner, todo_id

    def put(self, item: TodoEntity) -> None:
        key = self._key("put", item["userId"], item["todoId"])
        with self._lock:
            self._items[key] = item.copy()  # type: ignore[assignment]

    def query_by_owner(self, owner: str) -> List[TodoEntity]:
        with self._lock:
            return [item.copy() for (item_owner, _), item in self._items.items() if item_owner == owner]  # type: ignore[misc]

    def update(self, owner: str, todo_id: str, statement: UpdateStatement) -> Optional[TodoEntity]:
        key = self._key("update", owner, todo_id)
        with self._lock:
            existing = self._items.get(key)
            if existing is None:
                return None
            updated = existing.copy()
            updated.update(statement.changes)  # type: ignore[typeddict-item]
            self._items[key] = updated
            return updated.copy()  # type: ignore[return-value]

    def delete(self, owner: str, todo_id: str) -> Optional[TodoEntity]:
        key = self._key("delete", owner, todo_id)
        with self._lock:
            return self._items.pop(key, None)


_store: Optional[ItemStore] = None
_store_lock = Lock()


def _build_item_store() -> ItemStore:
    settings = get_settings()
    if settings.store_backend == "memory":
        return InMemoryItemStore()

    from .db import DynamoDBItemStore

    if not settings.todos_table_name:
        raise RuntimeError("TODOS_TABLE_NAME environment variable is required for the dynamodb backend")
    return DynamoDBItemStore.from_settings(settings)


# PUBLIC_INTERFACE
def get_item_store() -> ItemStore:
    """
    Return the process-wide store configured by settings.
    - memory: InMemoryItemStore
    - dynamodb: DynamoDBItemStore on TODOS_TABLE_NAME (required)

    Concurrent first calls all receive the same instance.
    """
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = _build_item_store()
    return _store


def reset_item_store() -> None:
    """Forget the process-wide store; the next get_item_store() rebuilds it."""
    global _store
    with _store_lock:
        _store = None
