"""State store interfaces and implementations."""

from .sqlite_store import SqliteKeyValueStore
from .store import InMemoryKeyValueStore, KeyValueStore

__all__ = ["KeyValueStore", "InMemoryKeyValueStore", "SqliteKeyValueStore"]
