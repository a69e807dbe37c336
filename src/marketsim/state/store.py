"""Key-value persistence contract used by the ledger."""

from __future__ import annotations

from typing import Protocol


class KeyValueStore(Protocol):
    """Opaque durable store with string keys and values."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when absent."""

    def set(self, key: str, value: str) -> None:
        """Persist value under key, replacing any previous value."""

    def close(self) -> None:
        """Close persistence resources."""


class InMemoryKeyValueStore:
    """Dict-backed store for tests and ephemeral runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def close(self) -> None:
        return None
