"""Key-value store abstraction and an in-memory implementation."""

from __future__ import annotations

from typing import Protocol


class KeyValueStore(Protocol):
    """String-keyed, string-valued store holding the journal's JSON documents."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStore:
    """Thread-unsafe dict-backed store for tests and one-shot scripts."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        """Remove *key* (no-op if absent)."""
        self._data.pop(key, None)
