"""Abstract key-value persistence for capital records."""

from journal_core.store.kv import InMemoryStore, KeyValueStore
from journal_core.store.sql import SqlKeyValueStore

__all__ = ["InMemoryStore", "KeyValueStore", "SqlKeyValueStore"]
