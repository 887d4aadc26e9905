"""Storage transport — settings and document persistence for a world."""

from worldshift.storage.base import BaseDocumentStore, BaseSettingsStore
from worldshift.storage.memory import MemoryDocumentStore, MemorySettingsStore
from worldshift.storage.sqlite import SqliteDocumentStore, SqliteSettingsStore

__all__ = [
    "BaseDocumentStore",
    "BaseSettingsStore",
    "MemoryDocumentStore",
    "MemorySettingsStore",
    "SqliteDocumentStore",
    "SqliteSettingsStore",
]
