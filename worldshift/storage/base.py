"""Storage interfaces — the boundary between the engine and persistence.

The engine never talks to a database directly. It asks a settings store
for the world schema version and hands whole collections to a document
store, which persists them and returns the materialised documents with
any missing identifiers filled in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable

from worldshift.types import Document, DocumentKind

IdFactory = Callable[[str], str]

# Embedded collections whose entries receive identifiers on persist
EMBEDDED_COLLECTIONS: dict[DocumentKind, tuple[str, str]] = {
    DocumentKind.ACTOR: ("items", "item"),
    DocumentKind.SCENE: ("tokens", "token"),
}

# Prefix used when a top-level document has no identifier
ID_PREFIXES: dict[DocumentKind, str] = {
    DocumentKind.ACTOR: "actor",
    DocumentKind.ITEM: "item",
    DocumentKind.SCENE: "scene",
    DocumentKind.USER: "user",
}


def assign_identifiers(kind: DocumentKind, doc: Document, next_id: IdFactory) -> Document:
    """Fill in `_id` on a document and its embedded entries, in place.

    Existing identifiers are kept. Embedded identifiers are unique within
    their container because the factory never repeats itself.
    """
    if not doc.get("_id"):
        doc["_id"] = next_id(ID_PREFIXES[kind])

    embedded = EMBEDDED_COLLECTIONS.get(kind)
    if embedded:
        field, prefix = embedded
        seen: set[str] = set()
        for entry in doc.get(field) or []:
            if not isinstance(entry, dict):
                continue
            if not entry.get("_id") or entry["_id"] in seen:
                entry["_id"] = next_id(prefix)
            seen.add(entry["_id"])
    return doc


class BaseSettingsStore(ABC):
    """Namespaced key/value settings (the world schema version lives here)."""

    @abstractmethod
    async def get(self, namespace: str, key: str) -> Any:
        """Return the stored value, or None if unset."""
        ...

    @abstractmethod
    async def set(self, namespace: str, key: str, value: Any) -> None:
        """Persist a value."""
        ...


class BaseDocumentStore(ABC):
    """Per-kind document persistence."""

    @abstractmethod
    async def load(self, kind: DocumentKind) -> list[Document]:
        """Return every stored document of a kind, in insertion order."""
        ...

    @abstractmethod
    async def save(self, kind: DocumentKind, documents: list[Document]) -> list[Document]:
        """Persist documents and return them materialised with identifiers."""
        ...
