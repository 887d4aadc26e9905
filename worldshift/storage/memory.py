"""In-memory stores — for tests and for embedding the engine in-process."""

from __future__ import annotations

import copy
from collections import defaultdict
from typing import Any

from worldshift.storage.base import (
    BaseDocumentStore,
    BaseSettingsStore,
    assign_identifiers,
)
from worldshift.types import Document, DocumentKind


class MemorySettingsStore(BaseSettingsStore):
    def __init__(self, initial: dict[tuple[str, str], Any] | None = None) -> None:
        self._values: dict[tuple[str, str], Any] = dict(initial or {})

    async def get(self, namespace: str, key: str) -> Any:
        return self._values.get((namespace, key))

    async def set(self, namespace: str, key: str, value: Any) -> None:
        self._values[(namespace, key)] = value


class MemoryDocumentStore(BaseDocumentStore):
    """Keeps deep copies of saved documents.

    Identifiers are sequential per prefix ("item1", "item2", ...) and
    never reused for the lifetime of the store.
    """

    def __init__(self) -> None:
        self._documents: dict[DocumentKind, dict[str, Document]] = defaultdict(dict)
        self._counters: dict[str, int] = defaultdict(int)
        self.save_count = 0

    def _next_id(self, prefix: str) -> str:
        self._counters[prefix] += 1
        return f"{prefix}{self._counters[prefix]}"

    async def load(self, kind: DocumentKind) -> list[Document]:
        return [copy.deepcopy(d) for d in self._documents[kind].values()]

    async def save(self, kind: DocumentKind, documents: list[Document]) -> list[Document]:
        materialised = []
        for doc in documents:
            stored = assign_identifiers(kind, copy.deepcopy(doc), self._next_id)
            self._documents[kind][stored["_id"]] = stored
            materialised.append(copy.deepcopy(stored))
        self.save_count += 1
        return materialised

    def stored(self, kind: DocumentKind, doc_id: str) -> Document | None:
        """Peek at the persisted copy of a document."""
        return self._documents[kind].get(doc_id)

    def __repr__(self) -> str:
        sizes = {k.value: len(v) for k, v in self._documents.items()}
        return f"MemoryDocumentStore({sizes})"
