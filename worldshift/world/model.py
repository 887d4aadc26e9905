"""The World aggregate.

Holds one collection per document kind plus the stores they persist
to. Nothing here is global: every runner, walker and CLI command gets
its World passed in.
"""

from __future__ import annotations

import copy
from typing import Any

from worldshift.storage.base import BaseDocumentStore, BaseSettingsStore
from worldshift.storage.memory import MemoryDocumentStore, MemorySettingsStore
from worldshift.types import Document, DocumentKind
from worldshift.world.collection import EntityCollection


class World:
    def __init__(
        self,
        store: BaseDocumentStore | None = None,
        settings_store: BaseSettingsStore | None = None,
    ) -> None:
        self.store = store or MemoryDocumentStore()
        self.settings_store = settings_store or MemorySettingsStore()
        self.actors = EntityCollection(DocumentKind.ACTOR, self.store)
        self.items = EntityCollection(DocumentKind.ITEM, self.store)
        self.scenes = EntityCollection(DocumentKind.SCENE, self.store)
        self.users = EntityCollection(DocumentKind.USER, self.store)

    @classmethod
    async def load(
        cls,
        store: BaseDocumentStore,
        settings_store: BaseSettingsStore,
    ) -> World:
        """Materialise every collection from the document store."""
        world = cls(store=store, settings_store=settings_store)
        for collection in world.collections():
            await collection.reload()
        return world

    def collections(self) -> list[EntityCollection]:
        return [self.actors, self.items, self.scenes, self.users]

    def collection(self, kind: DocumentKind) -> EntityCollection:
        return {c.kind: c for c in self.collections()}[kind]

    async def flush(self) -> int:
        """Persist every collection. Returns the number of documents written."""
        written = 0
        for collection in self.collections():
            written += await collection.flush()
        return written

    def snapshot(self) -> dict[str, Any]:
        """Plain-data view of every collection, keyed by kind."""
        return {c.kind.value: c.documents() for c in self.collections()}

    def checkpoint(self) -> dict[str, list[Document]]:
        """Deep copy of every collection, for `restore()`."""
        return copy.deepcopy(self.snapshot())

    def restore(self, checkpoint: dict[str, list[Document]]) -> None:
        """Discard in-memory changes made since `checkpoint()`."""
        for collection in self.collections():
            collection.restore(checkpoint.get(collection.kind.value, []))

    def load_snapshot(self, snapshot: dict[str, Any]) -> None:
        """Add documents from a snapshot (as produced by `snapshot()`)."""
        for collection in self.collections():
            for data in snapshot.get(collection.kind.value, []):
                collection.add(data)

    def __repr__(self) -> str:
        sizes = ", ".join(f"{c.kind.value}={len(c)}" for c in self.collections())
        return f"World({sizes})"
