"""Keyed, ordered collection of top-level documents of one kind."""

from __future__ import annotations

import copy
import logging
from typing import Iterator

from worldshift.exceptions import DocumentNotFoundError
from worldshift.storage.base import BaseDocumentStore
from worldshift.types import Document, DocumentId, DocumentKind, new_id
from worldshift.world.entity import Entity

_logger = logging.getLogger(__name__)


class EntityCollection:
    """All documents of a kind, keyed by `_id`, in insertion order.

    The collection owns identifier assignment: documents added without
    an `_id` get one immediately, and embedded entries get theirs from
    the store on flush.
    """

    def __init__(self, kind: DocumentKind, store: BaseDocumentStore) -> None:
        self.kind = kind
        self._store = store
        self._entities: dict[DocumentId, Entity] = {}

    def add(self, data: Document) -> Entity:
        if not data.get("_id"):
            data["_id"] = new_id()
        entity = Entity(data)
        self._entities[entity.id] = entity
        return entity

    def set(self, doc_id: DocumentId, entity: Entity) -> None:
        entity.data["_id"] = doc_id
        self._entities[doc_id] = entity

    def get(self, doc_id: DocumentId) -> Entity:
        try:
            return self._entities[doc_id]
        except KeyError:
            raise DocumentNotFoundError(
                f"No {self.kind.value} document with id {doc_id}"
            ) from None

    def has(self, doc_id: DocumentId | None) -> bool:
        return doc_id is not None and doc_id in self._entities

    def documents(self) -> list[Document]:
        return [e.data for e in self._entities.values()]

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._entities

    async def flush(self) -> int:
        """Persist every document and adopt the materialised copies."""
        entities = list(self._entities.values())
        if not entities:
            return 0
        materialised = await self._store.save(self.kind, [e.data for e in entities])
        rekeyed: dict[DocumentId, Entity] = {}
        for entity, data in zip(entities, materialised):
            entity.replace(data)
            rekeyed[entity.id] = entity
        self._entities = rekeyed
        _logger.debug("Flushed %d %s", len(entities), self.kind.value)
        return len(entities)

    def restore(self, documents: list[Document]) -> None:
        """Roll back to a previous set of documents.

        Entities that still exist keep their dict objects; documents added
        since the checkpoint are dropped.
        """
        previous = self._entities
        self._entities = {}
        for data in copy.deepcopy(documents):
            entity = previous.get(data.get("_id"))
            if entity is None:
                self.add(data)
            else:
                entity.replace(data)
                self._entities[entity.id] = entity

    async def reload(self) -> None:
        """Replace contents with what the store currently holds."""
        self._entities = {}
        for data in await self._store.load(self.kind):
            self.add(data)

    def __repr__(self) -> str:
        return f"EntityCollection({self.kind.value}, size={len(self)})"
