"""Entity walker — enumerates the documents a hook applies to."""

from __future__ import annotations

from typing import Iterator

from worldshift.types import Document, DocumentId
from worldshift.world.model import World


class EntityWalker:
    """Yields mutation targets from a World.

    Every method reads the world at iteration time, so documents added
    by an earlier hook in the same unit are visited by later passes.
    """

    def __init__(self, world: World) -> None:
        self._world = world

    def actors(self) -> Iterator[Document]:
        for entity in self._world.actors:
            yield entity.data

    def items(self) -> Iterator[Document]:
        """Top-level items first, then items embedded in each actor."""
        for entity in self._world.items:
            yield entity.data
        for actor in self.actors():
            for item in list(actor.get("items") or []):
                if isinstance(item, dict):
                    yield item

    def unlinked_tokens(self, actor_id: DocumentId) -> Iterator[tuple[Document, Document]]:
        """(scene, token) pairs for unlinked tokens that reference an actor."""
        for scene in self._world.scenes:
            for token in scene.data.get("tokens") or []:
                if token.get("actorLink"):
                    continue
                if token.get("actorId") == actor_id:
                    yield scene.data, token

    def dangling_tokens(self) -> Iterator[tuple[Document, Document]]:
        """Unlinked tokens whose actor no longer exists."""
        for scene in self._world.scenes:
            for token in scene.data.get("tokens") or []:
                if token.get("actorLink"):
                    continue
                if not self._world.actors.has(token.get("actorId")):
                    yield scene.data, token
