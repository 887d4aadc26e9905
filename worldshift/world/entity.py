"""A top-level world document and its handle."""

from __future__ import annotations

from worldshift.types import Document, DocumentId


class Entity:
    """Wraps one mutable document.

    Migration hooks receive `entity.data` directly and mutate it in
    place, so the same dict object must survive flushes.
    """

    def __init__(self, data: Document) -> None:
        self.data = data

    @property
    def id(self) -> DocumentId | None:
        return self.data.get("_id") or None

    @property
    def name(self) -> str:
        return self.data.get("name", "")

    def replace(self, data: Document) -> None:
        """Swap in a materialised document, keeping the same dict object."""
        self.data.clear()
        self.data.update(data)

    def __repr__(self) -> str:
        return f"Entity(id={self.id!r}, name={self.name!r})"
