"""SQLite stores — the default persistent transport for a world.

Documents are stored whole, one row per top-level document, encoded
with orjson. Row order is insertion order; updates keep a document's
original position.
"""

from __future__ import annotations

import logging
from typing import Any

import aiosqlite
import orjson

from worldshift.storage.base import (
    BaseDocumentStore,
    BaseSettingsStore,
    assign_identifiers,
)
from worldshift.types import Document, DocumentKind, new_id

_logger = logging.getLogger(__name__)


class SqliteSettingsStore(BaseSettingsStore):
    """Settings table: (namespace, key) -> JSON value."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT,
                    PRIMARY KEY (namespace, key)
                )
            """)
            await db.commit()

    async def get(self, namespace: str, key: str) -> Any:
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute(
                "SELECT value FROM settings WHERE namespace = ? AND key = ?",
                (namespace, key),
            )
            row = await cursor.fetchone()
        if row is None or row[0] is None:
            return None
        return orjson.loads(row[0])

    async def set(self, namespace: str, key: str, value: Any) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "INSERT INTO settings (namespace, key, value) VALUES (?, ?, ?) "
                "ON CONFLICT(namespace, key) DO UPDATE SET value = excluded.value",
                (namespace, key, orjson.dumps(value).decode()),
            )
            await db.commit()


class SqliteDocumentStore(BaseDocumentStore):
    """Documents table: (kind, id) -> JSON document."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    kind TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    PRIMARY KEY (kind, id)
                )
            """)
            await db.execute(
                "CREATE INDEX IF NOT EXISTS idx_doc_kind ON documents(kind)"
            )
            await db.commit()

    @staticmethod
    def _next_id(prefix: str) -> str:
        return new_id()

    async def load(self, kind: DocumentKind) -> list[Document]:
        documents = []
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                "SELECT data FROM documents WHERE kind = ? ORDER BY rowid",
                (kind.value,),
            ) as cursor:
                async for row in cursor:
                    documents.append(orjson.loads(row["data"]))
        return documents

    async def save(self, kind: DocumentKind, documents: list[Document]) -> list[Document]:
        materialised = []
        async with aiosqlite.connect(self._db_path) as db:
            for doc in documents:
                stored = assign_identifiers(
                    kind, orjson.loads(orjson.dumps(doc)), self._next_id
                )
                await db.execute(
                    "INSERT INTO documents (kind, id, data) VALUES (?, ?, ?) "
                    "ON CONFLICT(kind, id) DO UPDATE SET data = excluded.data",
                    (kind.value, stored["_id"], orjson.dumps(stored).decode()),
                )
                materialised.append(stored)
            await db.commit()
        _logger.debug("Saved %d %s", len(materialised), kind.value)
        return materialised
