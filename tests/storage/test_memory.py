"""Tests for the in-memory stores."""

import pytest

from worldshift.storage.base import assign_identifiers
from worldshift.storage.memory import MemoryDocumentStore, MemorySettingsStore
from worldshift.types import DocumentKind


def _counter():
    counts = {}

    def _next(prefix):
        counts[prefix] = counts.get(prefix, 0) + 1
        return f"{prefix}{counts[prefix]}"
    return _next


def test_assign_identifiers_fills_missing():
    """Missing ids are filled, existing ones kept."""
    doc = {"name": "Amiri", "items": [{"name": "a"}, {"_id": "keep", "name": "b"}]}
    assign_identifiers(DocumentKind.ACTOR, doc, _counter())
    assert doc["_id"] == "actor1"
    assert [i["_id"] for i in doc["items"]] == ["item1", "keep"]


def test_assign_identifiers_resolves_duplicates():
    """Duplicate embedded ids are re-issued."""
    doc = {"_id": "s1", "tokens": [{"_id": "t"}, {"_id": "t"}]}
    assign_identifiers(DocumentKind.SCENE, doc, _counter())
    assert [t["_id"] for t in doc["tokens"]] == ["t", "token1"]


@pytest.mark.asyncio
async def test_settings_roundtrip():
    """Settings set are read back."""
    store = MemorySettingsStore()
    assert await store.get("world", "worldSchemaVersion") is None
    await store.set("world", "worldSchemaVersion", 12)
    assert await store.get("world", "worldSchemaVersion") == 12


@pytest.mark.asyncio
async def test_save_returns_materialised_copies():
    """Saved documents are copies, isolated from the caller."""
    store = MemoryDocumentStore()
    doc = {"_id": "amiri", "items": [{"name": "sample item"}]}

    saved = await store.save(DocumentKind.ACTOR, [doc])

    assert saved[0]["items"][0]["_id"] == "item1"
    assert "_id" not in doc["items"][0]
    saved[0]["name"] = "mutated"
    assert "name" not in store.stored(DocumentKind.ACTOR, "amiri")


@pytest.mark.asyncio
async def test_identifiers_never_reused():
    """Item ids keep counting across saves."""
    store = MemoryDocumentStore()
    await store.save(DocumentKind.ACTOR, [{"_id": "a", "items": [{"name": "x"}]}])
    saved = await store.save(DocumentKind.ACTOR, [{"_id": "b", "items": [{"name": "y"}]}])
    assert saved[0]["items"][0]["_id"] == "item2"


@pytest.mark.asyncio
async def test_load_in_insertion_order():
    """Documents load in the order they were saved."""
    store = MemoryDocumentStore()
    await store.save(DocumentKind.ITEM, [{"_id": "b"}, {"_id": "a"}])
    assert [d["_id"] for d in await store.load(DocumentKind.ITEM)] == ["b", "a"]
