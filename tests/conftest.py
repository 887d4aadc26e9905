"""Shared test fixtures — in-memory worlds and sample documents."""

from __future__ import annotations

import copy

import pytest

from worldshift.storage.memory import MemoryDocumentStore, MemorySettingsStore
from worldshift.world.model import World

VERSION_KEY = ("world", "worldSchemaVersion")

CHARACTER = {
    "_id": "amiri",
    "name": "Amiri",
    "type": "character",
    "data": {
        "traits": {"size": {"value": "med"}},
        "attributes": {"hp": {"value": 22, "max": 22}},
        "details": {"level": {"value": 1}},
    },
    "items": [
        {
            "_id": "bastard-sword",
            "name": "Large Bastard Sword",
            "type": "weapon",
            "data": {"damage": {"dice": 1, "die": "d12"}},
        },
        {
            "_id": "hide-armor",
            "name": "Hide Armor",
            "type": "armor",
            "data": {"armor": {"value": 3}},
        },
    ],
}

ARMOR = {
    "_id": "scale-mail",
    "name": "Scale Mail",
    "type": "armor",
    "data": {"armor": {"value": 4}, "strength": {"value": 14}},
}


@pytest.fixture
def character_data():
    return copy.deepcopy(CHARACTER)


@pytest.fixture
def armor_data():
    return copy.deepcopy(ARMOR)


@pytest.fixture
def settings_store():
    return MemorySettingsStore({VERSION_KEY: 10})


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def world(store, settings_store):
    return World(store=store, settings_store=settings_store)


@pytest.fixture
def make_scene():
    def _factory(*tokens: dict, scene_id: str = "scene1") -> dict:
        return {"_id": scene_id, "name": "Otari", "tokens": [copy.deepcopy(t) for t in tokens]}
    return _factory
