"""The world — collections of actors, items, scenes and users."""

from worldshift.world.collection import EntityCollection
from worldshift.world.entity import Entity
from worldshift.world.model import World

__all__ = ["Entity", "EntityCollection", "World"]
