"""Sync propagator — keeps unlinked-token overrides in step with actors.

An unlinked token stores `actorData`, a partial document overlaid on
its actor. When a migration rewrites the actor, the override has to be
rewritten the same way or the token would resurrect the old schema.

The propagator overlays the override on a copy of the actor as it was
before the hook ran, runs the same hook on that copy, then reads back
only the paths the override declared. Paths the hook deleted disappear
from the override; paths the override never had are never added.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from worldshift.migrations.base import Hook, call_hook
from worldshift.migrations.walker import EntityWalker
from worldshift.types import Document

_logger = logging.getLogger(__name__)


def overlay(base: Document, fragment: Document) -> Document:
    """Deep-merge `fragment` onto `base` in place and return `base`."""
    for key, value in fragment.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            overlay(base[key], value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def project(fragment: Document, effective: Document) -> Document:
    """Values from `effective` restricted to the key paths of `fragment`."""
    projected: dict[str, Any] = {}
    for key, value in fragment.items():
        if key not in effective:
            continue
        migrated = effective[key]
        if isinstance(value, dict) and isinstance(migrated, dict):
            projected[key] = project(value, migrated)
        else:
            projected[key] = copy.deepcopy(migrated)
    return projected


class SyncPropagator:
    def __init__(self, walker: EntityWalker) -> None:
        self._walker = walker

    def snapshot(self, actor: Document) -> Document | None:
        """Copy of the actor before mutation, or None if no token needs it."""
        actor_id = actor.get("_id")
        if not actor_id:
            return None
        for _scene, token in self._walker.unlinked_tokens(actor_id):
            if token.get("actorData"):
                return copy.deepcopy(actor)
        return None

    async def propagate(self, hook: Hook, actor: Document, baseline: Document | None) -> int:
        """Apply `hook` to every unlinked token override of `actor`.

        Returns the number of tokens rewritten.
        """
        if baseline is None:
            return 0
        synced = 0
        for scene, token in self._walker.unlinked_tokens(actor["_id"]):
            fragment = token.get("actorData")
            if not fragment:
                continue
            effective = overlay(copy.deepcopy(baseline), fragment)
            await call_hook(hook, effective)
            token["actorData"] = project(fragment, effective)
            synced += 1
            _logger.debug(
                "Synced token %s in scene %s to actor %s",
                token.get("_id"), scene.get("_id"), actor["_id"],
            )
        return synced

    def report_dangling(self) -> int:
        """Log unlinked tokens that point at missing actors. They are skipped."""
        count = 0
        for scene, token in self._walker.dangling_tokens():
            count += 1
            _logger.info(
                "Token %s in scene %s references missing actor %s; not migrated",
                token.get("_id"), scene.get("_id"), token.get("actorId"),
            )
        return count
