"""Core types shared across all worldshift subsystems."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, TypeAlias

# ── ID Types ──────────────────────────────────────────────────────────────────

DocumentId: TypeAlias = str
Document: TypeAlias = dict[str, Any]


def new_id() -> str:
    return uuid.uuid4().hex[:16]


# ── Document kinds ────────────────────────────────────────────────────────────


class DocumentKind(str, Enum):
    ACTOR = "actors"
    ITEM = "items"
    SCENE = "scenes"
    USER = "users"


# ── Migration hooks ───────────────────────────────────────────────────────────


class HookKind(str, Enum):
    ACTOR = "update_actor"
    ITEM = "update_item"
    UNCONDITIONAL = "migrate"


# ── Runner states ─────────────────────────────────────────────────────────────


class RunState(str, Enum):
    IDLE = "idle"
    GATING = "gating"
    RUNNING = "running"
    FLUSHING = "flushing"
    ADVANCING = "advancing"
    FAILED = "failed"
