"""CLI runtime context — bridges sync CLI to the async engine."""

from __future__ import annotations

import asyncio
import importlib
import logging
from typing import Any, Coroutine

import structlog

from worldshift.config import settings
from worldshift.migrations.base import MigrationBase
from worldshift.storage.sqlite import SqliteDocumentStore, SqliteSettingsStore
from worldshift.world.model import World


def configure_logging() -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


async def open_world(db_path: str | None = None) -> World:
    """Open (creating if needed) the SQLite-backed world."""
    path = db_path or str(settings.db_path)
    if db_path is None:
        settings.workspace_dir.mkdir(parents=True, exist_ok=True)
    store = SqliteDocumentStore(path)
    settings_store = SqliteSettingsStore(path)
    await store.initialize()
    await settings_store.initialize()
    return await World.load(store, settings_store)


def load_migrations(module_path: str) -> list[MigrationBase]:
    """Import `MIGRATIONS` from a module: a list of units or unit classes."""
    module = importlib.import_module(module_path)
    declared = getattr(module, "MIGRATIONS", None)
    if declared is None:
        raise ValueError(f"{module_path} does not define MIGRATIONS")
    units = []
    for entry in declared:
        units.append(entry() if isinstance(entry, type) else entry)
    return units


def run_async(coro: Coroutine) -> Any:
    """Run an async coroutine from sync CLI code."""
    return asyncio.run(coro)
