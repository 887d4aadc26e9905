"""Migration runner — brings a world up to the latest schema version.

Units run in the order given. Each unit is gated against the world
version at the moment it starts, so a unit whose version is at or below
the current mark is inert while later, higher units still run. Within a
unit, hooks fire as: actor hook on every actor (syncing unlinked tokens
after each), item hook on every item, then the unconditional hook.

Mutations stay in memory until a flush. A unit with `requires_flush`
forces one before the next unit starts; the run always ends with one.
The persisted world version moves only at flush points, so after a
failure it names the last unit whose work actually reached storage.
A failed or cancelled run also rolls the in-memory World back to the
last flush, so a retry starts from exactly what storage holds.
"""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

import structlog
from pydantic import BaseModel, Field

from worldshift.events import bus as events
from worldshift.events.bus import EventBus
from worldshift.exceptions import (
    FlushError,
    MigrationHookError,
    RunnerStateError,
    WorldshiftError,
)
from worldshift.migrations.base import MigrationBase, call_hook
from worldshift.migrations.gate import VersionGate, latest_version
from worldshift.migrations.sync import SyncPropagator
from worldshift.migrations.walker import EntityWalker
from worldshift.types import Document, HookKind, RunState
from worldshift.world.model import World

logger = structlog.get_logger()

VALID_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.IDLE: {RunState.GATING},
    RunState.GATING: {RunState.RUNNING, RunState.IDLE, RunState.FAILED},
    RunState.RUNNING: {RunState.FLUSHING, RunState.ADVANCING, RunState.FAILED},
    RunState.FLUSHING: {RunState.ADVANCING, RunState.IDLE, RunState.FAILED},
    RunState.ADVANCING: {RunState.RUNNING, RunState.FAILED},
    RunState.FAILED: {RunState.IDLE},
}


class MigrationReport(BaseModel):
    """What a run did."""

    ran: bool = False
    starting_version: int = 0
    final_version: int = 0
    applied: list[int] = Field(default_factory=list)
    skipped: list[int] = Field(default_factory=list)
    flushes: int = 0
    tokens_synced: int = 0


class MigrationRunner:
    """Applies migration units to a World.

    The World and its settings store are passed in; there is no ambient
    state. A runner serialises its own runs.
    """

    def __init__(
        self,
        migrations: Sequence[MigrationBase],
        world: World,
        gate: VersionGate | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.migrations = list(migrations)
        self.world = world
        self.gate = gate or VersionGate(world.settings_store)
        self._event_bus = event_bus
        self._walker = EntityWalker(world)
        self._sync = SyncPropagator(self._walker)
        self._state = RunState.IDLE
        self._lock = asyncio.Lock()
        self._checkpoint: dict[str, list[Document]] | None = None

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def latest_version(self) -> int:
        return latest_version(self.migrations)

    def _transition(self, target: RunState) -> None:
        if target not in VALID_TRANSITIONS.get(self._state, set()):
            raise RunnerStateError(
                f"Cannot transition runner from {self._state.value} to {target.value}"
            )
        self._state = target

    async def needs_migration(self) -> bool:
        return await self.gate.needs_migration(self.migrations)

    async def run_migration(self) -> MigrationReport:
        """Run every applicable unit, then flush and record the new version."""
        async with self._lock:
            self._transition(RunState.GATING)
            try:
                return await self._run()
            except BaseException as e:
                self._state = RunState.FAILED
                self._rollback()
                self._transition(RunState.IDLE)
                if isinstance(e, Exception):
                    await self._notify(events.FAILED, {"error": str(e)})
                raise
            finally:
                self._checkpoint = None

    async def _run(self) -> MigrationReport:
        starting = await self.gate.current_version()
        report = MigrationReport(starting_version=starting, final_version=starting)
        if not self.migrations or starting >= self.latest_version:
            logger.info("migration.not_needed", version=starting)
            self._transition(RunState.IDLE)
            return report

        report.ran = True
        self._checkpoint = self.world.checkpoint()
        await self._notify(events.MIGRATION_STARTED, {
            "from_version": starting,
            "to_version": self.latest_version,
        })
        self._sync.report_dangling()
        self._transition(RunState.RUNNING)

        current = starting
        for unit in self.migrations:
            if unit.version <= current:
                report.skipped.append(unit.version)
                logger.info("migration.unit_skipped", unit=unit.name,
                            version=unit.version, current=current)
                await self._notify(events.UNIT_SKIPPED, {
                    "unit": unit.name, "version": unit.version,
                })
                continue

            logger.info("migration.unit_started", unit=unit.name, version=unit.version)
            report.tokens_synced += await self._apply(unit)

            if unit.requires_flush:
                self._transition(RunState.FLUSHING)
                await self._flush(unit.version)
                report.flushes += 1

            self._transition(RunState.ADVANCING)
            current = max(current, unit.version)
            if unit.requires_flush:
                await self.gate.advance_to(current)
            report.applied.append(unit.version)
            await self._notify(events.UNIT_APPLIED, {
                "unit": unit.name, "version": unit.version,
            })
            self._transition(RunState.RUNNING)

        self._transition(RunState.FLUSHING)
        await self._flush(None)
        report.flushes += 1
        await self.gate.advance_to(current)
        report.final_version = current
        self._transition(RunState.IDLE)

        logger.info("migration.completed", version=current,
                    applied=report.applied, skipped=report.skipped)
        await self._notify(events.COMPLETED, report.model_dump())
        return report

    async def _apply(self, unit: MigrationBase) -> int:
        """Fire a unit's hooks in order. Returns the number of tokens synced."""
        synced = 0

        update_actor = unit.hook(HookKind.ACTOR)
        if callable(update_actor):
            for actor in list(self._walker.actors()):
                baseline = self._sync.snapshot(actor)
                try:
                    await call_hook(update_actor, actor)
                    synced += await self._sync.propagate(update_actor, actor, baseline)
                except Exception as e:
                    raise MigrationHookError(
                        unit.name, unit.version, HookKind.ACTOR.value, actor.get("_id")
                    ) from e

        update_item = unit.hook(HookKind.ITEM)
        if callable(update_item):
            for item in list(self._walker.items()):
                try:
                    await call_hook(update_item, item)
                except Exception as e:
                    raise MigrationHookError(
                        unit.name, unit.version, HookKind.ITEM.value, item.get("_id")
                    ) from e

        migrate = unit.hook(HookKind.UNCONDITIONAL)
        if callable(migrate):
            try:
                await call_hook(migrate)
            except Exception as e:
                raise MigrationHookError(
                    unit.name, unit.version, HookKind.UNCONDITIONAL.value
                ) from e

        return synced

    async def _flush(self, version: int | None) -> None:
        try:
            written = await self.world.flush()
        except WorldshiftError:
            raise
        except Exception as e:
            where = f"after v{version}" if version is not None else "at end of run"
            raise FlushError(f"Flush {where} failed: {e}", version=version) from e
        self._checkpoint = self.world.checkpoint()
        logger.info("migration.flushed", version=version, documents=written)
        await self._notify(events.FLUSHED, {
            "version": version, "documents": written,
        })

    def _rollback(self) -> None:
        """Drop in-memory mutations that never reached a flush."""
        if self._checkpoint is None:
            return
        self.world.restore(self._checkpoint)
        logger.warning("migration.rolled_back")

    async def _notify(self, topic: str, data: dict[str, Any]) -> None:
        if self._event_bus is None:
            return
        try:
            await self._event_bus.emit(topic, data, source="migration_runner")
        except Exception as e:
            logger.warning("migration.notify_failed", topic=topic, error=str(e))
