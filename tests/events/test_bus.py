"""Tests for the event bus."""

import pytest

from worldshift.events.bus import (
    COMPLETED,
    FLUSHED,
    MIGRATION_STARTED,
    UNIT_APPLIED,
    UNIT_SKIPPED,
    Event,
    EventBus,
)


@pytest.mark.asyncio
async def test_emit_and_subscribe():
    """Subscribers on an exact topic receive the event and its data."""
    bus = EventBus()
    received = []

    async def handler(event: Event):
        received.append(event)

    bus.subscribe(MIGRATION_STARTED, handler)
    await bus.emit(MIGRATION_STARTED, {"from_version": 10})

    assert len(received) == 1
    assert received[0].topic == "migration.started"
    assert received[0].data["from_version"] == 10


@pytest.mark.asyncio
async def test_wildcard_subscribe():
    """A pattern like migration.unit_* matches only per-unit topics."""
    bus = EventBus()
    received = []

    async def handler(event: Event):
        received.append(event)

    bus.subscribe("migration.unit_*", handler)
    await bus.emit(UNIT_APPLIED)
    await bus.emit(UNIT_SKIPPED)
    await bus.emit(FLUSHED)  # should NOT match

    assert [e.topic for e in received] == [UNIT_APPLIED, UNIT_SKIPPED]


@pytest.mark.asyncio
async def test_emit_without_subscribers():
    """Emitting with nobody listening still returns the event."""
    event = await EventBus().emit(COMPLETED, {"version": 12}, source="runner")
    assert event.topic == COMPLETED
    assert event.source == "runner"


@pytest.mark.asyncio
async def test_failing_handler_is_isolated():
    """A raising subscriber neither propagates nor starves the others."""
    bus = EventBus()
    received = []

    async def broken(event: Event):
        raise RuntimeError("nope")

    async def handler(event: Event):
        received.append(event)

    bus.subscribe("*", broken)
    bus.subscribe("*", handler)
    event = await bus.emit(COMPLETED)

    assert received == [event]
