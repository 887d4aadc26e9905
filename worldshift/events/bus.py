"""Progress notifications for migration runs.

The runner announces each step of a run on a bus; the CLI and any
embedding application subscribe by topic pattern ("migration.unit_*",
"*"). Delivery is fire-and-forget: a subscriber that raises is logged
and otherwise ignored, so a broken listener can never abort a run.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Awaitable

from pydantic import BaseModel, Field

_logger = logging.getLogger(__name__)

MIGRATION_STARTED = "migration.started"
UNIT_SKIPPED = "migration.unit_skipped"
UNIT_APPLIED = "migration.unit_applied"
FLUSHED = "migration.flushed"
COMPLETED = "migration.completed"
FAILED = "migration.failed"

EventHandler = Callable[["Event"], Awaitable[None]]


class Event(BaseModel):
    """One step of a migration run."""

    topic: str
    data: dict[str, Any] = Field(default_factory=dict)
    source: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventBus:
    """Routes run events to subscribers whose pattern matches the topic."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        self._subscribers[pattern].append(handler)

    async def emit(self, topic: str, data: dict | None = None, source: str = "") -> Event:
        event = Event(topic=topic, data=data or {}, source=source)
        handlers = [
            handler
            for pattern, registered in self._subscribers.items()
            if fnmatch.fnmatch(topic, pattern)
            for handler in registered
        ]
        if handlers:
            results = await asyncio.gather(
                *(h(event) for h in handlers), return_exceptions=True
            )
            for result in results:
                if isinstance(result, Exception):
                    _logger.warning("Subscriber failed on %s: %s", topic, result)
        return event
