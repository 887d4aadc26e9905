"""Migration units — a version tag plus optional mutation hooks.

Declare a unit by subclassing MigrationBase:

    class RenameSizeField(MigrationBase):
        version = 12

        async def update_actor(self, actor):
            actor["data"]["size"] = actor["data"].pop("sz", "med")

or from plain callables:

    unit = migration(13, update_item=lambda item: item.pop("legacy", None))

A hook that is absent means "no effect for that kind of document".
The runner checks which hooks are present; it never inspects types.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable

from worldshift.types import Document, HookKind

Hook = Callable[..., Awaitable[None] | None]


async def call_hook(hook: Hook, *args: Any) -> None:
    """Invoke a hook, awaiting it if it is a coroutine function."""
    result = hook(*args)
    if inspect.isawaitable(result):
        await result


class MigrationBase:
    """Base class for a migration unit.

    Subclasses set `version` and define any of `update_actor`,
    `update_item` and `migrate` as coroutine methods.
    """

    version: int
    requires_flush: bool = False

    update_actor: Callable[[Document], Awaitable[None]] | None = None
    update_item: Callable[[Document], Awaitable[None]] | None = None
    migrate: Callable[[], Awaitable[None]] | None = None

    def __init__(self) -> None:
        version = getattr(self, "version", None)
        if not isinstance(version, int) or isinstance(version, bool):
            raise TypeError(
                f"{type(self).__name__} must declare an integer version, got {version!r}"
            )

    @property
    def name(self) -> str:
        return type(self).__name__

    def hook(self, kind: HookKind) -> Hook | None:
        """Return the bound hook for a kind, or None if not implemented."""
        return getattr(self, kind.value, None)

    def has_hook(self, kind: HookKind) -> bool:
        return callable(self.hook(kind))

    @property
    def hooks(self) -> list[HookKind]:
        return [k for k in HookKind if self.has_hook(k)]

    def __repr__(self) -> str:
        hooks = ",".join(k.name.lower() for k in self.hooks) or "none"
        return f"{self.name}(version={self.version}, hooks={hooks})"


class FunctionMigration(MigrationBase):
    """A migration unit assembled from plain callables."""

    def __init__(
        self,
        version: int,
        update_actor: Hook | None = None,
        update_item: Hook | None = None,
        migrate: Hook | None = None,
        requires_flush: bool = False,
        name: str = "",
    ) -> None:
        self.version = version
        self.requires_flush = requires_flush
        self.update_actor = update_actor
        self.update_item = update_item
        self.migrate = migrate
        self._name = name or f"Migration{version}"
        super().__init__()

    @property
    def name(self) -> str:
        return self._name


def migration(
    version: int,
    *,
    update_actor: Hook | None = None,
    update_item: Hook | None = None,
    migrate: Hook | None = None,
    requires_flush: bool = False,
    name: str = "",
) -> FunctionMigration:
    """Build a migration unit without declaring a class."""
    return FunctionMigration(
        version,
        update_actor=update_actor,
        update_item=update_item,
        migrate=migrate,
        requires_flush=requires_flush,
        name=name,
    )
