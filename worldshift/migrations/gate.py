"""Version gate — reads and ratchets the world schema version."""

from __future__ import annotations

from typing import Iterable

from worldshift.config import settings
from worldshift.exceptions import GatingError, VersionRegressionError
from worldshift.migrations.base import MigrationBase
from worldshift.storage.base import BaseSettingsStore


def latest_version(units: Iterable[MigrationBase]) -> int:
    """Highest version among the units, 0 if there are none."""
    return max((u.version for u in units), default=0)


class VersionGate:
    """Owns the persisted world schema version.

    The version lives in the settings store under
    (settings_namespace, schema_version_key). A missing value reads as 0.
    """

    def __init__(
        self,
        settings_store: BaseSettingsStore,
        namespace: str | None = None,
        key: str | None = None,
    ) -> None:
        self._store = settings_store
        self.namespace = namespace or settings.settings_namespace
        self.key = key or settings.schema_version_key

    async def current_version(self) -> int:
        try:
            value = await self._store.get(self.namespace, self.key)
        except Exception as e:
            raise GatingError(
                f"Cannot read {self.namespace}.{self.key}: {e}"
            ) from e
        if value is None:
            return 0
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise GatingError(
                f"World schema version is not an integer: {value!r}"
            ) from e

    async def needs_migration(self, units: Iterable[MigrationBase]) -> bool:
        units = list(units)
        if not units:
            return False
        return await self.current_version() < latest_version(units)

    async def advance_to(self, version: int) -> None:
        """Persist a new world schema version. It may only go up."""
        current = await self.current_version()
        if version < current:
            raise VersionRegressionError(
                f"Cannot move world schema version from {current} to {version}"
            )
        if version != current:
            await self._store.set(self.namespace, self.key, version)
