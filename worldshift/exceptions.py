"""Custom exception hierarchy for worldshift."""

from __future__ import annotations


class WorldshiftError(Exception):
    """Base for all worldshift errors."""


class GatingError(WorldshiftError):
    """The world schema version could not be read."""


class VersionRegressionError(WorldshiftError):
    """Attempt to move the world schema version backwards."""


class RunnerStateError(WorldshiftError):
    """Invalid migration runner state transition."""


class DocumentNotFoundError(WorldshiftError):
    """No document with the given ID exists in the collection."""


class MigrationHookError(WorldshiftError):
    """A migration hook raised while mutating the world."""

    def __init__(
        self,
        unit_name: str,
        version: int,
        hook: str,
        target_id: str | None = None,
    ) -> None:
        self.unit_name = unit_name
        self.version = version
        self.hook = hook
        self.target_id = target_id
        target = f" on {target_id}" if target_id else ""
        super().__init__(
            f"Migration {unit_name} (v{version}) failed in {hook}{target}"
        )


class FlushError(WorldshiftError):
    """Persisting pending document mutations failed."""

    def __init__(self, message: str, version: int | None = None) -> None:
        self.version = version
        super().__init__(message)
