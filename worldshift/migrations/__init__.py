"""Schema migration engine for worldshift.

A run walks an ordered list of migration units. Each unit carries a
schema version and any of three hooks: `update_actor`, `update_item`
and `migrate`. The runner decides which units fire, on which documents,
and when their results are persisted.
"""

from worldshift.migrations.base import FunctionMigration, MigrationBase, migration
from worldshift.migrations.gate import VersionGate
from worldshift.migrations.runner import MigrationReport, MigrationRunner

__all__ = [
    "FunctionMigration",
    "MigrationBase",
    "MigrationReport",
    "MigrationRunner",
    "VersionGate",
    "migration",
]
