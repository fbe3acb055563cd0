"""Versioned migrations for persisted snapshots.

A snapshot carries a ``schemaVersion`` counting the migrations already
applied to it. ``migrate_state`` walks it from that version to
``CURRENT_SCHEMA_VERSION`` at load time, before any domain code reads
the data.
"""

from .aliases import STATUS_ALIASES, first_present, resolve_status
from .migrator import migrate_state, read_schema_version
from .registry import CURRENT_SCHEMA_VERSION, MIGRATIONS, Migration

__all__ = [
    "migrate_state",
    "read_schema_version",
    "MIGRATIONS",
    "CURRENT_SCHEMA_VERSION",
    "Migration",
    "STATUS_ALIASES",
    "resolve_status",
    "first_present",
]
