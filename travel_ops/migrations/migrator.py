"""Bring a persisted snapshot up to the current schema version."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from .registry import MIGRATIONS, Migration

logger = logging.getLogger(__name__)

VERSION_FIELD = "schemaVersion"


def read_schema_version(state: Mapping[str, Any]) -> int:
    """Return the snapshot's schema version, 0 when absent or invalid.

    Integral floats (``2.0``) are accepted since JSON does not tell
    integers and floats apart; booleans and negative values are not.
    """
    value = state.get(VERSION_FIELD)
    if isinstance(value, bool):
        return 0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 0:
        return value
    return 0


def migrate_state(
    state: Optional[Mapping[str, Any]],
    migrations: Sequence[Migration] = MIGRATIONS,
) -> Dict[str, Any]:
    """Apply every pending migration to ``state``.

    Starting at the stored version, each migration ``migrations[v]`` is
    applied in order and the version set to ``v + 1``. A snapshot
    already at or beyond the last version comes back unchanged (as a
    new dict). A migration that fails unexpectedly is logged and
    skipped so that loading never fails; the snapshot still moves to
    the next version.

    Args:
        state: Snapshot as read from storage; ``None`` means no snapshot.
        migrations: Registry to apply, ``MIGRATIONS`` by default.

    Returns:
        The migrated snapshot, with ``schemaVersion`` at least
        ``len(migrations)``.
    """
    current: Dict[str, Any] = dict(state) if isinstance(state, Mapping) else {}
    start = read_schema_version(current)
    target = len(migrations)

    for version in range(start, target):
        migration = migrations[version]
        try:
            current = dict(migration(current))
        except Exception:
            logger.exception(
                "Migration step failed, keeping data unchanged",
                extra={"from_version": version, "step": migration.__name__},
            )
        current[VERSION_FIELD] = version + 1

    if read_schema_version(current) < target:
        current[VERSION_FIELD] = target

    if start < target:
        logger.info(
            "Snapshot migrated",
            extra={"from_version": start, "to_version": current[VERSION_FIELD]},
        )
    return current
