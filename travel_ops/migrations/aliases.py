"""Canonical forms for legacy spellings found in persisted snapshots.

Older builds stored departure statuses as free-form strings and saved
the same field under several names. The tables below list every
historical spelling known to exist; anything else falls through to
the documented default. New aliases are never inferred.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..domain.models import DepartureStatus

STATUS_ALIASES: Mapping[str, DepartureStatus] = {
    "validated": DepartureStatus.VALIDATED,
    "validate": DepartureStatus.VALIDATED,
    "done": DepartureStatus.VALIDATED,
    "closed": DepartureStatus.VALIDATED,
    "approved": DepartureStatus.VALIDATED,
    "pending_validation": DepartureStatus.PENDING_VALIDATION,
    "validation_pending": DepartureStatus.PENDING_VALIDATION,
    "pending": DepartureStatus.PENDING_VALIDATION,
    "to_validate": DepartureStatus.PENDING_VALIDATION,
    "awaiting_validation": DepartureStatus.PENDING_VALIDATION,
}

# Field name aliases, canonical name first then legacy names by priority.
STATUS_FIELDS: Sequence[str] = ("status", "opsStatus")
VALIDATION_DATE_FIELDS: Sequence[str] = (
    "validationDate",
    "validatedAt",
    "validation_date",
    "confirmedAt",
)
DEPARTURE_DATE_FIELDS: Sequence[str] = ("departureDate", "departure_date", "flightDate")
DEPARTURE_GROUP_FIELDS: Sequence[str] = (
    "departureGroupId",
    "groupId",
    "opsGroupId",
    "flightGroupId",
)
OPS_CONTAINER_FIELDS: Sequence[str] = ("opsProject", "ops")
OPS_GROUP_LIST_FIELDS: Sequence[str] = ("groups", "opsGroups")
OPS_ID_FIELDS: Sequence[str] = ("id", "opsId")


def resolve_status(raw: Any) -> DepartureStatus:
    """Map a stored status value to the canonical enum.

    Known aliases map to their canonical status; the literal
    ``"validated"`` is kept; everything else (unknown strings, ``None``,
    non-strings) becomes ``pending_validation``.
    """
    if isinstance(raw, str) and raw in STATUS_ALIASES:
        return STATUS_ALIASES[raw]
    if raw == DepartureStatus.VALIDATED.value:
        return DepartureStatus.VALIDATED
    return DepartureStatus.PENDING_VALIDATION


def first_present(record: Mapping[str, Any], aliases: Sequence[str]) -> Optional[Any]:
    """Return the value of the first alias set on ``record``.

    An alias counts as set when the key exists with a non-``None``
    value. Returns ``None`` when no alias is set.
    """
    for name in aliases:
        value = record.get(name)
        if value is not None:
            return value
    return None
