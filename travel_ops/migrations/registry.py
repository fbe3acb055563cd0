"""Ordered registry of snapshot migrations.

``MIGRATIONS[v]`` upgrades a snapshot from schema version ``v`` to
``v + 1``. Each migration is a pure function: it returns a new mapping
and never mutates its input. Migrations check the shape of every
structure they touch and pass it through unchanged when it is not what
they expect, since snapshots may come from a build that never had the
feature or from a session that crashed mid-write.

Append new migrations at the end; never reorder or remove one, the
index of a migration is the version it upgrades from.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping

from .aliases import (
    DEPARTURE_DATE_FIELDS,
    DEPARTURE_GROUP_FIELDS,
    OPS_CONTAINER_FIELDS,
    OPS_GROUP_LIST_FIELDS,
    OPS_ID_FIELDS,
    STATUS_FIELDS,
    VALIDATION_DATE_FIELDS,
    first_present,
    resolve_status,
)

State = Dict[str, Any]
Migration = Callable[[State], State]

# Child collection names of an ops group, legacy name -> current name.
_CHILD_RENAMES = {
    "suppliers": "supplierLinks",
    "costs": "costLines",
    "timeline": "timelineItems",
}


def _map_list(state: State, key: str, fn: Callable[[Any], Any]) -> State:
    items = state.get(key)
    if not isinstance(items, list):
        return state
    return {**state, key: [fn(item) for item in items]}


# v0 -> v1 ---------------------------------------------------------------


def _normalize_group(group: Any) -> Any:
    if not isinstance(group, Mapping):
        return group
    return {
        **group,
        "status": resolve_status(first_present(group, STATUS_FIELDS)).value,
        "validationDate": first_present(group, VALIDATION_DATE_FIELDS),
        "departureDate": first_present(group, DEPARTURE_DATE_FIELDS),
    }


def _normalize_package_ops(package: Any) -> Any:
    if not isinstance(package, Mapping):
        return package
    ops = first_present(package, OPS_CONTAINER_FIELDS)
    if not isinstance(ops, Mapping):
        return package
    groups = first_present(ops, OPS_GROUP_LIST_FIELDS)
    if not isinstance(groups, list):
        return package

    package_id = ops.get("packageId")
    return {
        **package,
        "opsProject": {
            **ops,
            "id": first_present(ops, OPS_ID_FIELDS),
            "packageId": package.get("id") if package_id is None else package_id,
            "groups": [_normalize_group(g) for g in groups],
        },
    }


def normalize_departure_statuses(state: State) -> State:
    """Canonicalize ops group statuses and forward-fill renamed fields.

    Legacy packages kept their ops groups under ``ops`` or
    ``opsProject``; the container is rewritten as ``opsProject``.
    """
    return _map_list(state, "packages", _normalize_package_ops)


# v1 -> v2 ---------------------------------------------------------------


def _backfill_booking(booking: Any) -> Any:
    if not isinstance(booking, Mapping):
        return booking
    return {**booking, "departureGroupId": first_present(booking, DEPARTURE_GROUP_FIELDS)}


def backfill_booking_departure_group(state: State) -> State:
    """Give every booking a ``departureGroupId`` from its legacy aliases."""
    return _map_list(state, "bookings", _backfill_booking)


# v2 -> v3 ---------------------------------------------------------------


def _group_to_departure(group: Mapping[str, Any]) -> Dict[str, Any]:
    departure = {k: v for k, v in group.items() if k not in _CHILD_RENAMES}
    for legacy, current in _CHILD_RENAMES.items():
        children = group.get(legacy)
        if not isinstance(children, list):
            children = group.get(current)
        departure[current] = list(children) if isinstance(children, list) else []
    return departure


def _flatten_package(package: Any) -> Any:
    if not isinstance(package, Mapping):
        return package
    flattened: Dict[str, Any] = dict(package)

    if isinstance(package.get("flights"), list):
        flattened["flights"] = {"flights": package["flights"]}

    if isinstance(package.get("departures"), list):
        return flattened

    ops = first_present(package, OPS_CONTAINER_FIELDS)
    if not isinstance(ops, Mapping) or not isinstance(ops.get("groups"), list):
        return flattened

    for name in OPS_CONTAINER_FIELDS:
        flattened.pop(name, None)
    if ops.get("id") is not None:
        flattened["opsProjectId"] = ops["id"]
    flattened["departures"] = [
        _group_to_departure(g) for g in ops["groups"] if isinstance(g, Mapping)
    ]
    return flattened


def flatten_ops_project(state: State) -> State:
    """Move ops groups out of ``opsProject`` into package ``departures``.

    Group child collections are renamed to the departure record names
    (``suppliers`` -> ``supplierLinks``, ``costs`` -> ``costLines``,
    ``timeline`` -> ``timelineItems``). A bare flight list is wrapped
    into the flight block ``{"flights": [...]}``.
    """
    return _map_list(state, "packages", _flatten_package)


MIGRATIONS: List[Migration] = [
    normalize_departure_statuses,
    backfill_booking_departure_group,
    flatten_ops_project,
]

CURRENT_SCHEMA_VERSION = len(MIGRATIONS)
