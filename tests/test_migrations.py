"""Tests for snapshot schema migrations."""

import copy
import logging

import pytest

from travel_ops.migrations import (
    CURRENT_SCHEMA_VERSION,
    MIGRATIONS,
    migrate_state,
    read_schema_version,
)
from travel_ops.migrations.registry import (
    backfill_booking_departure_group,
    flatten_ops_project,
    normalize_departure_statuses,
)


@pytest.fixture
def legacy_state():
    """A snapshot written before schema versioning existed."""
    return {
        "packages": [
            {
                "id": "pkg-1",
                "status": "published",
                "flights": [
                    {"airline": "TAP", "departureDate": "2025-06-02", "returnDate": "2025-06-09"},
                    {"airline": "Iberia", "departureDate": "2025-07-14", "returnDate": "2025-07-21"},
                ],
                "ops": {
                    "opsId": "ops-1",
                    "groups": [
                        {
                            "id": "g1",
                            "opsStatus": "validate",
                            "validatedAt": "2025-05-01T08:00:00Z",
                            "departure_date": "2025-06-02",
                            "suppliers": [{"name": "Hotel Lisboa"}],
                            "costs": [{"label": "Deposit", "amount": 300}],
                            "timeline": [{"title": "Groupe créé"}],
                        },
                        {"id": "g2", "status": "weird", "flightDate": "2025-07-14"},
                    ],
                },
            }
        ],
        "bookings": [
            {"id": "b1", "groupId": "g1"},
            {"id": "b2", "groupId": None, "opsGroupId": "g2"},
            {"id": "b3"},
        ],
        "settings": {"currency": "EUR"},
    }


def test_current_version_counts_registered_migrations():
    assert CURRENT_SCHEMA_VERSION == len(MIGRATIONS) == 3


def test_legacy_snapshot_is_fully_upgraded(legacy_state):
    migrated = migrate_state(legacy_state)

    assert migrated["schemaVersion"] == CURRENT_SCHEMA_VERSION
    assert migrated["settings"] == {"currency": "EUR"}

    package = migrated["packages"][0]
    assert "ops" not in package
    assert "opsProject" not in package
    assert package["opsProjectId"] == "ops-1"
    assert package["flights"] == {"flights": legacy_state["packages"][0]["flights"]}

    first, second = package["departures"]
    assert first["id"] == "g1"
    assert first["status"] == "validated"
    assert first["validationDate"] == "2025-05-01T08:00:00Z"
    assert first["departureDate"] == "2025-06-02"
    assert first["supplierLinks"] == [{"name": "Hotel Lisboa"}]
    assert first["costLines"] == [{"label": "Deposit", "amount": 300}]
    assert first["timelineItems"] == [{"title": "Groupe créé"}]
    assert "suppliers" not in first

    assert second["status"] == "pending_validation"
    assert second["validationDate"] is None
    assert second["departureDate"] == "2025-07-14"
    assert second["supplierLinks"] == []
    assert second["costLines"] == []
    assert second["timelineItems"] == []

    assert [b["departureGroupId"] for b in migrated["bookings"]] == ["g1", "g2", None]


def test_migration_does_not_mutate_input(legacy_state):
    before = copy.deepcopy(legacy_state)
    migrate_state(legacy_state)
    assert legacy_state == before


def test_current_snapshot_is_returned_unchanged(legacy_state):
    state = {**legacy_state, "schemaVersion": CURRENT_SCHEMA_VERSION}

    migrated = migrate_state(state)

    assert migrated == state
    assert migrated is not state


def test_future_snapshot_keeps_its_version():
    state = {"schemaVersion": 7, "packages": []}
    assert migrate_state(state) == state


def test_only_pending_steps_run(legacy_state):
    state = {**legacy_state, "schemaVersion": 2}

    migrated = migrate_state(state)

    assert migrated["schemaVersion"] == 3
    # Step 2 already ran on this snapshot, bookings stay as stored.
    assert all("departureGroupId" not in b for b in migrated["bookings"])
    # Step 1 did not, legacy status spelling reaches the departures as is.
    assert migrated["packages"][0]["departures"][0]["opsStatus"] == "validate"
    assert "status" not in migrated["packages"][0]["departures"][0]


def test_migrating_twice_is_stable(legacy_state):
    once = migrate_state(legacy_state)
    assert migrate_state(once) == once


def test_missing_state_becomes_empty_current_snapshot():
    assert migrate_state(None) == {"schemaVersion": CURRENT_SCHEMA_VERSION}


@pytest.mark.parametrize(
    "stored, expected",
    [
        (None, 0),
        ("2", 0),
        (-1, 0),
        (True, 0),
        (1.5, 0),
        (2.0, 2),
        (3, 3),
    ],
)
def test_read_schema_version(stored, expected):
    assert read_schema_version({"schemaVersion": stored}) == expected


def test_read_schema_version_when_absent():
    assert read_schema_version({}) == 0


def test_invalid_version_runs_all_steps():
    state = {"schemaVersion": "v2", "bookings": [{"id": "b1", "groupId": "g1"}]}

    migrated = migrate_state(state)

    assert migrated["schemaVersion"] == CURRENT_SCHEMA_VERSION
    assert migrated["bookings"][0]["departureGroupId"] == "g1"


def test_failing_step_is_skipped(caplog):
    def explode(state):
        raise RuntimeError("boom")

    def mark(state):
        return {**state, "marked": True}

    with caplog.at_level(logging.ERROR, logger="travel_ops.migrations.migrator"):
        migrated = migrate_state({"packages": []}, migrations=[explode, mark])

    assert migrated == {"packages": [], "marked": True, "schemaVersion": 2}
    assert any("Migration step failed" in r.getMessage() for r in caplog.records)


class TestUnexpectedShapes:
    """Unexpected structures pass through untouched."""

    def test_non_list_collections(self):
        state = {"packages": "oops", "bookings": {"id": "b1"}}

        migrated = migrate_state(state)

        assert migrated["packages"] == "oops"
        assert migrated["bookings"] == {"id": "b1"}

    def test_non_mapping_entries(self):
        state = {"packages": [None, 3, "pkg"], "bookings": [None, "b1"]}

        migrated = migrate_state(state)

        assert migrated["packages"] == [None, 3, "pkg"]
        assert migrated["bookings"] == [None, "b1"]

    def test_ops_without_group_list(self):
        package = {"id": "pkg-1", "ops": {"id": "ops-1", "groups": "none"}}

        migrated = migrate_state({"packages": [package]})

        assert migrated["packages"] == [package]

    def test_non_mapping_groups_are_dropped_when_flattened(self):
        package = {"id": "pkg-1", "opsProject": {"id": "ops-1", "groups": [None, {"id": "g1"}]}}

        migrated = migrate_state({"packages": [package]})

        departures = migrated["packages"][0]["departures"]
        assert [d["id"] for d in departures] == ["g1"]

    def test_package_with_departures_keeps_them(self):
        package = {
            "id": "pkg-1",
            "departures": [{"id": "d1"}],
            "opsProject": {"id": "ops-1", "groups": [{"id": "g1"}]},
        }

        migrated = migrate_state({"packages": [package]})

        assert migrated["packages"][0]["departures"] == [{"id": "d1"}]


class TestSteps:
    def test_status_normalization_rewrites_container(self):
        state = {"packages": [{"id": "pkg-1", "ops": {"groups": [{"status": "done"}]}}]}

        ops = normalize_departure_statuses(state)["packages"][0]["opsProject"]

        assert ops["packageId"] == "pkg-1"
        assert ops["id"] is None
        assert ops["groups"][0]["status"] == "validated"

    def test_status_normalization_keeps_explicit_package_id(self):
        state = {"packages": [{"id": "pkg-1", "opsProject": {"packageId": "pkg-0", "groups": []}}]}

        ops = normalize_departure_statuses(state)["packages"][0]["opsProject"]

        assert ops["packageId"] == "pkg-0"

    def test_canonical_field_wins_over_legacy_one(self):
        group = {"status": "pending", "opsStatus": "validated", "departureDate": "2025-06-02",
                 "flightDate": "2025-06-03"}
        state = {"packages": [{"id": "p", "opsProject": {"groups": [group]}}]}

        normalized = normalize_departure_statuses(state)["packages"][0]["opsProject"]["groups"][0]

        assert normalized["status"] == "pending_validation"
        assert normalized["departureDate"] == "2025-06-02"

    def test_booking_backfill_prefers_group_id(self):
        state = {"bookings": [{"groupId": "g1", "opsGroupId": "g2", "flightGroupId": "g3"}]}

        booking = backfill_booking_departure_group(state)["bookings"][0]

        assert booking["departureGroupId"] == "g1"

    def test_flatten_wraps_bare_flight_list_only(self):
        block = {"flights": [{"airline": "TAP"}], "notes": "x"}
        state = {"packages": [{"id": "a", "flights": [{"airline": "TAP"}]}, {"id": "b", "flights": block}]}

        packages = flatten_ops_project(state)["packages"]

        assert packages[0]["flights"] == {"flights": [{"airline": "TAP"}]}
        assert packages[1]["flights"] == block

    def test_flatten_accepts_current_child_names(self):
        group = {"id": "g1", "supplierLinks": [{"name": "Bus"}]}
        state = {"packages": [{"id": "p", "opsProject": {"id": "o", "groups": [group]}}]}

        departure = flatten_ops_project(state)["packages"][0]["departures"][0]

        assert departure["supplierLinks"] == [{"name": "Bus"}]
