"""Tests for legacy status and field aliases."""

import pytest

from travel_ops.domain.models import DepartureStatus
from travel_ops.migrations.aliases import (
    DEPARTURE_GROUP_FIELDS,
    STATUS_ALIASES,
    VALIDATION_DATE_FIELDS,
    first_present,
    resolve_status,
)


@pytest.mark.parametrize("raw", ["validated", "validate", "done", "closed", "approved"])
def test_validated_aliases(raw):
    assert resolve_status(raw) is DepartureStatus.VALIDATED


@pytest.mark.parametrize(
    "raw",
    ["pending_validation", "validation_pending", "pending", "to_validate", "awaiting_validation"],
)
def test_pending_aliases(raw):
    assert resolve_status(raw) is DepartureStatus.PENDING_VALIDATION


@pytest.mark.parametrize("raw", [None, "", "VALIDATED", "archived", 1, True, ["validated"]])
def test_unknown_values_default_to_pending(raw):
    assert resolve_status(raw) is DepartureStatus.PENDING_VALIDATION


def test_alias_table_only_targets_canonical_statuses():
    assert set(STATUS_ALIASES.values()) == set(DepartureStatus)


def test_first_present_follows_priority_order():
    booking = {"opsGroupId": "g-ops", "groupId": "g-legacy"}
    assert first_present(booking, DEPARTURE_GROUP_FIELDS) == "g-legacy"


def test_first_present_skips_none_values():
    group = {"validationDate": None, "validatedAt": None, "confirmedAt": "2025-05-01"}
    assert first_present(group, VALIDATION_DATE_FIELDS) == "2025-05-01"


def test_first_present_keeps_falsy_values():
    assert first_present({"groupId": "", "opsGroupId": "g2"}, DEPARTURE_GROUP_FIELDS) == ""


def test_first_present_without_any_alias():
    assert first_present({}, DEPARTURE_GROUP_FIELDS) is None
