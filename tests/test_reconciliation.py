"""Tests for the departure reconciliation engine."""

from dataclasses import replace

import pytest

from travel_ops.domain.models import (
    CostLine,
    Departure,
    DepartureStatus,
    FlightSegment,
    SupplierLink,
    TimelineItem,
    TimelineKind,
)
from travel_ops.reconciliation import build_departures, flight_label, reconcile_departures


@pytest.fixture
def staffed(tap):
    """A validated departure for the TAP flight, with operational data."""
    return Departure(
        id="D1",
        flight_label="TAP - depart 2025-06-02",
        airline=tap.airline,
        departure_date=tap.departure_date,
        return_date=tap.return_date,
        status=DepartureStatus.VALIDATED,
        validation_date="2025-05-01T08:00:00+00:00",
        supplier_links=(SupplierLink(name="Hotel Lisboa", cost=1200.0),),
        cost_lines=(CostLine(label="Deposit", amount=300.0, paid=True),),
        timeline_items=(TimelineItem(title="Rooming list sent"),),
    )


def test_full_creation_against_empty_departures(tap, new_id, clock, fixed_now):
    result = reconcile_departures([], [tap], [], new_id=new_id, now=clock)

    assert result.changed
    assert len(result.departures) == 1
    departure = result.departures[0]
    assert departure.id == "dep-1"
    assert departure.flight_label == "TAP - depart 2025-06-02"
    assert departure.status is DepartureStatus.PENDING_VALIDATION
    assert departure.validation_date is None
    assert departure.supplier_links == ()
    assert departure.cost_lines == ()
    assert len(departure.timeline_items) == 1
    item = departure.timeline_items[0]
    assert item.title == "Groupe créé"
    assert item.date == fixed_now.isoformat()
    assert item.note == "Vol 1"
    assert item.kind is TimelineKind.INFO
    assert result.created == (departure,)
    assert result.deleted_ids == ()


def test_creation_note_counts_flight_position(tap, iberia, new_id, clock):
    result = reconcile_departures([], [tap, iberia], [], new_id=new_id, now=clock)

    assert [d.timeline_items[0].note for d in result.departures] == ["Vol 1", "Vol 2"]
    assert [d.airline for d in result.departures] == ["TAP", "Iberia"]


def test_second_run_is_idempotent(tap, iberia, new_id, clock):
    first = reconcile_departures([tap], [tap, iberia], [], new_id=new_id, now=clock)
    second = reconcile_departures(
        [tap], [tap, iberia], first.departures, new_id=new_id, now=clock
    )

    assert second.departures == first.departures
    assert second.created == ()
    assert second.updated == ()
    assert second.deleted_ids == ()
    assert second.is_noop


def test_unchanged_structure_skips_engine(tap, iberia, staffed, new_id):
    result = reconcile_departures([tap, iberia], [iberia, tap], [staffed], new_id=new_id)

    assert not result.changed
    assert result.departures == (staffed,)
    assert result.is_noop


def test_airline_change_preserves_identity_and_children(tap, staffed, new_id, clock):
    renamed = FlightSegment("TAP Portugal", "2025-06-02", "2025-06-09")

    result = reconcile_departures([tap], [renamed], [staffed], new_id=new_id, now=clock)

    assert len(result.departures) == 1
    kept = result.departures[0]
    assert kept.id == "D1"
    assert kept.airline == "TAP Portugal"
    assert kept.flight_label == "TAP Portugal - depart 2025-06-02"
    assert kept.status is DepartureStatus.VALIDATED
    assert kept.validation_date == staffed.validation_date
    assert kept.supplier_links == staffed.supplier_links
    assert kept.cost_lines == staffed.cost_lines
    assert kept.timeline_items == staffed.timeline_items
    assert result.updated == (kept,)
    assert result.created == ()
    assert result.deleted_ids == ()


def test_return_date_change_preserves_identity(tap, staffed, new_id, clock):
    extended = FlightSegment("TAP", "2025-06-02", "2025-06-12")

    result = reconcile_departures([tap], [extended], [staffed], new_id=new_id, now=clock)

    assert result.departures[0].id == "D1"
    assert result.departures[0].return_date == "2025-06-12"


def test_removed_flight_deletes_its_departure(tap, iberia, staffed, new_id, clock):
    other = Departure(
        id="D2",
        flight_label="Iberia - depart 2025-07-14",
        airline="Iberia",
        departure_date="2025-07-14",
        return_date="2025-07-21",
        supplier_links=(SupplierLink(name="Bus Madrid"),),
        cost_lines=(CostLine(label="Balance", amount=900.0),),
    )

    result = reconcile_departures(
        [tap, iberia], [tap], [staffed, other], new_id=new_id, now=clock
    )

    assert [d.id for d in result.departures] == ["D1"]
    assert result.departures[0] == staffed
    assert result.deleted_ids == ("D2",)
    assert all(d.id != "D2" for d in result.departures)


def test_date_change_replaces_departure(tap, staffed, new_id, clock):
    moved = FlightSegment("TAP", "2025-06-03", "2025-06-09")

    result = reconcile_departures([tap], [moved], [staffed], new_id=new_id, now=clock)

    assert [d.id for d in result.departures] == ["dep-1"]
    assert result.deleted_ids == ("D1",)


def test_output_follows_next_flight_order(tap, iberia, staffed, new_id, clock):
    added = FlightSegment("Vueling", "2025-05-20", "2025-05-27")

    result = reconcile_departures(
        [tap], [added, tap, iberia], [staffed], new_id=new_id, now=clock
    )

    assert [d.airline for d in result.departures] == ["Vueling", "TAP", "Iberia"]
    assert result.departures[1].id == "D1"
    assert [d.timeline_items[-1].note for d in result.created] == ["Vol 1", "Vol 3"]


def test_two_segments_falling_back_to_one_departure(staffed, new_id, clock):
    """Only the first segment keeps the departure; the second gets a new one."""
    previous = [FlightSegment("TAP", "2025-06-02", "2025-06-09")]
    nxt = [
        FlightSegment("Iberia", "2025-06-02", "2025-06-09"),
        FlightSegment("Vueling", "2025-06-02", "2025-06-09"),
    ]

    result = reconcile_departures(previous, nxt, [staffed], new_id=new_id, now=clock)

    assert [d.id for d in result.departures] == ["D1", "dep-1"]
    assert result.departures[0].airline == "Iberia"
    assert result.departures[1].airline == "Vueling"
    assert result.deleted_ids == ()


def test_duplicate_flights_keep_both_departures(tap, new_id, clock):
    twin_a = Departure(id="A", airline="TAP", departure_date="2025-06-02", return_date="2025-06-09")
    twin_b = replace(twin_a, id="B")
    extra = FlightSegment("Iberia", "2025-07-14", "2025-07-21")

    result = reconcile_departures(
        [tap, tap], [tap, tap, extra], [twin_a, twin_b], new_id=new_id, now=clock
    )

    assert [d.id for d in result.departures] == ["A", "B", "dep-1"]
    assert result.deleted_ids == ()


def test_clearing_flights_deletes_everything(tap, staffed):
    result = reconcile_departures([tap], [], [staffed])

    assert result.departures == ()
    assert result.deleted_ids == ("D1",)


def test_default_ids_are_unique(tap, iberia):
    departures = build_departures([tap, iberia])

    assert len({d.id for d in departures}) == 2
    assert all(d.id for d in departures)


def test_custom_timeline_title(tap, new_id, clock):
    departures = build_departures([tap], new_id=new_id, now=clock, timeline_title="Group created")

    assert departures[0].timeline_items[0].title == "Group created"


def test_flight_label_with_empty_airline():
    assert flight_label(FlightSegment("", "2025-06-02", "")) == " - depart 2025-06-02"


def test_new_flight_on_same_date_does_not_take_exact_match(new_id, clock):
    iberia = FlightSegment("Iberia", "2025-06-02", "2025-06-09")
    air_france = FlightSegment("Air France", "2025-06-02", "2025-06-09")
    kept = Departure(
        id="D_IB",
        flight_label="Iberia - depart 2025-06-02",
        airline="Iberia",
        departure_date="2025-06-02",
        return_date="2025-06-09",
        status=DepartureStatus.VALIDATED,
        supplier_links=(SupplierLink(name="Hotel Madrid"),),
    )

    result = reconcile_departures(
        [iberia], [air_france, iberia], [kept], new_id=new_id, now=clock
    )

    assert [(d.id, d.airline) for d in result.departures] == [
        ("dep-1", "Air France"),
        ("D_IB", "Iberia"),
    ]
    assert result.departures[1] == kept
    assert result.updated == ()
    assert result.deleted_ids == ()


def test_airline_fallback_beats_earlier_date_only_fallback(staffed, new_id, clock):
    vueling = FlightSegment("Vueling", "2025-06-02", "2025-06-09")
    extended = FlightSegment("TAP", "2025-06-02", "2025-06-12")

    result = reconcile_departures(
        [FlightSegment("TAP", "2025-06-02", "2025-06-09")],
        [vueling, extended],
        [staffed],
        new_id=new_id,
        now=clock,
    )

    assert [d.id for d in result.departures] == ["dep-1", "D1"]
    assert result.departures[1].return_date == "2025-06-12"
    assert result.departures[1].supplier_links == staffed.supplier_links
