"""Reconcile a package's departures with its edited flight schedule.

Given the flight list before and after an edit and the package's
existing departures, decide for every departure whether it is kept
(and refreshed from its segment), created, or deleted. Identity and
operational data (suppliers, cost lines, timeline) survive for every
departure that still matches a segment.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Set

from ..domain.models import (
    Departure,
    DepartureStatus,
    FlightSegment,
    ReconciliationResult,
    TimelineItem,
    TimelineKind,
)
from .index import DepartureIndex
from .keys import has_flight_structure_changed

logger = logging.getLogger(__name__)

CREATED_TIMELINE_TITLE = "Groupe créé"

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def flight_label(segment: FlightSegment) -> str:
    """Display label of the departure built for ``segment``."""
    return f"{segment.airline} - depart {segment.departure_date}"


def _refresh(departure: Departure, segment: FlightSegment) -> Departure:
    return replace(
        departure,
        flight_label=flight_label(segment),
        airline=segment.airline,
        departure_date=segment.departure_date,
        return_date=segment.return_date,
    )


def _create(
    segment: FlightSegment,
    position: int,
    new_id: IdFactory,
    now: Clock,
    timeline_title: str,
) -> Departure:
    return Departure(
        id=new_id(),
        flight_label=flight_label(segment),
        airline=segment.airline,
        departure_date=segment.departure_date,
        return_date=segment.return_date,
        status=DepartureStatus.PENDING_VALIDATION,
        validation_date=None,
        timeline_items=(
            TimelineItem(
                title=timeline_title,
                date=now().isoformat(),
                note=f"Vol {position + 1}",
                kind=TimelineKind.INFO,
            ),
        ),
    )


def reconcile_departures(
    previous_flights: Sequence[FlightSegment],
    next_flights: Sequence[FlightSegment],
    departures: Sequence[Departure],
    *,
    new_id: Optional[IdFactory] = None,
    now: Optional[Clock] = None,
    timeline_title: str = CREATED_TIMELINE_TITLE,
) -> ReconciliationResult:
    """Compute the departure list matching ``next_flights``.

    Parameters
    ----------
    previous_flights:
        Flight list the departures were last reconciled with.
    next_flights:
        Edited flight list.
    departures:
        The package's current departures.
    new_id:
        Identity factory for created departures (uuid4 hex by default).
    now:
        Clock used to timestamp the creation timeline entry.
    timeline_title:
        Title of the timeline entry added to created departures.

    Returns
    -------
    ReconciliationResult
        When the flight lists hold the same multiset of structural keys
        the departures are returned untouched with ``changed=False``.
        Otherwise segments claim departures one priority level at a
        time: all exact keys first, then date+airline, then date only,
        each departure going to at most one segment. Segments with no
        match get a fresh departure, and departures nobody claimed are
        listed in ``deleted_ids``.
    """
    if not has_flight_structure_changed(previous_flights, next_flights):
        logger.debug(
            "Flight structure unchanged, skipping reconciliation",
            extra={"flights": len(next_flights), "departures": len(departures)},
        )
        return ReconciliationResult(departures=tuple(departures), changed=False)

    new_id = new_id or _new_id
    now = now or _utcnow

    assigned = DepartureIndex(departures).assign(next_flights)
    claimed: Set[str] = set()
    merged: List[Departure] = []
    created: List[Departure] = []
    updated: List[Departure] = []

    for position, (segment, existing) in enumerate(zip(next_flights, assigned)):
        if existing is None:
            departure = _create(segment, position, new_id, now, timeline_title)
            created.append(departure)
        else:
            claimed.add(existing.id)
            departure = _refresh(existing, segment)
            if departure != existing:
                updated.append(departure)
        merged.append(departure)

    deleted = [d for d in departures if d.id not in claimed]
    for departure in deleted:
        logger.warning(
            "Deleting departure no longer matching any flight",
            extra={
                "departure_id": departure.id,
                "flight_label": departure.flight_label,
                "suppliers": len(departure.supplier_links),
                "cost_lines": len(departure.cost_lines),
                "timeline_items": len(departure.timeline_items),
            },
        )

    logger.info(
        "Departures reconciled",
        extra={
            "kept": len(claimed),
            "refreshed": len(updated),
            "new": len(created),
            "deleted": len(deleted),
        },
    )
    return ReconciliationResult(
        departures=tuple(merged),
        created=tuple(created),
        updated=tuple(updated),
        deleted_ids=tuple(d.id for d in deleted),
        changed=True,
    )


def build_departures(
    flights: Sequence[FlightSegment],
    *,
    new_id: Optional[IdFactory] = None,
    now: Optional[Clock] = None,
    timeline_title: str = CREATED_TIMELINE_TITLE,
) -> tuple[Departure, ...]:
    """Build the departures of a package that has none yet."""
    result = reconcile_departures(
        (), flights, (), new_id=new_id, now=now, timeline_title=timeline_title
    )
    return result.departures
