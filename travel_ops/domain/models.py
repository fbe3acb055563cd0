"""Immutable domain models for travel-ops.

All models are frozen dataclasses with slots. Child collections are
tuples so a departure can be shared between snapshots without copying.

Every model converts to and from the camelCase record shape exchanged
with the persistence collaborators (``to_dict`` / ``from_dict``).
``from_dict`` is lenient: snapshots written by older builds may miss
fields entirely, so missing keys fall back to defaults instead of
raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional


class DepartureStatus(str, Enum):
    """Validation status of a departure."""

    PENDING_VALIDATION = "pending_validation"
    VALIDATED = "validated"

    @classmethod
    def parse(cls, value: Any) -> DepartureStatus:
        """Return the matching member, ``PENDING_VALIDATION`` otherwise."""
        if isinstance(value, cls):
            return value
        if value == cls.VALIDATED.value:
            return cls.VALIDATED
        return cls.PENDING_VALIDATION


class TimelineKind(str, Enum):
    """Category of a departure timeline entry."""

    INFO = "info"
    DEADLINE = "deadline"
    RISK = "risk"
    DONE = "done"

    @classmethod
    def parse(cls, value: Any) -> TimelineKind:
        for member in cls:
            if value == member or value == member.value:
                return member
        return cls.INFO


class PackageStatus(str, Enum):
    """Publication lifecycle of a package."""

    DRAFT = "draft"
    PUBLISHED = "published"

    @classmethod
    def parse(cls, value: Any) -> PackageStatus:
        if value == cls.PUBLISHED or value == cls.PUBLISHED.value:
            return cls.PUBLISHED
        return cls.DRAFT


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _as_float(value: Any, default: Optional[float]) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _records(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, Mapping)]


@dataclass(frozen=True, slots=True)
class FlightSegment:
    """One scheduled departure/return pair of a package.

    Segments have no identity; they are matched to departures by
    their structural key (date, airline, return date).
    """

    airline: str = ""
    departure_date: str = ""
    return_date: str = ""
    duration: Optional[str] = None
    details: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "airline": self.airline,
            "departureDate": self.departure_date,
            "returnDate": self.return_date,
        }
        if self.duration is not None:
            data["duration"] = self.duration
        if self.details is not None:
            data["details"] = self.details
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FlightSegment:
        return cls(
            airline=_text(data.get("airline")),
            departure_date=_text(data.get("departureDate")),
            return_date=_text(data.get("returnDate")),
            duration=_optional_text(data.get("duration")),
            details=_optional_text(data.get("details")),
        )


@dataclass(frozen=True, slots=True)
class SupplierLink:
    """A supplier engaged for a departure."""

    name: str
    contact: Optional[str] = None
    cost: Optional[float] = None
    deadline: Optional[str] = None

    def to_dict(self, departure_id: str) -> dict[str, Any]:
        return {
            "departureId": departure_id,
            "name": self.name,
            "contact": self.contact,
            "cost": self.cost,
            "deadline": self.deadline,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SupplierLink:
        return cls(
            name=_text(data.get("name")),
            contact=_optional_text(data.get("contact")),
            cost=_as_float(data.get("cost"), None),
            deadline=_optional_text(data.get("deadline")),
        )


@dataclass(frozen=True, slots=True)
class CostLine:
    """A payment step owed for a departure."""

    label: str
    amount: float = 0.0
    due_date: Optional[str] = None
    paid: bool = False

    def to_dict(self, departure_id: str) -> dict[str, Any]:
        return {
            "departureId": departure_id,
            "label": self.label,
            "amount": self.amount,
            "dueDate": self.due_date,
            "paid": self.paid,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CostLine:
        return cls(
            label=_text(data.get("label")),
            amount=_as_float(data.get("amount"), 0.0) or 0.0,
            due_date=_optional_text(data.get("dueDate")),
            paid=bool(data.get("paid", False)),
        )


@dataclass(frozen=True, slots=True)
class TimelineItem:
    """An entry of a departure's operational timeline."""

    title: str
    date: Optional[str] = None
    note: Optional[str] = None
    kind: TimelineKind = TimelineKind.INFO

    def __post_init__(self) -> None:
        # accepts the plain string values, rejects anything else
        object.__setattr__(self, "kind", TimelineKind(self.kind))

    def to_dict(self, departure_id: str) -> dict[str, Any]:
        return {
            "departureId": departure_id,
            "title": self.title,
            "date": self.date,
            "note": self.note,
            "kind": self.kind.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TimelineItem:
        return cls(
            title=_text(data.get("title")),
            date=_optional_text(data.get("date")),
            note=_optional_text(data.get("note")),
            kind=TimelineKind.parse(data.get("kind")),
        )


@dataclass(frozen=True, slots=True)
class Departure:
    """Operational record derived from a flight segment (ops group).

    Attributes:
        id: Stable identity, kept across flight edits while the
            departure still matches a segment
        flight_label: Display label derived from airline and date
        airline: Airline of the matched segment
        departure_date: Calendar date (YYYY-MM-DD) of the outbound flight
        return_date: Calendar date (YYYY-MM-DD) of the return flight
        status: Validation status
        validation_date: ISO timestamp of the last validation
        supplier_links: Suppliers engaged for this departure
        cost_lines: Payment steps
        timeline_items: Operational timeline
    """

    id: str
    flight_label: str = ""
    airline: Optional[str] = None
    departure_date: Optional[str] = None
    return_date: Optional[str] = None
    status: DepartureStatus = DepartureStatus.PENDING_VALIDATION
    validation_date: Optional[str] = None
    supplier_links: tuple[SupplierLink, ...] = field(default_factory=tuple)
    cost_lines: tuple[CostLine, ...] = field(default_factory=tuple)
    timeline_items: tuple[TimelineItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", DepartureStatus(self.status))

    @property
    def is_validated(self) -> bool:
        return self.status is DepartureStatus.VALIDATED

    def with_status(self, status: DepartureStatus, now: datetime) -> Departure:
        """Return a copy moved to ``status``.

        Entering ``validated`` stamps the validation date; staying
        validated keeps the original stamp; going back to pending
        clears it.
        """
        if status is DepartureStatus.VALIDATED:
            if self.is_validated:
                return self
            return replace(self, status=status, validation_date=now.isoformat())
        return replace(self, status=status, validation_date=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "flightLabel": self.flight_label,
            "airline": self.airline,
            "departureDate": self.departure_date,
            "returnDate": self.return_date,
            "status": self.status.value,
            "validationDate": self.validation_date,
            "supplierLinks": [s.to_dict(self.id) for s in self.supplier_links],
            "costLines": [c.to_dict(self.id) for c in self.cost_lines],
            "timelineItems": [t.to_dict(self.id) for t in self.timeline_items],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Departure:
        return cls(
            id=_text(data.get("id")),
            flight_label=_text(data.get("flightLabel")),
            airline=_optional_text(data.get("airline")),
            departure_date=_optional_text(data.get("departureDate")),
            return_date=_optional_text(data.get("returnDate")),
            status=DepartureStatus.parse(data.get("status")),
            validation_date=_optional_text(data.get("validationDate")),
            supplier_links=tuple(
                SupplierLink.from_dict(s) for s in _records(data.get("supplierLinks"))
            ),
            cost_lines=tuple(
                CostLine.from_dict(c) for c in _records(data.get("costLines"))
            ),
            timeline_items=tuple(
                TimelineItem.from_dict(t) for t in _records(data.get("timelineItems"))
            ),
        )


@dataclass(frozen=True, slots=True)
class Package:
    """A sellable travel product with its flight schedule and departures.

    Attributes:
        id: Package identity
        status: Publication status
        flights: Ordered flight schedule
        departures: Departures derived from ``flights``
        flight_info: Other keys of the flight block (destination, cities...)
        attributes: Every other package key, kept verbatim
    """

    id: str
    status: PackageStatus = PackageStatus.DRAFT
    flights: tuple[FlightSegment, ...] = field(default_factory=tuple)
    departures: tuple[Departure, ...] = field(default_factory=tuple)
    flight_info: Mapping[str, Any] = field(default_factory=dict)
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def find_departure(self, departure_id: str) -> Optional[Departure]:
        for departure in self.departures:
            if departure.id == departure_id:
                return departure
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            **self.attributes,
            "flights": {
                **self.flight_info,
                "flights": [f.to_dict() for f in self.flights],
            },
            "departures": [d.to_dict() for d in self.departures],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Package:
        raw_flights = data.get("flights")
        if isinstance(raw_flights, Mapping):
            segments = _records(raw_flights.get("flights"))
            flight_info = {k: v for k, v in raw_flights.items() if k != "flights"}
        else:
            segments = _records(raw_flights)
            flight_info = {}

        reserved = {"id", "status", "flights", "departures"}
        return cls(
            id=_text(data.get("id")),
            status=PackageStatus.parse(data.get("status")),
            flights=tuple(FlightSegment.from_dict(s) for s in segments),
            departures=tuple(
                Departure.from_dict(d) for d in _records(data.get("departures"))
            ),
            flight_info=flight_info,
            attributes={k: v for k, v in data.items() if k not in reserved},
        )


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """Outcome of reconciling a departure list against a new flight list.

    Attributes:
        departures: Full departure list, in next-flight order
        created: Departures built for segments with no match
        updated: Kept departures whose flight fields changed when
            refreshed from their matched segment
        deleted_ids: Ids of departures no segment claimed
        changed: False when the flight structure did not change and the
            engine left the departures untouched
    """

    departures: tuple[Departure, ...] = field(default_factory=tuple)
    created: tuple[Departure, ...] = field(default_factory=tuple)
    updated: tuple[Departure, ...] = field(default_factory=tuple)
    deleted_ids: tuple[str, ...] = field(default_factory=tuple)
    changed: bool = True

    @property
    def is_noop(self) -> bool:
        """Check if nothing has to be persisted."""
        return not (self.created or self.updated or self.deleted_ids)
