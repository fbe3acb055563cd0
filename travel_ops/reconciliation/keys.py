"""Structural keys for flight segments and departures.

A flight segment has no identity of its own, so it is matched to a
departure by a string key built from its dates and airline::

    departureDate|airline|returnDate

Missing fields render as empty strings. Departures are keyed the same
way from their own fields, so a departure and the segment it was
built from always share a key.
"""

from collections import Counter
from datetime import date, datetime
from typing import Iterable, Optional, Union

from ..domain.models import Departure, FlightSegment

DateLike = Union[str, date, datetime, None]

SEPARATOR = "|"


def calendar_date(value: DateLike) -> str:
    """Render a date-ish value as the ``YYYY-MM-DD`` text used in keys.

    Parameters
    ----------
    value:
        A calendar-date string, a ``date``/``datetime``, or ``None``.

    Returns
    -------
    str
        ``""`` for ``None``, the ISO calendar date for date objects,
        and strings unchanged.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _key(departure_date: DateLike, airline: Optional[str], return_date: DateLike) -> str:
    return SEPARATOR.join(
        (calendar_date(departure_date), airline or "", calendar_date(return_date))
    )


def flight_key(segment: FlightSegment) -> str:
    """Full structural key of a flight segment."""
    return _key(segment.departure_date, segment.airline, segment.return_date)


def departure_key(departure: Departure) -> str:
    """Full structural key of a departure, built from its own fields."""
    return _key(departure.departure_date, departure.airline, departure.return_date)


def partial_key(departure_date: DateLike, airline: Optional[str]) -> str:
    """Key ignoring the return date (``date|airline|``)."""
    return _key(departure_date, airline, None)


def date_key(departure_date: DateLike) -> str:
    """Key ignoring airline and return date (``date||``)."""
    return _key(departure_date, None, None)


def has_flight_structure_changed(
    previous: Iterable[FlightSegment], next_flights: Iterable[FlightSegment]
) -> bool:
    """Tell whether two flight lists differ as multisets of keys.

    Reordering segments, or editing fields that are not part of the
    key (duration, details), is not a structural change.

    Parameters
    ----------
    previous:
        Flight list before the edit.
    next_flights:
        Flight list after the edit.

    Returns
    -------
    bool
        True when the lengths differ or any key's occurrence count
        differs between the two lists.
    """
    return Counter(flight_key(f) for f in previous) != Counter(
        flight_key(f) for f in next_flights
    )
