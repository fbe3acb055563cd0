"""Departure reconciliation against an edited flight schedule.

This subpackage derives structural keys from flights and departures,
indexes existing departures for exact and fallback matching, and
computes which departures to update, create or delete when a
package's flight list changes.
"""

from .engine import build_departures, flight_label, reconcile_departures
from .index import DepartureIndex
from .keys import (
    calendar_date,
    date_key,
    departure_key,
    flight_key,
    has_flight_structure_changed,
    partial_key,
)

__all__ = [
    "reconcile_departures",
    "build_departures",
    "flight_label",
    "DepartureIndex",
    "flight_key",
    "departure_key",
    "partial_key",
    "date_key",
    "calendar_date",
    "has_flight_structure_changed",
]
