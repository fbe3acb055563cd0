"""Thread-safe in-memory departure repository.

Stands in for the relational store holding departures and their child
records. Children are stored inside the departure value, so deleting a
departure removes its supplier links, cost lines and timeline items
with it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple

from ...domain.errors import DepartureNotFoundError
from ...domain.models import Departure


@dataclass
class InMemoryDepartureRepository:
    """Departure repository keeping records in a dict.

    This adapter implements DepartureRepositoryPort.

    Attributes:
        name: Repository name for logging
    """

    name: str = "departures"

    _rows: Dict[str, Tuple[str, Departure]] = field(default_factory=dict, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(f"repository.{self.name}")

    def list_for_package(self, package_id: str) -> List[Departure]:
        with self._lock:
            return [dep for pkg_id, dep in self._rows.values() if pkg_id == package_id]

    def get(self, departure_id: str) -> Optional[Departure]:
        with self._lock:
            row = self._rows.get(departure_id)
            return row[1] if row else None

    def package_of(self, departure_id: str) -> Optional[str]:
        """Return the id of the package owning a departure."""
        with self._lock:
            row = self._rows.get(departure_id)
            return row[0] if row else None

    def create(self, package_id: str, departure: Departure) -> None:
        with self._lock:
            self._rows[departure.id] = (package_id, departure)
            self._logger.debug(
                "Departure created",
                extra={"package_id": package_id, "departure_id": departure.id},
            )

    def update(self, departure: Departure) -> None:
        """Overwrite the label, airline and dates of a stored departure.

        Status, validation date and children stay as stored.

        Raises:
            DepartureNotFoundError: If no departure has this id.
        """
        with self._lock:
            row = self._rows.get(departure.id)
            if row is None:
                raise DepartureNotFoundError(
                    f"Departure not found: {departure.id}",
                    departure_id=departure.id,
                )
            package_id, stored = row
            self._rows[departure.id] = (
                package_id,
                replace(
                    stored,
                    flight_label=departure.flight_label,
                    airline=departure.airline,
                    departure_date=departure.departure_date,
                    return_date=departure.return_date,
                ),
            )

    def save(self, departure: Departure) -> None:
        """Replace a stored departure wholesale (status, children...).

        Raises:
            DepartureNotFoundError: If no departure has this id.
        """
        with self._lock:
            row = self._rows.get(departure.id)
            if row is None:
                raise DepartureNotFoundError(
                    f"Departure not found: {departure.id}",
                    departure_id=departure.id,
                )
            self._rows[departure.id] = (row[0], departure)

    def delete_many(self, departure_ids: Iterable[str]) -> int:
        with self._lock:
            deleted = 0
            for departure_id in departure_ids:
                if self._rows.pop(departure_id, None) is not None:
                    deleted += 1
            if deleted:
                self._logger.info("Departures deleted", extra={"count": deleted})
            return deleted

    def size(self) -> int:
        """Return the number of stored departures."""
        with self._lock:
            return len(self._rows)
