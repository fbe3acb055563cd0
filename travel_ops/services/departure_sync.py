"""Departure sync service - Applies flight edits to a departure repository.

This service runs the reconciliation engine against the departures a
repository holds for a package, then issues the matching update,
delete and create calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..domain.models import Departure, FlightSegment, ReconciliationResult
from ..ports.persistence import DepartureRepositoryPort
from ..reconciliation.engine import (
    CREATED_TIMELINE_TITLE,
    Clock,
    IdFactory,
    build_departures,
    reconcile_departures,
)


@dataclass
class DepartureSyncService:
    """Keeps stored departures in step with a package's flights.

    Attributes:
        repository: Departure storage
        new_id: Identity factory for created departures
        clock: Clock for creation timeline entries
        timeline_title: Title of the creation timeline entry
    """

    repository: DepartureRepositoryPort
    new_id: Optional[IdFactory] = None
    clock: Optional[Clock] = None
    timeline_title: str = CREATED_TIMELINE_TITLE

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def create_for_package(
        self, package_id: str, flights: Sequence[FlightSegment]
    ) -> tuple[Departure, ...]:
        """Create one departure per flight of a new package.

        Args:
            package_id: Owner of the departures.
            flights: The package's flight schedule.

        Returns:
            The created departures, in flight order.
        """
        departures = build_departures(
            flights,
            new_id=self.new_id,
            now=self.clock,
            timeline_title=self.timeline_title,
        )
        for departure in departures:
            self.repository.create(package_id, departure)
        self._logger.info(
            "Departures created for package",
            extra={"package_id": package_id, "count": len(departures)},
        )
        return departures

    def sync_flights(
        self,
        package_id: str,
        previous_flights: Sequence[FlightSegment],
        next_flights: Sequence[FlightSegment],
    ) -> ReconciliationResult:
        """Reconcile the stored departures of a package with edited flights.

        Matched departures get their flight fields updated, departures no
        flight claims are deleted along with their children, and new
        departures are created for unmatched flights. Nothing is written
        when the flight structure did not change.

        Args:
            package_id: Package whose flights were edited.
            previous_flights: Flights before the edit.
            next_flights: Flights after the edit.

        Returns:
            The reconciliation result that was applied.
        """
        existing = self.repository.list_for_package(package_id)
        result = reconcile_departures(
            previous_flights,
            next_flights,
            existing,
            new_id=self.new_id,
            now=self.clock,
            timeline_title=self.timeline_title,
        )
        if not result.changed:
            self._logger.debug(
                "Flight structure unchanged, nothing to sync",
                extra={"package_id": package_id},
            )
            return result

        for departure in result.updated:
            self.repository.update(departure)
        if result.deleted_ids:
            self.repository.delete_many(result.deleted_ids)
        for departure in result.created:
            self.repository.create(package_id, departure)

        self._logger.info(
            "Departures synced",
            extra={
                "package_id": package_id,
                "updated": len(result.updated),
                "new": len(result.created),
                "deleted": len(result.deleted_ids),
            },
        )
        return result
