"""Persistence ports - Abstractions for snapshot and departure storage.

The core never performs I/O itself. These protocols define the only
two things it asks of storage:

- load/save a whole persisted snapshot (flat snapshot file, browser
  storage, key-value store...)
- create/update/delete a departure and its children by id (relational
  store)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Protocol, Sequence

if TYPE_CHECKING:
    from ..domain.models import Departure


class SnapshotStorePort(Protocol):
    """Port for whole-snapshot persistence.

    Implementations:
    - adapters/persistence/json_snapshot_store.py (JsonSnapshotStore) - Production
    - adapters/persistence/memory_snapshot_store.py (InMemorySnapshotStore) - Testing
    """

    def load(self) -> Optional[Dict[str, Any]]:
        """Read the stored snapshot.

        Returns:
            The raw snapshot mapping, or None if nothing was saved yet.

        Raises:
            SnapshotError: If the snapshot exists but cannot be read.
        """
        ...

    def save(self, state: Mapping[str, Any]) -> None:
        """Replace the stored snapshot.

        Args:
            state: The snapshot to persist, tagged with its schemaVersion.

        Raises:
            SnapshotError: If the snapshot cannot be written.
        """
        ...


class DepartureRepositoryPort(Protocol):
    """Port for departure records keyed by id.

    Implementation: adapters/persistence/memory_departure_repository.py

    Deleting a departure deletes its supplier links, cost lines and
    timeline items with it.
    """

    def list_for_package(self, package_id: str) -> Sequence[Departure]:
        """List a package's departures in creation order."""
        ...

    def get(self, departure_id: str) -> Optional[Departure]:
        """Get a departure by id, or None if not found."""
        ...

    def create(self, package_id: str, departure: Departure) -> None:
        """Store a new departure with its children under ``package_id``."""
        ...

    def update(self, departure: Departure) -> None:
        """Overwrite the flight fields of an existing departure.

        Raises:
            DepartureNotFoundError: If no departure has this id.
        """
        ...

    def delete_many(self, departure_ids: Iterable[str]) -> int:
        """Delete departures and their children.

        Returns:
            Number of departures actually deleted.
        """
        ...
