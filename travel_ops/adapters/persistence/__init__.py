"""Persistence adapters - Implementations of the persistence ports.

Available implementations:
- JsonSnapshotStore: Snapshot kept in a JSON file
- InMemorySnapshotStore: Snapshot kept in memory (testing)
- InMemoryDepartureRepository: Departures keyed by id, children cascade
"""

from .json_snapshot_store import JsonSnapshotStore
from .memory_departure_repository import InMemoryDepartureRepository
from .memory_snapshot_store import InMemorySnapshotStore

__all__ = ["JsonSnapshotStore", "InMemorySnapshotStore", "InMemoryDepartureRepository"]
