"""In-memory snapshot store.

Holds a deep copy of the last saved snapshot, so callers mutating
their own dicts afterwards cannot alter what was "persisted". Use it
in tests, or when running without a data directory.

Example:
    @pytest.fixture
    def store():
        return PackageStore(snapshot_store=InMemorySnapshotStore())
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass
class InMemorySnapshotStore:
    """Snapshot store keeping the snapshot in process memory.

    Attributes:
        initial: Snapshot returned by ``load`` before the first save
    """

    initial: Optional[Mapping[str, Any]] = None

    _state: Optional[Dict[str, Any]] = field(default=None, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _saves: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        if self.initial is not None:
            self._state = copy.deepcopy(dict(self.initial))

    def load(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._state)

    def save(self, state: Mapping[str, Any]) -> None:
        with self._lock:
            self._state = copy.deepcopy(dict(state))
            self._saves += 1

    @property
    def save_count(self) -> int:
        """Number of times ``save`` was called."""
        with self._lock:
            return self._saves
