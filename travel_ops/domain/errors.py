"""Typed domain errors for travel-ops.

The reconciliation and migration engines never raise on data; these
errors are raised by the state manager and the persistence adapters
so that callers can tell a missing package from a broken snapshot.

All errors inherit from TravelOpsError and can optionally wrap a
root cause exception for debugging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TravelOpsError(Exception):
    """Base error for the travel-ops domain.

    Attributes:
        message: Human-readable error description
        cause: Optional underlying exception that caused this error
    """

    message: str
    cause: Optional[Exception] = field(default=None, repr=False)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def __post_init__(self) -> None:
        super().__init__(self.message)


@dataclass
class PackageNotFoundError(TravelOpsError):
    """No package with the requested id in the store.

    Attributes:
        package_id: The id that was looked up
    """

    package_id: str = ""


@dataclass
class DepartureNotFoundError(TravelOpsError):
    """No departure with the requested id under the package.

    Attributes:
        package_id: Package that was searched
        departure_id: The id that was looked up
    """

    package_id: str = ""
    departure_id: str = ""


@dataclass
class ChildIndexError(TravelOpsError):
    """A supplier / cost line / timeline position is out of range.

    Attributes:
        collection: Name of the child collection
        index: The offending position
    """

    collection: str = ""
    index: int = -1


@dataclass
class SnapshotError(TravelOpsError):
    """Persisted snapshot could not be read or written.

    Attributes:
        path: Snapshot location if file-backed
    """

    path: Optional[str] = None


@dataclass
class ConfigurationError(TravelOpsError):
    """Invalid or missing configuration.

    Attributes:
        setting_name: Name of the problematic setting
        expected_type: Expected type or format
    """

    setting_name: str = ""
    expected_type: Optional[str] = None
