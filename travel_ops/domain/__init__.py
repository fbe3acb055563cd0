"""Domain layer - Core business models and errors.

This module contains immutable domain models and typed errors
used throughout the application. No external dependencies.
"""

from .errors import (
    ChildIndexError,
    ConfigurationError,
    DepartureNotFoundError,
    PackageNotFoundError,
    SnapshotError,
    TravelOpsError,
)
from .models import (
    CostLine,
    Departure,
    DepartureStatus,
    FlightSegment,
    Package,
    PackageStatus,
    ReconciliationResult,
    SupplierLink,
    TimelineItem,
    TimelineKind,
)

__all__ = [
    # Models
    "FlightSegment",
    "Departure",
    "DepartureStatus",
    "SupplierLink",
    "CostLine",
    "TimelineItem",
    "TimelineKind",
    "Package",
    "PackageStatus",
    "ReconciliationResult",
    # Errors
    "TravelOpsError",
    "PackageNotFoundError",
    "DepartureNotFoundError",
    "ChildIndexError",
    "SnapshotError",
    "ConfigurationError",
]
