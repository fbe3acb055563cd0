"""Services layer - Application orchestration.

This module contains the application services that drive the pure
reconciliation and migration engines through the persistence ports.

Available services:
- PackageStore: Single-writer state manager for packages and departures
- DepartureSyncService: Applies flight edits to a departure repository
"""

from .departure_sync import DepartureSyncService
from .package_store import PackageStore

__all__ = ["PackageStore", "DepartureSyncService"]
